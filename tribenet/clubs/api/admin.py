"""System administration API routes."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from tribenet.clubs.api._errors import to_http_error
from tribenet.clubs.domain.admin_service import AdminService
from tribenet.clubs.schemas import dto
from tribenet.domain.identity import schemas as identity_schemas
from tribenet.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.get("/users", response_model=List[identity_schemas.UserOut])
async def list_users_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[identity_schemas.UserOut]:
	try:
		return await _service.list_users_admin(auth_user)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.delete("/users/{user_id}", response_model=dto.MessageResponse)
async def delete_user_endpoint(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	try:
		await _service.delete_user(auth_user, user_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
	return dto.MessageResponse(message="User deleted successfully")


@router.delete("/clubs/{club_id}", response_model=dto.MessageResponse)
async def force_delete_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	try:
		await _service.force_delete_club(auth_user, club_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
	return dto.MessageResponse(message="Club deleted successfully")
