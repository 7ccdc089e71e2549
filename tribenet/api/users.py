"""User directory endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from tribenet.clubs.api._errors import to_http_error
from tribenet.clubs.domain.services import ClubsService
from tribenet.clubs.schemas import dto
from tribenet.domain.identity import schemas, service
from tribenet.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["users"])
_clubs = ClubsService()


@router.get("/users", response_model=List[schemas.UserOut])
async def list_users(auth_user: AuthenticatedUser = Depends(get_current_user)) -> List[schemas.UserOut]:
	"""Every registered user except the caller."""
	try:
		return await service.list_users(auth_user)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/users/{user_id}", response_model=schemas.UserOut)
async def get_user(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> schemas.UserOut:
	try:
		return await service.get_user(user_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/users/{user_id}/clubs", response_model=List[dto.UserClubResponse])
async def list_user_clubs(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[dto.UserClubResponse]:
	try:
		return await _clubs.list_user_clubs(user_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
