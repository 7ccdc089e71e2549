"""Club registry API routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from tribenet.clubs.api._errors import to_http_error
from tribenet.clubs.domain.services import ClubsService
from tribenet.clubs.schemas import dto
from tribenet.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs"])
_service = ClubsService()


@router.post("/clubs", response_model=dto.ClubResponse, status_code=201)
async def create_club_endpoint(
	payload: dto.ClubCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubResponse:
	try:
		return await _service.create_club(auth_user, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/clubs", response_model=dto.ClubListResponse)
async def list_clubs_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubListResponse:
	try:
		return await _service.list_clubs()
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}", response_model=dto.ClubResponse)
async def get_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubResponse:
	try:
		return await _service.get_club(club_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.patch("/clubs/{club_id}", response_model=dto.ClubResponse)
async def patch_club_endpoint(
	club_id: UUID,
	payload: dto.ClubUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubResponse:
	try:
		return await _service.update_club(auth_user, club_id, payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}", response_model=dto.MessageResponse)
async def delete_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	try:
		await _service.delete_club(auth_user, club_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
	return dto.MessageResponse(message="Club deleted successfully")
