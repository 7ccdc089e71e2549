"""Club membership API routes."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from tribenet.clubs.api._errors import to_http_error
from tribenet.clubs.domain.services import ClubsService
from tribenet.clubs.schemas import dto
from tribenet.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:members"])
_service = ClubsService()


@router.post("/clubs/{club_id}/join", response_model=dto.MessageResponse)
async def join_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	try:
		await _service.join_club(auth_user, club_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
	return dto.MessageResponse(message="Joined club successfully")


@router.delete("/clubs/{club_id}/leave", response_model=dto.MessageResponse)
async def leave_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	try:
		await _service.leave_club(auth_user, club_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
	return dto.MessageResponse(message="Left club successfully")


@router.get("/clubs/{club_id}/members", response_model=List[dto.MemberResponse])
async def list_members_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> List[dto.MemberResponse]:
	try:
		return await _service.list_members(club_id)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.put("/clubs/{club_id}/members/{user_id}/promote", response_model=dto.MessageResponse)
async def promote_member_endpoint(
	club_id: UUID,
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	try:
		await _service.promote_member(auth_user, club_id, user_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
	return dto.MessageResponse(message="Member promoted to admin")


@router.delete("/clubs/{club_id}/members/{user_id}", response_model=dto.MessageResponse)
async def remove_member_endpoint(
	club_id: UUID,
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MessageResponse:
	try:
		await _service.remove_member(auth_user, club_id, user_id)
	except Exception as exc:
		raise to_http_error(exc) from exc
	return dto.MessageResponse(message="Member removed successfully")
