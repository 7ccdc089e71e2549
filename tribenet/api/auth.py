"""Registration and login endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from tribenet.clubs.api._errors import to_http_error
from tribenet.domain.identity import schemas, service

router = APIRouter(tags=["auth"])


@router.post("/auth/register", response_model=schemas.RegisterResponse)
async def register(payload: schemas.RegisterRequest) -> schemas.RegisterResponse:
	try:
		return await service.register(payload)
	except Exception as exc:
		raise to_http_error(exc) from exc


@router.post("/auth/login", response_model=schemas.LoginResponse)
async def login(payload: schemas.LoginRequest) -> schemas.LoginResponse:
	try:
		return await service.login(payload)
	except Exception as exc:
		raise to_http_error(exc) from exc
