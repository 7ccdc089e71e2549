"""Pydantic schemas for registration, login and user listings."""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from tribenet.domain.identity.models import GlobalRole

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]{3,50}$"


class RegisterRequest(BaseModel):
	name: Annotated[str, Field(min_length=1, max_length=120)]
	username: Annotated[str, Field(pattern=USERNAME_PATTERN)]
	email: EmailStr
	password: Annotated[str, Field(min_length=8, max_length=256)]


class RegisterResponse(BaseModel):
	message: str = "User registered successfully"
	username: str


class LoginRequest(BaseModel):
	username: Annotated[str, Field(min_length=1)]
	password: Annotated[str, Field(min_length=1)]


class UserOut(BaseModel):
	id: UUID
	name: str
	username: str
	email: str
	role: GlobalRole


class LoginResponse(BaseModel):
	token: str
	token_type: Literal["bearer"] = "bearer"
	expires_in: int
	user: UserOut
