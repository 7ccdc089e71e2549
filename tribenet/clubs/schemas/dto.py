"""Pydantic schemas for the clubs API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from tribenet.clubs.domain.models import ClubRole

_NON_NULLABLE_UPDATE_FIELDS = ("name", "description", "category", "free")


class ClubBase(BaseModel):
	name: str = Field(..., min_length=1, max_length=120)
	description: str = Field(..., min_length=1, max_length=4000)
	category: str = Field(..., min_length=1, max_length=80)
	free: bool
	price: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)


class ClubCreateRequest(ClubBase):
	pass


class ClubUpdateRequest(BaseModel):
	"""Partial update; only fields present in the request body are applied."""

	name: Optional[str] = Field(default=None, min_length=1, max_length=120)
	description: Optional[str] = Field(default=None, min_length=1, max_length=4000)
	category: Optional[str] = Field(default=None, min_length=1, max_length=80)
	free: Optional[bool] = None
	price: Optional[Decimal] = Field(default=None, max_digits=12, decimal_places=2)

	@model_validator(mode="after")
	def _reject_null_for_required_fields(self) -> "ClubUpdateRequest":
		for field in _NON_NULLABLE_UPDATE_FIELDS:
			if field in self.model_fields_set and getattr(self, field) is None:
				raise ValueError(f"{field} cannot be null")
		return self

	def changes(self) -> dict[str, object]:
		return self.model_dump(exclude_unset=True)


class ClubResponse(ClubBase):
	id: UUID
	creator_id: Optional[UUID] = None
	member_count: int
	created_at: datetime
	updated_at: datetime


class ClubListResponse(BaseModel):
	items: List[ClubResponse]


class UserClubResponse(ClubBase):
	id: UUID
	club_role: ClubRole
	member_count: int


class MemberResponse(BaseModel):
	user_id: UUID
	name: str
	username: str
	email: str
	club_role: ClubRole
	joined_at: datetime


class MessageResponse(BaseModel):
	message: str
