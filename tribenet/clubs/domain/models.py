"""Domain models for clubs and memberships."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ClubRole(str, Enum):
	"""Privilege level scoped to one club through a membership."""

	MEMBER = "MEMBER"
	ADMIN = "ADMIN"


class Club(BaseModel):
	"""Represents a club record."""

	id: UUID
	name: str
	description: str
	category: str
	free: bool
	price: Optional[Decimal] = None
	creator_id: Optional[UUID] = None
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Membership(BaseModel):
	"""Represents a user_club row."""

	id: UUID
	user_id: UUID
	club_id: UUID
	club_role: ClubRole
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_admin(self) -> bool:
		return self.club_role is ClubRole.ADMIN


class MemberView(BaseModel):
	"""Membership joined with the member's public user fields."""

	user_id: UUID
	name: str
	username: str
	email: str
	club_role: ClubRole
	joined_at: datetime

	model_config = ConfigDict(from_attributes=True)


class UserClubView(BaseModel):
	"""A club seen from one member's side, with that member's role."""

	club: Club
	club_role: ClubRole
	member_count: int
