"""Domain models for the identity subsystem."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict

RecordLike = Mapping[str, Any]


class GlobalRole(str, Enum):
	"""Platform-wide privilege level, independent of any club."""

	USER = "USER"
	ADMIN = "ADMIN"


class User(BaseModel):
	"""A registered account."""

	id: UUID
	username: str
	password_hash: str
	name: str
	email: str
	role: GlobalRole
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)

	@classmethod
	def from_record(cls, record: RecordLike) -> "User":
		return cls.model_validate(dict(record))

	@property
	def is_admin(self) -> bool:
		return self.role is GlobalRole.ADMIN
