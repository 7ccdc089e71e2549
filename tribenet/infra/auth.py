"""Authentication helpers for FastAPI endpoints.

A bearer JWT names a username; the account is then loaded from the identity
store so the caller's global role always reflects the stored record. The
resolved ``AuthenticatedUser`` is handed explicitly to every service call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tribenet.domain.identity.models import GlobalRole, User
from tribenet.domain.identity.repo import UsersRepository
from tribenet.infra import jwt as jwt_helper
from tribenet.obs import logging as obs_logging
from tribenet.obs import metrics as obs_metrics


@dataclass(slots=True)
class AuthenticatedUser:
	id: UUID
	username: str
	global_role: GlobalRole = GlobalRole.USER
	name: Optional[str] = None
	email: Optional[str] = None

	@property
	def is_global_admin(self) -> bool:
		return self.global_role is GlobalRole.ADMIN

	@classmethod
	def from_user(cls, user: User) -> "AuthenticatedUser":
		return cls(
			id=user.id,
			username=user.username,
			global_role=user.role,
			name=user.name,
			email=user.email,
		)


_bearer_scheme = HTTPBearer(auto_error=False)
_users = UsersRepository()


def _invalid_token() -> HTTPException:
	return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


def verify_access_jwt(token: str) -> tuple[str, GlobalRole]:
	"""Decode and validate an access JWT and return (username, role claim)."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		obs_metrics.inc_auth_failure("invalid_token")
		raise _invalid_token()
	username = str(payload.get("sub") or "").strip()
	try:
		role = GlobalRole(str(payload.get("role") or "").upper())
	except ValueError:
		obs_metrics.inc_auth_failure("invalid_role_claim")
		raise _invalid_token()
	if not username:
		raise _invalid_token()
	return username, role


async def get_current_user(
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated caller or reject with 401."""
	if credentials is None or credentials.scheme.lower() != "bearer":
		obs_metrics.inc_auth_failure("missing_token")
		raise _invalid_token()
	username, _claimed_role = verify_access_jwt(credentials.credentials)
	user = await _users.get_user_by_username(username)
	if user is None:
		obs_metrics.inc_auth_failure("unknown_user")
		raise _invalid_token()
	obs_logging.bind_context(user_id=str(user.id))
	return AuthenticatedUser.from_user(user)

