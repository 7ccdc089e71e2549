"""Service layer for registration, login and account lookups."""

from __future__ import annotations

import logging
from uuid import UUID

from tribenet.clubs.domain.exceptions import ConflictError, NotFoundError, ValidationError
from tribenet.domain.identity import models, policy, schemas
from tribenet.domain.identity.repo import UsersRepository
from tribenet.infra import jwt as jwt_helper
from tribenet.infra.auth import AuthenticatedUser
from tribenet.infra.password import hash_password, verify_password
from tribenet.obs import metrics as obs_metrics
from tribenet.settings import settings

_LOG = logging.getLogger(__name__)

_default_repo = UsersRepository()


class IdentityServiceError(Exception):
	"""Raised for service-level issues with optional HTTP status mapping."""

	def __init__(self, reason: str, *, status_code: int = 400):
		super().__init__(reason)
		self.reason = reason
		self.status_code = status_code


class LoginFailed(IdentityServiceError):
	def __init__(self, reason: str = "invalid_credentials") -> None:
		super().__init__(reason, status_code=401)


def _hash_password(password: str) -> str:
	try:
		policy.guard_password(password)
	except policy.PasswordTooWeak as exc:
		raise ValidationError(exc.reason) from exc
	return hash_password(password)


def to_user_out(user: models.User) -> schemas.UserOut:
	return schemas.UserOut(
		id=user.id,
		name=user.name,
		username=user.username,
		email=user.email,
		role=user.role,
	)


async def _create_account(
	repo: UsersRepository,
	*,
	name: str,
	username: str,
	email: str,
	password: str,
	role: models.GlobalRole,
) -> models.User:
	username = policy.normalise_username(username)
	if await repo.get_user_by_username(username) is not None:
		raise ConflictError("username_exists")
	password_hash = _hash_password(password)
	try:
		return await repo.create_user(
			username=username,
			password_hash=password_hash,
			name=name.strip(),
			email=policy.normalise_email(email),
			role=role,
		)
	except ConflictError:
		_LOG.info("user.register_raced", extra={"username": username})
		raise


async def register(
	payload: schemas.RegisterRequest,
	*,
	repository: UsersRepository | None = None,
) -> schemas.RegisterResponse:
	"""Create a USER account. Self-registration never yields an ADMIN."""
	repo = repository or _default_repo
	try:
		user = await _create_account(
			repo,
			name=payload.name,
			username=payload.username,
			email=payload.email,
			password=payload.password,
			role=models.GlobalRole.USER,
		)
	except (ConflictError, ValidationError) as exc:
		obs_metrics.inc_identity_event("register", exc.detail)
		raise
	obs_metrics.inc_identity_event("register")
	_LOG.info("user.registered", extra={"user_id": str(user.id), "username": user.username})
	return schemas.RegisterResponse(username=user.username)


async def ensure_admin(
	*,
	username: str,
	password: str,
	name: str,
	email: str,
	repository: UsersRepository | None = None,
) -> tuple[models.User, bool]:
	"""Create a global ADMIN account unless the username is already taken.

	Returns the stored account and whether it was created by this call. An
	existing account is returned untouched, whatever its role.
	"""
	repo = repository or _default_repo
	existing = await repo.get_user_by_username(policy.normalise_username(username))
	if existing is not None:
		return existing, False
	user = await _create_account(
		repo,
		name=name,
		username=username,
		email=email,
		password=password,
		role=models.GlobalRole.ADMIN,
	)
	obs_metrics.inc_identity_event("ensure_admin")
	_LOG.info("user.admin_bootstrapped", extra={"user_id": str(user.id), "username": user.username})
	return user, True


async def login(
	payload: schemas.LoginRequest,
	*,
	repository: UsersRepository | None = None,
) -> schemas.LoginResponse:
	repo = repository or _default_repo
	user = await repo.get_user_by_username(policy.normalise_username(payload.username))
	if user is None or not verify_password(user.password_hash, payload.password):
		obs_metrics.inc_identity_event("login", "invalid_credentials")
		raise LoginFailed()
	token = jwt_helper.issue_token(user.username, user.role.value)
	obs_metrics.inc_identity_event("login")
	return schemas.LoginResponse(
		token=token,
		expires_in=settings.access_ttl_minutes * 60,
		user=to_user_out(user),
	)


async def list_users(
	caller: AuthenticatedUser,
	*,
	repository: UsersRepository | None = None,
) -> list[schemas.UserOut]:
	"""Every account except the caller's own."""
	repo = repository or _default_repo
	users = await repo.list_users(exclude_user_id=caller.id)
	return [to_user_out(user) for user in users]


async def get_user(
	user_id: UUID,
	*,
	repository: UsersRepository | None = None,
) -> schemas.UserOut:
	repo = repository or _default_repo
	user = await repo.get_user(user_id)
	if user is None:
		raise NotFoundError("user_not_found")
	return to_user_out(user)
