import asyncio
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from argon2 import PasswordHasher
from httpx import ASGITransport, AsyncClient

# Settings refuse to load without a signing key.
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-tribenet-unit-tests-0123456789")

# Ensure the package is importable when tests run from the repo root
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
	sys.path.insert(0, str(PROJECT_ROOT))

from tribenet.api import users as users_api
from tribenet.clubs.api import admin as admin_api
from tribenet.clubs.api import clubs as clubs_api
from tribenet.clubs.api import members as members_api
from tribenet.clubs.domain import models
from tribenet.clubs.domain.admin_service import AdminService
from tribenet.clubs.domain.exceptions import ConflictError, NotFoundError
from tribenet.clubs.domain.services import ClubsService
from tribenet.domain.identity import models as identity_models
from tribenet.domain.identity import service as identity_service
from tribenet.infra import auth as auth_module
from tribenet.infra import jwt as jwt_helper
from tribenet.infra import password as password_module
from tribenet.infra import postgres
from tribenet.infra.auth import AuthenticatedUser
from tribenet.main import app


class InMemoryStore:
	"""Shared tables for the in-memory repositories.

	Rows are replaced, never mutated, so a shallow copy of each table is a
	complete snapshot for rollback.
	"""

	def __init__(self) -> None:
		self.users: dict[UUID, identity_models.User] = {}
		self.clubs: dict[UUID, models.Club] = {}
		self.memberships: dict[UUID, models.Membership] = {}
		self.lock = asyncio.Lock()
		self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)
		self._ticks = 0

	def now(self) -> datetime:
		# Strictly increasing so join order is observable.
		self._ticks += 1
		return self._epoch + timedelta(seconds=self._ticks)

	def snapshot(self) -> tuple[dict, dict, dict]:
		return dict(self.users), dict(self.clubs), dict(self.memberships)

	def restore(self, snapshot: tuple[dict, dict, dict]) -> None:
		self.users, self.clubs, self.memberships = (dict(table) for table in snapshot)

	def membership_for(self, club_id: UUID, user_id: UUID) -> Optional[models.Membership]:
		for membership in self.memberships.values():
			if membership.club_id == club_id and membership.user_id == user_id:
				return membership
		return None

	def club_memberships(self, club_id: UUID) -> list[models.Membership]:
		rows = [m for m in self.memberships.values() if m.club_id == club_id]
		return sorted(rows, key=lambda m: m.joined_at)


class InMemoryClubsRepository:
	"""Dict-backed stand-in for ClubsRepository.

	``transaction()`` holds one store-wide lock, which is at least as strict as
	the club row lock, and rolls every table back when the block raises.
	"""

	def __init__(self, store: InMemoryStore) -> None:
		self.store = store
		self.transactions = 0
		self.rollbacks = 0

	@asynccontextmanager
	async def transaction(self):
		async with self.store.lock:
			self.transactions += 1
			snapshot = self.store.snapshot()
			try:
				yield self.store
			except BaseException:
				self.store.restore(snapshot)
				self.rollbacks += 1
				raise

	async def create_club(self, *, name, description, category, free, price, creator_id, conn=None) -> models.Club:
		now = self.store.now()
		club = models.Club(
			id=uuid4(),
			name=name,
			description=description,
			category=category,
			free=free,
			price=price,
			creator_id=creator_id,
			created_at=now,
			updated_at=now,
		)
		self.store.clubs[club.id] = club
		return club

	async def get_club(self, club_id: UUID, *, conn=None, for_update: bool = False) -> Optional[models.Club]:
		return self.store.clubs.get(club_id)

	async def list_clubs(self, *, conn=None) -> list[models.Club]:
		return sorted(self.store.clubs.values(), key=lambda club: club.created_at)

	async def update_club(self, club_id: UUID, changes: dict[str, Any], *, conn=None) -> models.Club:
		unknown = set(changes) - {"name", "description", "category", "free", "price"}
		if unknown:
			raise ValueError(f"unsupported club fields: {sorted(unknown)}")
		club = self.store.clubs.get(club_id)
		if club is None:
			raise NotFoundError("club_not_found")
		if not changes:
			return club
		updated = club.model_copy(update={**changes, "updated_at": self.store.now()})
		self.store.clubs[club_id] = updated
		return updated

	async def delete_club(self, club_id: UUID, *, conn=None) -> bool:
		if self.store.clubs.pop(club_id, None) is None:
			return False
		for membership in self.store.club_memberships(club_id):
			del self.store.memberships[membership.id]
		return True

	async def member_counts(self, club_ids, *, conn=None) -> dict[UUID, int]:
		return {club_id: len(self.store.club_memberships(club_id)) for club_id in club_ids}

	async def get_membership(self, club_id: UUID, user_id: UUID, *, conn=None) -> Optional[models.Membership]:
		return self.store.membership_for(club_id, user_id)

	async def add_membership(self, club_id: UUID, user_id: UUID, *, role: models.ClubRole, conn=None) -> models.Membership:
		if self.store.membership_for(club_id, user_id) is not None:
			raise ConflictError("already_member")
		if club_id not in self.store.clubs or user_id not in self.store.users:
			raise NotFoundError("club_or_user_not_found")
		membership = models.Membership(
			id=uuid4(),
			user_id=user_id,
			club_id=club_id,
			club_role=role,
			joined_at=self.store.now(),
		)
		self.store.memberships[membership.id] = membership
		return membership

	async def set_membership_role(self, membership_id: UUID, role: models.ClubRole, *, conn=None) -> models.Membership:
		membership = self.store.memberships.get(membership_id)
		if membership is None:
			raise NotFoundError("member_not_found")
		updated = membership.model_copy(update={"club_role": role})
		self.store.memberships[membership_id] = updated
		return updated

	async def delete_membership(self, membership_id: UUID, *, conn=None) -> None:
		self.store.memberships.pop(membership_id, None)

	async def delete_user_memberships(self, user_id: UUID, *, conn=None) -> int:
		doomed = [m.id for m in self.store.memberships.values() if m.user_id == user_id]
		for membership_id in doomed:
			del self.store.memberships[membership_id]
		return len(doomed)

	async def list_members(self, club_id: UUID, *, conn=None) -> list[models.MemberView]:
		views = []
		for membership in self.store.club_memberships(club_id):
			user = self.store.users[membership.user_id]
			views.append(
				models.MemberView(
					user_id=user.id,
					name=user.name,
					username=user.username,
					email=user.email,
					club_role=membership.club_role,
					joined_at=membership.joined_at,
				)
			)
		return views

	async def list_user_memberships(self, user_id: UUID, *, conn=None) -> list[models.Membership]:
		rows = [m for m in self.store.memberships.values() if m.user_id == user_id]
		return sorted(rows, key=lambda m: m.joined_at)

	async def list_user_clubs(self, user_id: UUID, *, conn=None) -> list[models.UserClubView]:
		return [
			models.UserClubView(
				club=self.store.clubs[membership.club_id],
				club_role=membership.club_role,
				member_count=len(self.store.club_memberships(membership.club_id)),
			)
			for membership in await self.list_user_memberships(user_id)
		]

	async def list_admins(self, club_id: UUID, *, conn=None) -> list[models.Membership]:
		return [m for m in self.store.club_memberships(club_id) if m.club_role is models.ClubRole.ADMIN]

	async def count_admins(self, club_id: UUID, *, conn=None) -> int:
		return len(await self.list_admins(club_id))

	async def find_successor(self, club_id: UUID, *, exclude_user_id: UUID, conn=None) -> Optional[models.Membership]:
		for membership in self.store.club_memberships(club_id):
			if membership.user_id != exclude_user_id:
				return membership
		return None


class InMemoryUsersRepository:
	def __init__(self, store: InMemoryStore) -> None:
		self.store = store

	async def create_user(
		self,
		*,
		username,
		password_hash,
		name,
		email,
		role=identity_models.GlobalRole.USER,
		conn=None,
	) -> identity_models.User:
		if any(user.username == username for user in self.store.users.values()):
			raise ConflictError("username_exists")
		user = identity_models.User(
			id=uuid4(),
			username=username,
			password_hash=password_hash,
			name=name,
			email=email,
			role=role,
			created_at=self.store.now(),
		)
		self.store.users[user.id] = user
		return user

	async def get_user(self, user_id: UUID, *, conn=None, for_update: bool = False) -> Optional[identity_models.User]:
		return self.store.users.get(user_id)

	async def get_user_by_username(self, username: str, *, conn=None) -> Optional[identity_models.User]:
		for user in self.store.users.values():
			if user.username == username:
				return user
		return None

	async def list_users(self, *, exclude_user_id: Optional[UUID] = None, conn=None) -> list[identity_models.User]:
		users = sorted(self.store.users.values(), key=lambda user: user.created_at)
		return [user for user in users if user.id != exclude_user_id]

	async def delete_user(self, user_id: UUID, *, conn=None) -> bool:
		if self.store.users.pop(user_id, None) is None:
			return False
		# Mirror ON DELETE CASCADE / SET NULL.
		for membership in [m for m in self.store.memberships.values() if m.user_id == user_id]:
			del self.store.memberships[membership.id]
		for club in list(self.store.clubs.values()):
			if club.creator_id == user_id:
				self.store.clubs[club.id] = club.model_copy(update={"creator_id": None})
		return True


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop(*args, **kwargs):
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)
	monkeypatch.setattr(postgres, "ensure_schema", _noop)


@pytest.fixture(autouse=True)
def fast_password_hasher(monkeypatch):
	"""Cheap Argon2 parameters; the production ones cost 64 MB per hash."""
	monkeypatch.setattr(
		password_module,
		"PASSWORD_HASHER",
		PasswordHasher(time_cost=1, memory_cost=8, parallelism=1),
	)


@pytest.fixture()
def store() -> InMemoryStore:
	return InMemoryStore()


@pytest.fixture()
def clubs_repo(store) -> InMemoryClubsRepository:
	return InMemoryClubsRepository(store)


@pytest.fixture()
def users_repo(store) -> InMemoryUsersRepository:
	return InMemoryUsersRepository(store)


@pytest.fixture()
def clubs_service(clubs_repo, users_repo) -> ClubsService:
	return ClubsService(repository=clubs_repo, users=users_repo)


@pytest.fixture()
def admin_service(clubs_repo, users_repo) -> AdminService:
	return AdminService(repository=clubs_repo, users=users_repo)


@pytest.fixture()
def make_user(users_repo):
	"""Factory inserting an account and returning it as the resolved caller."""

	async def _make(
		username: str,
		*,
		role: identity_models.GlobalRole = identity_models.GlobalRole.USER,
	) -> AuthenticatedUser:
		user = await users_repo.create_user(
			username=username,
			password_hash="not-a-real-hash",
			name=username.title(),
			email=f"{username}@example.com",
			role=role,
		)
		return AuthenticatedUser.from_user(user)

	return _make


@pytest.fixture()
def wire_api(monkeypatch, clubs_service, admin_service, users_repo):
	"""Point every router and the auth dependency at the in-memory store."""
	monkeypatch.setattr(clubs_api, "_service", clubs_service)
	monkeypatch.setattr(members_api, "_service", clubs_service)
	monkeypatch.setattr(admin_api, "_service", admin_service)
	monkeypatch.setattr(users_api, "_clubs", clubs_service)
	monkeypatch.setattr(identity_service, "_default_repo", users_repo)
	monkeypatch.setattr(auth_module, "_users", users_repo)


def bearer(user: AuthenticatedUser) -> dict[str, str]:
	token = jwt_helper.issue_token(user.username, user.global_role.value)
	return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers():
	return bearer


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
