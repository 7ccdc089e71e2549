"""Async repository helpers for the club registry and membership ledger."""

from __future__ import annotations

from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable, Optional, TypeVar
from uuid import UUID, uuid4

import asyncpg

from tribenet.clubs.domain import models
from tribenet.clubs.domain.exceptions import ConflictError, NotFoundError
from tribenet.infra.postgres import get_pool

T = TypeVar("T")

_CLUB_COLUMNS = "id, name, description, category, free, price, creator_id, created_at, updated_at"
_MEMBERSHIP_COLUMNS = "id, user_id, club_id, club_role, joined_at"
_UPDATABLE_CLUB_FIELDS = ("name", "description", "category", "free", "price")


class ClubsRepository:
	"""Thin data-access layer around asyncpg.

	Every method takes an optional connection; services pass the one yielded by
	``transaction()`` so that all steps of an operation commit or roll back
	together.
	"""

	@asynccontextmanager
	async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				yield conn

	async def _run(
		self,
		conn: asyncpg.Connection | None,
		func: Callable[[asyncpg.Connection], Awaitable[T]],
	) -> T:
		if conn is not None:
			return await func(conn)
		pool = await get_pool()
		async with pool.acquire() as pooled_conn:
			return await func(pooled_conn)

	# --- Club operations --------------------------------------------------

	async def create_club(
		self,
		*,
		name: str,
		description: str,
		category: str,
		free: bool,
		price: Decimal | None,
		creator_id: UUID | None,
		conn: asyncpg.Connection | None = None,
	) -> models.Club:
		async def _insert(connection: asyncpg.Connection) -> models.Club:
			record = await connection.fetchrow(
				f"""
				INSERT INTO clubs (id, name, description, category, free, price, creator_id)
				VALUES ($1, $2, $3, $4, $5, $6, $7)
				RETURNING {_CLUB_COLUMNS}
				""",
				uuid4(),
				name,
				description,
				category,
				free,
				price,
				creator_id,
			)
			return models.Club.model_validate(dict(record))

		return await self._run(conn, _insert)

	async def get_club(
		self,
		club_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
		for_update: bool = False,
	) -> models.Club | None:
		query = f"SELECT {_CLUB_COLUMNS} FROM clubs WHERE id=$1"
		if for_update:
			query += " FOR UPDATE"

		async def _fetch(connection: asyncpg.Connection) -> models.Club | None:
			record = await connection.fetchrow(query, club_id)
			return models.Club.model_validate(dict(record)) if record else None

		return await self._run(conn, _fetch)

	async def list_clubs(self, *, conn: asyncpg.Connection | None = None) -> list[models.Club]:
		async def _fetch(connection: asyncpg.Connection) -> list[models.Club]:
			rows = await connection.fetch(f"SELECT {_CLUB_COLUMNS} FROM clubs ORDER BY created_at ASC, id ASC")
			return [models.Club.model_validate(dict(row)) for row in rows]

		return await self._run(conn, _fetch)

	async def update_club(
		self,
		club_id: UUID,
		changes: dict[str, Any],
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.Club:
		fields: list[str] = []
		values: list[object] = []
		for key in _UPDATABLE_CLUB_FIELDS:
			if key in changes:
				fields.append("%s=$%d" % (key, len(values) + 2))
				values.append(changes[key])
		unknown = set(changes) - set(_UPDATABLE_CLUB_FIELDS)
		if unknown:
			raise ValueError(f"unsupported club fields: {sorted(unknown)}")
		if not fields:
			club = await self.get_club(club_id, conn=conn)
			if club is None:
				raise NotFoundError("club_not_found")
			return club
		fields.append("updated_at=NOW()")
		query = f"""
			UPDATE clubs
			SET {', '.join(fields)}
			WHERE id=$1
			RETURNING {_CLUB_COLUMNS}
		"""

		async def _update(connection: asyncpg.Connection) -> models.Club:
			record = await connection.fetchrow(query, club_id, *values)
			if not record:
				raise NotFoundError("club_not_found")
			return models.Club.model_validate(dict(record))

		return await self._run(conn, _update)

	async def delete_club(self, club_id: UUID, *, conn: asyncpg.Connection | None = None) -> bool:
		"""Delete the club; memberships go with it through ON DELETE CASCADE."""

		async def _delete(connection: asyncpg.Connection) -> bool:
			result = await connection.execute("DELETE FROM clubs WHERE id=$1", club_id)
			return result.endswith(" 1")

		return await self._run(conn, _delete)

	async def member_counts(
		self,
		club_ids: Iterable[UUID],
		*,
		conn: asyncpg.Connection | None = None,
	) -> dict[UUID, int]:
		ids = list(club_ids)
		if not ids:
			return {}

		async def _fetch(connection: asyncpg.Connection) -> dict[UUID, int]:
			rows = await connection.fetch(
				"SELECT club_id, COUNT(*) AS total FROM user_club WHERE club_id = ANY($1::uuid[]) GROUP BY club_id",
				ids,
			)
			counts = {club_id: 0 for club_id in ids}
			for row in rows:
				counts[row["club_id"]] = int(row["total"])
			return counts

		return await self._run(conn, _fetch)

	# --- Membership operations --------------------------------------------

	async def get_membership(
		self,
		club_id: UUID,
		user_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.Membership | None:
		async def _fetch(connection: asyncpg.Connection) -> models.Membership | None:
			record = await connection.fetchrow(
				f"SELECT {_MEMBERSHIP_COLUMNS} FROM user_club WHERE club_id=$1 AND user_id=$2",
				club_id,
				user_id,
			)
			return models.Membership.model_validate(dict(record)) if record else None

		return await self._run(conn, _fetch)

	async def add_membership(
		self,
		club_id: UUID,
		user_id: UUID,
		*,
		role: models.ClubRole,
		conn: asyncpg.Connection | None = None,
	) -> models.Membership:
		async def _insert(connection: asyncpg.Connection) -> models.Membership:
			try:
				record = await connection.fetchrow(
					f"""
					INSERT INTO user_club (id, user_id, club_id, club_role, joined_at)
					VALUES ($1, $2, $3, $4, NOW())
					RETURNING {_MEMBERSHIP_COLUMNS}
					""",
					uuid4(),
					user_id,
					club_id,
					role.value,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise ConflictError("already_member") from exc
			except asyncpg.ForeignKeyViolationError as exc:  # type: ignore[attr-defined]
				raise NotFoundError("club_or_user_not_found") from exc
			return models.Membership.model_validate(dict(record))

		return await self._run(conn, _insert)

	async def set_membership_role(
		self,
		membership_id: UUID,
		role: models.ClubRole,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.Membership:
		async def _update(connection: asyncpg.Connection) -> models.Membership:
			record = await connection.fetchrow(
				f"UPDATE user_club SET club_role=$2 WHERE id=$1 RETURNING {_MEMBERSHIP_COLUMNS}",
				membership_id,
				role.value,
			)
			if not record:
				raise NotFoundError("member_not_found")
			return models.Membership.model_validate(dict(record))

		return await self._run(conn, _update)

	async def delete_membership(self, membership_id: UUID, *, conn: asyncpg.Connection | None = None) -> None:
		async def _delete(connection: asyncpg.Connection) -> None:
			await connection.execute("DELETE FROM user_club WHERE id=$1", membership_id)

		await self._run(conn, _delete)

	async def delete_user_memberships(self, user_id: UUID, *, conn: asyncpg.Connection | None = None) -> int:
		async def _delete(connection: asyncpg.Connection) -> int:
			result = await connection.execute("DELETE FROM user_club WHERE user_id=$1", user_id)
			return int(result.split()[-1])

		return await self._run(conn, _delete)

	async def list_members(self, club_id: UUID, *, conn: asyncpg.Connection | None = None) -> list[models.MemberView]:
		async def _fetch(connection: asyncpg.Connection) -> list[models.MemberView]:
			rows = await connection.fetch(
				"""
				SELECT uc.user_id, u.name, u.username, u.email, uc.club_role, uc.joined_at
				FROM user_club uc
				JOIN users u ON u.id = uc.user_id
				WHERE uc.club_id=$1
				ORDER BY uc.joined_at ASC, uc.id ASC
				""",
				club_id,
			)
			return [models.MemberView.model_validate(dict(row)) for row in rows]

		return await self._run(conn, _fetch)

	async def list_user_memberships(
		self,
		user_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
	) -> list[models.Membership]:
		async def _fetch(connection: asyncpg.Connection) -> list[models.Membership]:
			rows = await connection.fetch(
				f"SELECT {_MEMBERSHIP_COLUMNS} FROM user_club WHERE user_id=$1 ORDER BY joined_at ASC, id ASC",
				user_id,
			)
			return [models.Membership.model_validate(dict(row)) for row in rows]

		return await self._run(conn, _fetch)

	async def list_user_clubs(self, user_id: UUID, *, conn: asyncpg.Connection | None = None) -> list[models.UserClubView]:
		async def _fetch(connection: asyncpg.Connection) -> list[models.UserClubView]:
			rows = await connection.fetch(
				"""
				SELECT c.id, c.name, c.description, c.category, c.free, c.price, c.creator_id,
					c.created_at, c.updated_at, uc.club_role,
					(SELECT COUNT(*) FROM user_club m WHERE m.club_id = c.id) AS member_count
				FROM user_club uc
				JOIN clubs c ON c.id = uc.club_id
				WHERE uc.user_id=$1
				ORDER BY uc.joined_at ASC, uc.id ASC
				""",
				user_id,
			)
			views: list[models.UserClubView] = []
			for row in rows:
				data = dict(row)
				role = data.pop("club_role")
				count = int(data.pop("member_count"))
				views.append(
					models.UserClubView(
						club=models.Club.model_validate(data),
						club_role=role,
						member_count=count,
					)
				)
			return views

		return await self._run(conn, _fetch)

	async def list_admins(self, club_id: UUID, *, conn: asyncpg.Connection | None = None) -> list[models.Membership]:
		async def _fetch(connection: asyncpg.Connection) -> list[models.Membership]:
			rows = await connection.fetch(
				f"""
				SELECT {_MEMBERSHIP_COLUMNS} FROM user_club
				WHERE club_id=$1 AND club_role='ADMIN'
				ORDER BY joined_at ASC, id ASC
				""",
				club_id,
			)
			return [models.Membership.model_validate(dict(row)) for row in rows]

		return await self._run(conn, _fetch)

	async def count_admins(self, club_id: UUID, *, conn: asyncpg.Connection | None = None) -> int:
		async def _fetch(connection: asyncpg.Connection) -> int:
			value = await connection.fetchval(
				"SELECT COUNT(*) FROM user_club WHERE club_id=$1 AND club_role='ADMIN'",
				club_id,
			)
			return int(value or 0)

		return await self._run(conn, _fetch)

	async def find_successor(
		self,
		club_id: UUID,
		*,
		exclude_user_id: UUID,
		conn: asyncpg.Connection | None = None,
	) -> Optional[models.Membership]:
		"""Return the longest-standing membership other than ``exclude_user_id``."""

		async def _fetch(connection: asyncpg.Connection) -> Optional[models.Membership]:
			record = await connection.fetchrow(
				f"""
				SELECT {_MEMBERSHIP_COLUMNS} FROM user_club
				WHERE club_id=$1 AND user_id <> $2
				ORDER BY joined_at ASC, id ASC
				LIMIT 1
				""",
				club_id,
				exclude_user_id,
			)
			return models.Membership.model_validate(dict(record)) if record else None

		return await self._run(conn, _fetch)
