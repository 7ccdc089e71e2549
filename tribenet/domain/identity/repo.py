"""Data access for user accounts."""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar
from uuid import UUID, uuid4

import asyncpg

from tribenet.clubs.domain.exceptions import ConflictError
from tribenet.domain.identity import models
from tribenet.infra.postgres import get_pool

T = TypeVar("T")

_USER_COLUMNS = "id, username, password_hash, name, email, role, created_at"


class UsersRepository:
	"""asyncpg-backed identity store keyed by unique username."""

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

	async def create_user(
		self,
		*,
		username: str,
		password_hash: str,
		name: str,
		email: str,
		role: models.GlobalRole = models.GlobalRole.USER,
		conn: asyncpg.Connection | None = None,
	) -> models.User:
		async def _insert(connection: asyncpg.Connection) -> models.User:
			try:
				record = await connection.fetchrow(
					f"""
					INSERT INTO users (id, username, password_hash, name, email, role)
					VALUES ($1, $2, $3, $4, $5, $6)
					RETURNING {_USER_COLUMNS}
					""",
					uuid4(),
					username,
					password_hash,
					name,
					email,
					role.value,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise ConflictError("username_exists") from exc
			return models.User.from_record(record)

		return await self._run(conn, _insert)

	async def get_user(
		self,
		user_id: UUID,
		*,
		conn: asyncpg.Connection | None = None,
		for_update: bool = False,
	) -> models.User | None:
		query = f"SELECT {_USER_COLUMNS} FROM users WHERE id=$1"
		if for_update:
			query += " FOR UPDATE"

		async def _fetch(connection: asyncpg.Connection) -> models.User | None:
			record = await connection.fetchrow(query, user_id)
			return models.User.from_record(record) if record else None

		return await self._run(conn, _fetch)

	async def get_user_by_username(
		self,
		username: str,
		*,
		conn: asyncpg.Connection | None = None,
	) -> models.User | None:
		async def _fetch(connection: asyncpg.Connection) -> models.User | None:
			record = await connection.fetchrow(f"SELECT {_USER_COLUMNS} FROM users WHERE username=$1", username)
			return models.User.from_record(record) if record else None

		return await self._run(conn, _fetch)

	async def list_users(
		self,
		*,
		exclude_user_id: UUID | None = None,
		conn: asyncpg.Connection | None = None,
	) -> list[models.User]:
		async def _fetch(connection: asyncpg.Connection) -> list[models.User]:
			if exclude_user_id is None:
				rows = await connection.fetch(f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at ASC, id ASC")
			else:
				rows = await connection.fetch(
					f"SELECT {_USER_COLUMNS} FROM users WHERE id <> $1 ORDER BY created_at ASC, id ASC",
					exclude_user_id,
				)
			return [models.User.from_record(row) for row in rows]

		return await self._run(conn, _fetch)

	async def delete_user(self, user_id: UUID, *, conn: asyncpg.Connection | None = None) -> bool:
		async def _delete(connection: asyncpg.Connection) -> bool:
			result = await connection.execute("DELETE FROM users WHERE id=$1", user_id)
			return result.endswith(" 1")

		return await self._run(conn, _delete)
