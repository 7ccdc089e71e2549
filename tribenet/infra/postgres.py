"""AsyncPG pool management and schema bootstrap for the backend."""

from __future__ import annotations

import logging
from typing import Optional

import asyncpg

from tribenet.settings import settings

_LOG = logging.getLogger(__name__)

_pool: Optional[asyncpg.pool.Pool] = None

SCHEMA_STATEMENTS: tuple[str, ...] = (
	"""
	CREATE TABLE IF NOT EXISTS users (
		id UUID PRIMARY KEY,
		username TEXT NOT NULL UNIQUE,
		password_hash TEXT NOT NULL,
		name TEXT NOT NULL DEFAULT '',
		email TEXT NOT NULL DEFAULT '',
		role TEXT NOT NULL DEFAULT 'USER' CHECK (role IN ('USER', 'ADMIN')),
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS clubs (
		id UUID PRIMARY KEY,
		name TEXT NOT NULL,
		description TEXT NOT NULL DEFAULT '',
		category TEXT NOT NULL DEFAULT '',
		free BOOLEAN NOT NULL DEFAULT TRUE,
		price NUMERIC(12, 2),
		creator_id UUID REFERENCES users(id) ON DELETE SET NULL,
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS user_club (
		id UUID PRIMARY KEY,
		user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
		club_id UUID NOT NULL REFERENCES clubs(id) ON DELETE CASCADE,
		club_role TEXT NOT NULL DEFAULT 'MEMBER' CHECK (club_role IN ('MEMBER', 'ADMIN')),
		joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		UNIQUE (user_id, club_id)
	)
	""",
	"CREATE INDEX IF NOT EXISTS user_club_club_role_idx ON user_club (club_id, club_role)",
)


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			ssl="require" if settings.postgres_ssl else "disable",
		)
	return _pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


async def ensure_schema(pool: asyncpg.pool.Pool | None = None) -> None:
	"""Create the users, clubs and user_club tables if they are missing."""
	target = pool or await get_pool()
	async with target.acquire() as conn:
		async with conn.transaction():
			for statement in SCHEMA_STATEMENTS:
				await conn.execute(statement)
	_LOG.info("schema_ready", extra={"tables": ["users", "clubs", "user_club"]})
