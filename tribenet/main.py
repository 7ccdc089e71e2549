"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tribenet.api import auth, ops, users
from tribenet.api.errors import install_error_handlers
from tribenet.api.middleware_request_id import RequestIdMiddleware
from tribenet.clubs.api import router as clubs_router
from tribenet.infra import postgres
from tribenet.obs import init as obs_init
from tribenet.settings import settings

_LOG = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	await postgres.ensure_schema(pool)
	_LOG.info("startup_complete", extra={"environment": settings.environment})
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Tribenet API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)

# Added last so it runs first and the observability middleware sees the id.
app.add_middleware(RequestIdMiddleware)

app.include_router(auth.router, prefix=API_PREFIX, tags=["identity"])
app.include_router(users.router, prefix=API_PREFIX, tags=["identity"])
app.include_router(clubs_router)
app.include_router(ops.router)
