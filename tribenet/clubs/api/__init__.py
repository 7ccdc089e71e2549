"""FastAPI routers for the clubs domain."""

from __future__ import annotations

from fastapi import APIRouter

from tribenet.clubs.api import admin, clubs, members

router = APIRouter(prefix="/api/v1")

router.include_router(clubs.router)
router.include_router(members.router)
router.include_router(admin.router)
