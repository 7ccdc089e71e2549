"""Operations endpoints providing health checks and metrics."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from tribenet.infra.postgres import get_pool
from tribenet.obs import metrics as obs_metrics
from tribenet.settings import settings

_LOG = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ops"])


@router.get("/health")
async def health_live() -> dict[str, str]:
	return {"status": "ok", "service": settings.service_name}


@router.get("/health/ready")
async def health_ready() -> Response:
	try:
		pool = await get_pool()
		async with pool.acquire() as conn:
			await conn.execute("SELECT 1")
	except Exception:
		_LOG.warning("readiness_check_failed", exc_info=True)
		return JSONResponse({"status": "unavailable"}, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
	return JSONResponse({"status": "ok"})


@router.get("/metrics")
async def prometheus_metrics() -> Response:
	payload, content_type = obs_metrics.render_latest()
	return Response(content=payload, media_type=content_type)
