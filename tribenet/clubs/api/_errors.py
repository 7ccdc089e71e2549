"""Error translation helpers for the clubs and identity APIs."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from tribenet.clubs.domain import exceptions
from tribenet.domain.identity.service import IdentityServiceError

_LOG = logging.getLogger(__name__)


def to_http_error(exc: Exception) -> HTTPException:
	"""Translate domain exceptions to FastAPI HTTP errors."""
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, exceptions.ClubError):
		return HTTPException(status_code=exc.status_code, detail=exc.detail)
	if isinstance(exc, IdentityServiceError):
		return HTTPException(status_code=exc.status_code, detail=exc.reason)
	_LOG.exception("unhandled_service_error")
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal_error")
