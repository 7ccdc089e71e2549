"""Custom exceptions for the clubs membership engine."""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class ClubError(Exception):
	"""Base class for club related errors."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "club_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class NotFoundError(ClubError):
	"""Raised when a user, club or membership is missing."""

	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class UnauthorizedError(ClubError):
	"""Raised when an authenticated caller lacks the role an operation needs."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class ConflictError(ClubError):
	"""Raised for invariant violations (duplicate join, last admin, ...)."""

	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class ValidationError(ClubError):
	"""Raised for validation errors not covered by FastAPI schema validation."""

	status_code = _HTTP_422
	detail = "validation_error"
