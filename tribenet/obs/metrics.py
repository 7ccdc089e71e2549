"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

import logging

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

log = logging.getLogger(__name__)


REQUEST_COUNTER = Counter(
	"tribenet_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"tribenet_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

CLUB_OPERATIONS = Counter(
	"tribenet_club_operations_total",
	"Club and membership operations that committed",
	["operation"],
)

CLUB_REJECTIONS = Counter(
	"tribenet_club_rejections_total",
	"Club operations rejected by a domain rule",
	["operation", "reason"],
)

IDENTITY_EVENTS = Counter(
	"tribenet_identity_events_total",
	"Identity events (registrations, logins, deletions)",
	["event", "result"],
)

AUTH_FAILURES = Counter(
	"tribenet_auth_failures_total",
	"Rejected bearer token resolutions",
	["reason"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_club_operation(operation: str) -> None:
	CLUB_OPERATIONS.labels(operation=operation).inc()


def inc_club_rejection(operation: str, reason: str) -> None:
	CLUB_REJECTIONS.labels(operation=operation, reason=reason).inc()


def inc_identity_event(event: str, result: str = "ok") -> None:
	IDENTITY_EVENTS.labels(event=event, result=result).inc()


def inc_auth_failure(reason: str) -> None:
	AUTH_FAILURES.labels(reason=reason).inc()


def render_latest() -> tuple[bytes, str]:
	return generate_latest(), CONTENT_TYPE_LATEST
