"""Policy guards for identity flows."""

from __future__ import annotations

PASSWORD_MIN_LEN = 8


class IdentityPolicyError(Exception):
	def __init__(self, reason: str) -> None:
		super().__init__(reason)
		self.reason = reason


class PasswordTooWeak(IdentityPolicyError):
	pass


def normalise_username(username: str) -> str:
	return username.strip()


def normalise_email(email: str) -> str:
	return email.strip().lower()


def guard_password(password: str) -> None:
	if len(password) < PASSWORD_MIN_LEN:
		raise PasswordTooWeak("password_too_short")
