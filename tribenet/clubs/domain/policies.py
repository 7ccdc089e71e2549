"""Authorization policies for club operations.

Global roles and club roles are separate tiers. Every predicate here takes the
role it depends on as an explicit argument; none of them derives a club role
from a global role or the other way around.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from tribenet.clubs.domain import models
from tribenet.clubs.domain.exceptions import ConflictError, UnauthorizedError, ValidationError
from tribenet.domain.identity.models import GlobalRole


def is_club_admin(membership: models.Membership | None) -> bool:
	return membership is not None and membership.club_role is models.ClubRole.ADMIN


def assert_club_admin(membership: models.Membership | None, *, detail: str = "club_admin_required") -> None:
	if not is_club_admin(membership):
		raise UnauthorizedError(detail)


def assert_global_admin(global_role: GlobalRole, *, detail: str = "system_admin_required") -> None:
	if global_role is not GlobalRole.ADMIN:
		raise UnauthorizedError(detail)


def ensure_not_self(actor_id: UUID, target_id: UUID, *, detail: str) -> None:
	if actor_id == target_id:
		raise ConflictError(detail)


def ensure_not_last_admin(
	membership: models.Membership,
	admins: list[models.Membership],
	*,
	detail: str = "last_admin",
) -> None:
	"""Reject removing ``membership`` when it is the club's only admin row."""
	if membership.club_role is not models.ClubRole.ADMIN:
		return
	remaining = [admin for admin in admins if admin.id != membership.id]
	if not remaining:
		raise ConflictError(detail)


def ensure_promotable(membership: models.Membership) -> None:
	if membership.club_role is models.ClubRole.ADMIN:
		raise ConflictError("already_club_admin")


def normalise_pricing(free: bool, price: Optional[Decimal]) -> Optional[Decimal]:
	"""Validate the free/price pair and return the price to store.

	A free club stores no price (an explicit zero is accepted and dropped);
	a paid club needs a positive price.
	"""
	if free:
		if price is not None and price != 0:
			raise ValidationError("free_club_has_price")
		return None
	if price is None:
		raise ValidationError("price_required_for_paid_club")
	if price <= 0:
		raise ValidationError("price_must_be_positive")
	return price
