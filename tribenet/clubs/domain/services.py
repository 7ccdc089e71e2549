"""Service layer orchestrating club and membership operations."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from tribenet.clubs.domain import models, policies, repo as repo_module
from tribenet.clubs.domain.exceptions import ClubError, ConflictError, NotFoundError
from tribenet.clubs.schemas import dto
from tribenet.domain.identity.repo import UsersRepository
from tribenet.infra.auth import AuthenticatedUser
from tribenet.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


@contextmanager
def track(operation: str) -> Iterator[None]:
	"""Count a committed operation, or the domain rule that rejected it."""
	try:
		yield
	except ClubError as exc:
		obs_metrics.inc_club_rejection(operation, exc.detail)
		raise
	obs_metrics.inc_club_operation(operation)


class ClubsService:
	"""Membership lifecycle and authorization engine.

	Club-scoped mutations run in one transaction and lock the club row first,
	so two concurrent leave/remove calls on the same club are serialised and
	the second one sees the admin set left by the first.
	"""

	def __init__(
		self,
		repository: repo_module.ClubsRepository | None = None,
		users: UsersRepository | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.users = users or UsersRepository()

	# ------------------------------------------------------------------
	# Helpers

	@staticmethod
	def _club_to_response(club: models.Club, *, member_count: int) -> dto.ClubResponse:
		return dto.ClubResponse(
			id=club.id,
			name=club.name,
			description=club.description,
			category=club.category,
			free=club.free,
			price=club.price,
			creator_id=club.creator_id,
			member_count=member_count,
			created_at=club.created_at,
			updated_at=club.updated_at,
		)

	@staticmethod
	def _member_to_response(member: models.MemberView) -> dto.MemberResponse:
		return dto.MemberResponse(
			user_id=member.user_id,
			name=member.name,
			username=member.username,
			email=member.email,
			club_role=member.club_role,
			joined_at=member.joined_at,
		)

	async def _require_club(self, club_id: UUID, *, conn=None, for_update: bool = False) -> models.Club:
		club = await self.repo.get_club(club_id, conn=conn, for_update=for_update)
		if club is None:
			raise NotFoundError("club_not_found")
		return club

	# ------------------------------------------------------------------
	# Clubs

	async def create_club(self, user: AuthenticatedUser, payload: dto.ClubCreateRequest) -> dto.ClubResponse:
		"""Create a club and enrol its creator as the first club admin."""
		with track("create_club"):
			price = policies.normalise_pricing(payload.free, payload.price)
			async with self.repo.transaction() as conn:
				club = await self.repo.create_club(
					name=payload.name,
					description=payload.description,
					category=payload.category,
					free=payload.free,
					price=price,
					creator_id=user.id,
					conn=conn,
				)
				await self.repo.add_membership(club.id, user.id, role=models.ClubRole.ADMIN, conn=conn)
		_LOG.info("club.created", extra={"club_id": str(club.id), "user_id": str(user.id)})
		return self._club_to_response(club, member_count=1)

	async def get_club(self, club_id: UUID) -> dto.ClubResponse:
		club = await self._require_club(club_id)
		counts = await self.repo.member_counts([club.id])
		return self._club_to_response(club, member_count=counts.get(club.id, 0))

	async def list_clubs(self) -> dto.ClubListResponse:
		clubs = await self.repo.list_clubs()
		counts = await self.repo.member_counts(club.id for club in clubs)
		return dto.ClubListResponse(
			items=[self._club_to_response(club, member_count=counts.get(club.id, 0)) for club in clubs]
		)

	async def update_club(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		payload: dto.ClubUpdateRequest,
	) -> dto.ClubResponse:
		"""Apply the fields present in ``payload``; only a club admin may do so."""
		changes = payload.changes()
		with track("update_club"):
			async with self.repo.transaction() as conn:
				club = await self._require_club(club_id, conn=conn, for_update=True)
				membership = await self.repo.get_membership(club_id, user.id, conn=conn)
				policies.assert_club_admin(membership)
				if "free" in changes or "price" in changes:
					free = changes.get("free", club.free)
					if "price" in changes:
						price = changes["price"]
					else:
						# Switching to free drops the old price unless one is sent.
						price = None if free else club.price
					changes["price"] = policies.normalise_pricing(free, price)
				updated = await self.repo.update_club(club_id, changes, conn=conn)
				counts = await self.repo.member_counts([club_id], conn=conn)
		if changes:
			_LOG.info(
				"club.updated",
				extra={"club_id": str(club_id), "user_id": str(user.id), "fields": sorted(changes)},
			)
		return self._club_to_response(updated, member_count=counts.get(club_id, 0))

	async def delete_club(self, user: AuthenticatedUser, club_id: UUID) -> None:
		"""Delete a club with all its memberships. Global admins only."""
		with track("delete_club"):
			async with self.repo.transaction() as conn:
				await self._require_club(club_id, conn=conn, for_update=True)
				policies.assert_global_admin(user.global_role)
				await self.repo.delete_club(club_id, conn=conn)
		_LOG.info("club.deleted", extra={"club_id": str(club_id), "user_id": str(user.id)})

	# ------------------------------------------------------------------
	# Memberships

	async def join_club(self, user: AuthenticatedUser, club_id: UUID) -> models.Membership:
		with track("join_club"):
			async with self.repo.transaction() as conn:
				await self._require_club(club_id, conn=conn, for_update=True)
				if await self.repo.get_membership(club_id, user.id, conn=conn) is not None:
					raise ConflictError("already_member")
				membership = await self.repo.add_membership(
					club_id, user.id, role=models.ClubRole.MEMBER, conn=conn
				)
		_LOG.info("club.member_joined", extra={"club_id": str(club_id), "user_id": str(user.id)})
		return membership

	async def leave_club(self, user: AuthenticatedUser, club_id: UUID) -> None:
		"""Drop the caller's membership unless they are the club's only admin."""
		with track("leave_club"):
			async with self.repo.transaction() as conn:
				club = await self.repo.get_club(club_id, conn=conn, for_update=True)
				membership = None
				if club is not None:
					membership = await self.repo.get_membership(club_id, user.id, conn=conn)
				if membership is None:
					raise NotFoundError("membership_not_found")
				admins = await self.repo.list_admins(club_id, conn=conn)
				policies.ensure_not_last_admin(membership, admins, detail="last_admin_cannot_leave")
				await self.repo.delete_membership(membership.id, conn=conn)
		_LOG.info("club.member_left", extra={"club_id": str(club_id), "user_id": str(user.id)})

	async def list_members(self, club_id: UUID) -> list[dto.MemberResponse]:
		await self._require_club(club_id)
		members = await self.repo.list_members(club_id)
		return [self._member_to_response(member) for member in members]

	async def promote_member(
		self,
		user: AuthenticatedUser,
		club_id: UUID,
		target_user_id: UUID,
	) -> models.Membership:
		with track("promote_member"):
			async with self.repo.transaction() as conn:
				await self._require_club(club_id, conn=conn, for_update=True)
				actor = await self.repo.get_membership(club_id, user.id, conn=conn)
				policies.assert_club_admin(actor)
				target = await self.repo.get_membership(club_id, target_user_id, conn=conn)
				if target is None:
					raise NotFoundError("member_not_found")
				policies.ensure_promotable(target)
				promoted = await self.repo.set_membership_role(target.id, models.ClubRole.ADMIN, conn=conn)
		_LOG.info(
			"club.member_promoted",
			extra={"club_id": str(club_id), "user_id": str(user.id), "target_user_id": str(target_user_id)},
		)
		return promoted

	async def remove_member(self, user: AuthenticatedUser, club_id: UUID, target_user_id: UUID) -> None:
		"""Remove another member. Removing oneself is always refused; use leave."""
		with track("remove_member"):
			async with self.repo.transaction() as conn:
				await self._require_club(club_id, conn=conn, for_update=True)
				policies.ensure_not_self(user.id, target_user_id, detail="cannot_remove_self")
				actor = await self.repo.get_membership(club_id, user.id, conn=conn)
				policies.assert_club_admin(actor)
				target = await self.repo.get_membership(club_id, target_user_id, conn=conn)
				if target is None:
					raise NotFoundError("member_not_found")
				if target.is_admin and await self.repo.count_admins(club_id, conn=conn) <= 1:
					raise ConflictError("last_admin")
				await self.repo.delete_membership(target.id, conn=conn)
		_LOG.info(
			"club.member_removed",
			extra={"club_id": str(club_id), "user_id": str(user.id), "target_user_id": str(target_user_id)},
		)

	async def list_user_clubs(self, user_id: UUID) -> list[dto.UserClubResponse]:
		if await self.users.get_user(user_id) is None:
			raise NotFoundError("user_not_found")
		views = await self.repo.list_user_clubs(user_id)
		return [
			dto.UserClubResponse(
				id=view.club.id,
				name=view.club.name,
				description=view.club.description,
				category=view.club.category,
				free=view.club.free,
				price=view.club.price,
				club_role=view.club_role,
				member_count=view.member_count,
			)
			for view in views
		]
