"""System administration: account removal and forced club deletion."""

from __future__ import annotations

import logging
from uuid import UUID

from tribenet.clubs.domain import models, policies, repo as repo_module
from tribenet.clubs.domain.exceptions import NotFoundError
from tribenet.clubs.domain.services import track
from tribenet.domain.identity import schemas as identity_schemas
from tribenet.domain.identity.repo import UsersRepository
from tribenet.domain.identity.service import to_user_out
from tribenet.infra.auth import AuthenticatedUser
from tribenet.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


class AdminService:
	"""Operations reserved to holders of the global ADMIN role."""

	def __init__(
		self,
		repository: repo_module.ClubsRepository | None = None,
		users: UsersRepository | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.users = users or UsersRepository()

	async def list_users_admin(self, user: AuthenticatedUser) -> list[identity_schemas.UserOut]:
		policies.assert_global_admin(user.global_role)
		users = await self.users.list_users()
		return [to_user_out(account) for account in users]

	async def delete_user(self, user: AuthenticatedUser, target_user_id: UUID) -> list[UUID]:
		"""Delete an account together with its memberships.

		Where the account held the only admin membership of a club that still
		has members, the longest-standing remaining member becomes admin.
		Clubs the account created stay, with no creator. Returns the ids of
		the clubs that received a new admin.
		"""
		with track("delete_user"):
			policies.assert_global_admin(user.global_role)
			async with self.repo.transaction() as conn:
				# The user row lock blocks new clubs and memberships referencing the target.
				target = await self.users.get_user(target_user_id, conn=conn, for_update=True)
				if target is None:
					raise NotFoundError("user_not_found")
				policies.ensure_not_self(user.id, target_user_id, detail="cannot_delete_self")
				memberships = await self.repo.list_user_memberships(target_user_id, conn=conn)
				handed_over: list[UUID] = []
				# Lock clubs in id order so concurrent deletions cannot deadlock.
				for club_id in sorted({m.club_id for m in memberships}):
					await self.repo.get_club(club_id, conn=conn, for_update=True)
					# Re-read under the club lock; the role may have changed since the listing.
					membership = await self.repo.get_membership(club_id, target_user_id, conn=conn)
					if membership is None or not membership.is_admin:
						continue
					admins = await self.repo.list_admins(club_id, conn=conn)
					if any(admin.user_id != target_user_id for admin in admins):
						continue
					successor = await self.repo.find_successor(
						club_id, exclude_user_id=target_user_id, conn=conn
					)
					if successor is None:
						continue
					await self.repo.set_membership_role(successor.id, models.ClubRole.ADMIN, conn=conn)
					handed_over.append(club_id)
				removed = await self.repo.delete_user_memberships(target_user_id, conn=conn)
				await self.users.delete_user(target_user_id, conn=conn)
		obs_metrics.inc_identity_event("delete_user")
		_LOG.info(
			"user.deleted",
			extra={
				"user_id": str(user.id),
				"target_user_id": str(target_user_id),
				"memberships_removed": removed,
				"clubs_handed_over": [str(club_id) for club_id in handed_over],
			},
		)
		return handed_over

	async def force_delete_club(self, user: AuthenticatedUser, club_id: UUID) -> None:
		with track("force_delete_club"):
			policies.assert_global_admin(user.global_role)
			async with self.repo.transaction() as conn:
				club = await self.repo.get_club(club_id, conn=conn, for_update=True)
				if club is None:
					raise NotFoundError("club_not_found")
				await self.repo.delete_club(club_id, conn=conn)
		_LOG.info("club.force_deleted", extra={"club_id": str(club_id), "user_id": str(user.id)})
