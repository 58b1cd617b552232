"""The remote actor: every call the outside world can make, as one service object.

Each call runs in its own unit of work. Mutating calls additionally hold the
per-family lock for the whole unit of work (commit included), so competing decisions
on the same family are applied one after the other and each sees the committed
result of the previous one.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from legatia.config import WorkflowPolicy
from legatia.domain import claims, directory, families, invitations, matching, notifications
from legatia.domain.errors import NotFoundError
from legatia.domain.notifications import NotificationDispatcher
from legatia.domain.ports import ConcurrentUpdateError
from legatia.service.locks import FamilyLockRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import date
    from uuid import UUID

    from legatia.domain.directory import UserMatch
    from legatia.domain.matching import GhostProfileMatch, SimilarityScorer
    from legatia.domain.model import (
        ClaimRequest,
        Family,
        FamilyInvitation,
        Identity,
        Member,
        MemberUpdate,
        Notification,
        Profile,
        ProfileUpdate,
        Sex,
    )
    from legatia.domain.ports import FamilyTreeRepositories, FamilyTreeUnitOfWork

log = getLogger(__name__)

type Clock = Callable[[], datetime]
type UnitOfWorkFactory = Callable[[], FamilyTreeUnitOfWork]

_COMMIT_ATTEMPTS = 3


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class _Transaction:
    repositories: FamilyTreeRepositories
    dispatcher: NotificationDispatcher


@dataclass(frozen=True, slots=True)
class SweepResult:
    expired_claims: int
    expired_invitations: int


class FamilyTreeService:
    """Server side of the remote call surface; ``caller`` is the authenticated identity."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        policy: WorkflowPolicy | None = None,
        locks: FamilyLockRegistry | None = None,
        clock: Clock = utc_now,
        scorer: SimilarityScorer = matching.default_scorer,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self.policy = policy or WorkflowPolicy()
        self._locks = locks or FamilyLockRegistry()
        self._clock = clock
        self._scorer = scorer

    @contextmanager
    def _transaction(self) -> Iterator[_Transaction]:
        with self._unit_of_work_factory() as uow:
            repositories = uow.repositories
            yield _Transaction(repositories, NotificationDispatcher(repositories))
            uow.commit()

    @contextmanager
    def _locked(self, family_ids: Iterable[UUID]) -> Iterator[_Transaction]:
        with self._locks.hold(*family_ids), self._transaction() as tx:
            yield tx

    def _retrying[T](
        self, family_ids: Iterable[UUID], operation: Callable[[_Transaction], T]
    ) -> T:
        """Run ``operation`` under the family locks, again if its commit loses a race.

        The lock registry only orders callers inside this process; a writer in another
        process surfaces as ``ConcurrentUpdateError`` at commit. The re-run sees that
        writer's committed state and reaches its own decision from there.
        """

        ids = list(family_ids)
        attempt = 1
        while True:
            try:
                with self._locked(ids) as tx:
                    return operation(tx)
            except ConcurrentUpdateError:
                if attempt >= _COMMIT_ATTEMPTS:
                    raise
                log.info("Concurrent write on families %s; re-running (attempt %d)", ids, attempt)
                attempt += 1

    # Identity directory ------------------------------------------------------

    def create_profile(
        self,
        caller: Identity | None,
        *,
        full_name: str,
        surname_at_birth: str,
        sex: Sex,
        birthday: date,
        birth_city: str,
        birth_country: str,
    ) -> Profile:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return directory.create_profile(
                tx.repositories,
                identity=identity,
                full_name=full_name,
                surname_at_birth=surname_at_birth,
                sex=sex,
                birthday=birthday,
                birth_city=birth_city,
                birth_country=birth_country,
                now=self._clock(),
            )

    def update_profile(self, caller: Identity | None, update: ProfileUpdate) -> Profile:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return directory.update_profile(
                tx.repositories, identity=identity, update=update, now=self._clock()
            )

    def get_profile(self, caller: Identity | None) -> Profile:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return directory.require_profile(tx.repositories, identity)

    def search_users(self, caller: Identity | None, query: str) -> list[UserMatch]:
        directory.require_caller(caller)
        with self._transaction() as tx:
            return directory.search_users(
                tx.repositories, query=query, limit=self.policy.search_result_limit
            )

    # Family store ------------------------------------------------------------

    def create_family(
        self,
        caller: Identity | None,
        *,
        name: str,
        description: str,
        is_visible: bool = True,
    ) -> Family:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return families.create_family(
                tx.repositories,
                admin=identity,
                name=name,
                description=description,
                is_visible=is_visible,
                now=self._clock(),
            )

    def get_family(self, caller: Identity | None, family_id: UUID) -> Family:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return families.get_family(tx.repositories, caller=identity, family_id=family_id)

    def get_user_families(self, caller: Identity | None) -> list[Family]:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return families.list_user_families(tx.repositories, caller=identity)

    def add_family_member(
        self,
        caller: Identity | None,
        family_id: UUID,
        *,
        full_name: str,
        surname_at_birth: str,
        sex: Sex,
        relationship_to_admin: str,
        birthday: date | None = None,
        birth_city: str | None = None,
        birth_country: str | None = None,
        death_date: date | None = None,
    ) -> Member:
        identity = directory.require_caller(caller)
        with self._locked([family_id]) as tx:
            return families.add_ghost_member(
                tx.repositories,
                caller=identity,
                family_id=family_id,
                full_name=full_name,
                surname_at_birth=surname_at_birth,
                sex=sex,
                relationship_to_admin=relationship_to_admin,
                birthday=birthday,
                birth_city=birth_city,
                birth_country=birth_country,
                death_date=death_date,
                now=self._clock(),
            )

    def update_family_member(
        self,
        caller: Identity | None,
        family_id: UUID,
        member_id: UUID,
        update: MemberUpdate,
    ) -> Member:
        identity = directory.require_caller(caller)
        with self._locked([family_id]) as tx:
            return families.update_member(
                tx.repositories,
                caller=identity,
                family_id=family_id,
                member_id=member_id,
                update=update,
                now=self._clock(),
            )

    def remove_family_member(
        self, caller: Identity | None, family_id: UUID, member_id: UUID
    ) -> str:
        identity = directory.require_caller(caller)
        with self._locked([family_id]) as tx:
            families.remove_member(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                family_id=family_id,
                member_id=member_id,
                now=self._clock(),
            )
        return "Member removed successfully"

    def toggle_family_visibility(
        self, caller: Identity | None, family_id: UUID, *, is_visible: bool
    ) -> str:
        identity = directory.require_caller(caller)
        with self._locked([family_id]) as tx:
            families.set_visibility(
                tx.repositories,
                caller=identity,
                family_id=family_id,
                is_visible=is_visible,
                now=self._clock(),
            )
        return "Family visibility updated successfully"

    # Matcher -----------------------------------------------------------------

    def find_matching_ghost_profiles(self, caller: Identity | None) -> list[GhostProfileMatch]:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return matching.find_matching_ghost_profiles(
                tx.repositories,
                caller=identity,
                threshold=self.policy.match_threshold,
                scorer=self._scorer,
            )

    # Claims ------------------------------------------------------------------

    def submit_ghost_profile_claim(
        self, caller: Identity | None, family_id: UUID, member_id: UUID
    ) -> ClaimRequest:
        identity = directory.require_caller(caller)
        return self._retrying(
            [family_id],
            lambda tx: claims.submit_claim(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                family_id=family_id,
                member_id=member_id,
                now=self._clock(),
                retention=self.policy.claim_retention,
            ),
        )

    def process_ghost_profile_claim(
        self,
        caller: Identity | None,
        claim_id: UUID,
        *,
        approve: bool,
        admin_message: str | None = None,
    ) -> str:
        identity = directory.require_caller(caller)
        family_id = self._family_of_claim(claim_id)
        outcome = self._retrying(
            [family_id],
            lambda tx: claims.process_claim(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                claim_id=claim_id,
                approve=approve,
                admin_message=admin_message,
                now=self._clock(),
                retention=self.policy.claim_retention,
            ),
        )
        outcome.unwrap()
        return "Claim approved successfully" if approve else "Claim rejected"

    def get_my_claim_requests(self, caller: Identity | None) -> list[ClaimRequest]:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            mine = tx.repositories.claims.list_by_requester(identity)
            family_ids = [claim.family_id for claim in mine]
        with self._locked(family_ids) as tx:
            return claims.list_my_claims(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                now=self._clock(),
                retention=self.policy.claim_retention,
            )

    def get_pending_claims_for_admin(self, caller: Identity | None) -> list[ClaimRequest]:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            family_ids = [
                family.id for family in tx.repositories.families.list_administered_by(identity)
            ]
        with self._locked(family_ids) as tx:
            return claims.list_pending_for_admin(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                now=self._clock(),
                retention=self.policy.claim_retention,
            )

    def get_claim_request(self, caller: Identity | None, claim_id: UUID) -> ClaimRequest:
        identity = directory.require_caller(caller)
        family_id = self._family_of_claim(claim_id)
        with self._locked([family_id]) as tx:
            return claims.get_claim(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                claim_id=claim_id,
                now=self._clock(),
                retention=self.policy.claim_retention,
            )

    def _family_of_claim(self, claim_id: UUID) -> UUID:
        with self._transaction() as tx:
            claim = tx.repositories.claims.get(claim_id)
            if claim is None:
                raise NotFoundError("Claim request not found")
            return claim.family_id

    # Invitations -------------------------------------------------------------

    def send_family_invitation(
        self,
        caller: Identity | None,
        family_id: UUID,
        user_id: Identity,
        relationship_to_admin: str,
        message: str | None = None,
    ) -> str:
        identity = directory.require_caller(caller)
        invitation = self._retrying(
            [family_id],
            lambda tx: invitations.send_invitation(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                family_id=family_id,
                user_id=user_id,
                relationship_to_admin=relationship_to_admin,
                message=message,
                now=self._clock(),
                retention=self.policy.invitation_retention,
            ),
        )
        return str(invitation.id)

    def process_family_invitation(
        self, caller: Identity | None, invitation_id: UUID, *, accept: bool
    ) -> str:
        identity = directory.require_caller(caller)
        family_id = self._family_of_invitation(invitation_id)
        outcome = self._retrying(
            [family_id],
            lambda tx: invitations.process_invitation(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                invitation_id=invitation_id,
                accept=accept,
                now=self._clock(),
                retention=self.policy.invitation_retention,
            ),
        )
        outcome.unwrap()
        return "Invitation accepted" if accept else "Invitation declined"

    def get_my_invitations(self, caller: Identity | None) -> list[FamilyInvitation]:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            received = tx.repositories.invitations.list_by_invitee(identity)
            family_ids = [invitation.family_id for invitation in received]
        with self._locked(family_ids) as tx:
            return invitations.list_received(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                now=self._clock(),
                retention=self.policy.invitation_retention,
            )

    def get_sent_invitations(self, caller: Identity | None) -> list[FamilyInvitation]:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            sent = tx.repositories.invitations.list_by_inviter(identity)
            family_ids = [invitation.family_id for invitation in sent]
        with self._locked(family_ids) as tx:
            return invitations.list_sent(
                tx.repositories,
                tx.dispatcher,
                caller=identity,
                now=self._clock(),
                retention=self.policy.invitation_retention,
            )

    def _family_of_invitation(self, invitation_id: UUID) -> UUID:
        with self._transaction() as tx:
            invitation = tx.repositories.invitations.get(invitation_id)
            if invitation is None:
                raise NotFoundError("Invitation not found")
            return invitation.family_id

    # Notifications -----------------------------------------------------------

    def get_my_notifications(self, caller: Identity | None) -> list[Notification]:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return notifications.list_notifications(tx.repositories, recipient=identity)

    def get_unread_notification_count(self, caller: Identity | None) -> int:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            return notifications.unread_count(tx.repositories, recipient=identity)

    def mark_notification_read(self, caller: Identity | None, notification_id: UUID) -> str:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            notifications.mark_read(
                tx.repositories, recipient=identity, notification_id=notification_id
            )
        return "Notification marked as read"

    def mark_all_notifications_read(self, caller: Identity | None) -> str:
        identity = directory.require_caller(caller)
        with self._transaction() as tx:
            changed = notifications.mark_all_read(tx.repositories, recipient=identity)
        return f"Marked {changed} notifications as read"

    # Maintenance -------------------------------------------------------------

    def sweep_expired(self) -> SweepResult:
        """Expire every stale pending claim and invitation."""

        now = self._clock()
        policy = self.policy
        with self._transaction() as tx:
            family_ids = {
                claim.family_id
                for claim in tx.repositories.claims.list_stale_pending(
                    created_before=now - policy.claim_retention
                )
            } | {
                invitation.family_id
                for invitation in tx.repositories.invitations.list_stale_pending(
                    created_before=now - policy.invitation_retention
                )
            }
        with self._locked(family_ids) as tx:
            expired_claims = claims.sweep_stale_claims(
                tx.repositories, tx.dispatcher, now=now, retention=policy.claim_retention
            )
            expired_invitations = invitations.sweep_stale_invitations(
                tx.repositories, tx.dispatcher, now=now, retention=policy.invitation_retention
            )
        log.info(
            "Sweep expired %d claims and %d invitations",
            len(expired_claims),
            len(expired_invitations),
        )
        return SweepResult(
            expired_claims=len(expired_claims), expired_invitations=len(expired_invitations)
        )
