"""Claim workflow: submit, decide and expire claims on ghost members.

Decisions that turn out to be impossible at approval time (the member was linked or
removed meanwhile, or the requester already joined the family) still *commit* the
claim as Rejected and notify the requester; the caller then surfaces the failure.
``Outcome`` carries that pairing back to the service layer.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from legatia.domain.directory import require_profile
from legatia.domain.errors import (
    AlreadyLinkedError,
    AlreadyMemberError,
    DuplicateClaimError,
    NotFoundError,
    NotPendingError,
    NotRequesterError,
)
from legatia.domain.families import require_admin, require_family
from legatia.domain.model import ClaimRequest, MemberSnapshot, ProfileSnapshot
from legatia.domain.outcome import Outcome
from legatia.domain.validation import validate_reason

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime, timedelta
    from uuid import UUID

    from legatia.domain.errors import WorkflowError
    from legatia.domain.model import Identity
    from legatia.domain.notifications import NotificationDispatcher
    from legatia.domain.ports import FamilyTreeRepositories

log = getLogger(__name__)


def expire_if_stale(
    claim: ClaimRequest,
    dispatcher: NotificationDispatcher,
    *,
    now: datetime,
    retention: timedelta,
) -> bool:
    if not claim.is_stale(now=now, retention=retention):
        return False
    claim.expire(now=now)
    dispatcher.claim_expired(claim, now=now)
    log.info("Claim %s expired", claim.id)
    return True


def _expire_all(
    claims: Iterable[ClaimRequest],
    dispatcher: NotificationDispatcher,
    *,
    now: datetime,
    retention: timedelta,
) -> list[ClaimRequest]:
    return [
        claim
        for claim in claims
        if expire_if_stale(claim, dispatcher, now=now, retention=retention)
    ]


def submit_claim(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    family_id: UUID,
    member_id: UUID,
    now: datetime,
    retention: timedelta,
) -> ClaimRequest:
    profile = require_profile(repositories, caller)
    family = require_family(repositories, family_id)
    member = family.require_member(member_id)
    if not member.is_ghost:
        raise AlreadyLinkedError("This profile has already been claimed")
    if family.member_linked_to(caller) is not None:
        raise AlreadyMemberError("You are already a member of this family")

    existing = repositories.claims.find_pending(requester=caller, member_id=member_id)
    if existing is not None and not expire_if_stale(
        existing, dispatcher, now=now, retention=retention
    ):
        raise DuplicateClaimError("You already have a pending claim for this profile")

    claim = ClaimRequest(
        requester=caller,
        family_id=family.id,
        family_name=family.name,
        member_id=member.id,
        requester_profile=ProfileSnapshot.of(profile),
        member_snapshot=MemberSnapshot.of(member),
        created_at=now,
    )
    repositories.claims.add(claim)
    dispatcher.claim_submitted(claim, admin=family.admin, now=now)
    log.info("Claim %s submitted by %s for member %s", claim.id, caller, member.id)
    return claim


def process_claim(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    claim_id: UUID,
    approve: bool,
    admin_message: str | None = None,
    now: datetime,
    retention: timedelta,
) -> Outcome[ClaimRequest]:
    claim = repositories.claims.get(claim_id)
    if claim is None:
        raise NotFoundError("Claim request not found")
    family = require_family(repositories, claim.family_id)
    require_admin(family, caller, "process claims")
    note = validate_reason(admin_message) if admin_message and admin_message.strip() else None

    if expire_if_stale(claim, dispatcher, now=now, retention=retention):
        return Outcome(claim, NotPendingError("Claim request has expired"))
    if not claim.is_pending:
        raise NotPendingError(f"Claim request has already been {claim.status.value.lower()}")

    if not approve:
        claim.reject(now=now, note=note)
        dispatcher.claim_decided(claim, now=now)
        log.info("Claim %s rejected by %s", claim.id, caller)
        return Outcome(claim)

    failure = _approval_blocker(repositories, claim)
    if failure is not None:
        claim.reject(now=now, note=failure.message)
        dispatcher.claim_decided(claim, now=now)
        log.info("Claim %s force-rejected: %s", claim.id, failure.kind.value)
        return Outcome(claim, failure)

    family.link_member(claim.member_id, claim.requester, now=now)
    claim.approve(now=now, note=note)
    dispatcher.claim_decided(claim, now=now)
    log.info(
        "Claim %s approved; member %s linked to %s", claim.id, claim.member_id, claim.requester
    )
    return Outcome(claim)


def _approval_blocker(
    repositories: FamilyTreeRepositories, claim: ClaimRequest
) -> WorkflowError | None:
    family = require_family(repositories, claim.family_id)
    member = family.member(claim.member_id)
    if member is None:
        return NotFoundError("The claimed family member no longer exists")
    if not member.is_ghost:
        return AlreadyLinkedError("This profile has already been claimed by another user")
    if family.member_linked_to(claim.requester) is not None:
        return AlreadyMemberError("The requester is already a member of this family")
    return None


def list_my_claims(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    now: datetime,
    retention: timedelta,
) -> list[ClaimRequest]:
    """Newest first; stale pending entries are expired on the way out."""

    claims = repositories.claims.list_by_requester(caller)
    _expire_all(claims, dispatcher, now=now, retention=retention)
    return claims


def list_pending_for_admin(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    now: datetime,
    retention: timedelta,
) -> list[ClaimRequest]:
    family_ids = [family.id for family in repositories.families.list_administered_by(caller)]
    if not family_ids:
        return []
    claims = repositories.claims.list_pending_for_families(family_ids)
    _expire_all(claims, dispatcher, now=now, retention=retention)
    return [claim for claim in claims if claim.is_pending]


def get_claim(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    claim_id: UUID,
    now: datetime,
    retention: timedelta,
) -> ClaimRequest:
    claim = repositories.claims.get(claim_id)
    if claim is None:
        raise NotFoundError("Claim request not found")
    if claim.requester != caller:
        family = repositories.families.get(claim.family_id)
        if family is None or not family.is_admin(caller):
            raise NotRequesterError("You can only view your own claim requests")
    expire_if_stale(claim, dispatcher, now=now, retention=retention)
    return claim


def sweep_stale_claims(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    now: datetime,
    retention: timedelta,
) -> list[ClaimRequest]:
    stale = repositories.claims.list_stale_pending(created_before=now - retention)
    return _expire_all(stale, dispatcher, now=now, retention=retention)
