from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from legatia.domain import claims
from legatia.domain.errors import (
    AlreadyLinkedError,
    AlreadyMemberError,
    DuplicateClaimError,
    InvalidInputError,
    NotAdminError,
    NotFoundError,
    NotPendingError,
    NotRequesterError,
)
from legatia.domain.families import MEMBER_REMOVED_REASON, remove_member
from legatia.domain.model import ClaimStatus, NotificationType
from tests.helpers.family_tree import (
    T0,
    dispatcher_for,
    make_family,
    make_ghost,
    make_profile,
    make_repositories,
)

if TYPE_CHECKING:
    from uuid import UUID

    from legatia.domain.model import ClaimRequest, Family, Member
    from legatia.domain.outcome import Outcome
    from tests.helpers.family_tree import FakeFamilyTreeRepositories

RETENTION = timedelta(days=30)
EXPIRED_AT = T0 + RETENTION + timedelta(seconds=1)


@pytest.fixture
def family() -> Family:
    return make_family(admin="admin")


@pytest.fixture
def ghost(family: Family) -> Member:
    return make_ghost(family)


@pytest.fixture
def repositories(family: Family) -> FakeFamilyTreeRepositories:
    return make_repositories(
        profiles=[
            make_profile("admin", full_name="Ada Admin", surname_at_birth="Admin"),
            make_profile("jane"),
            make_profile("john", full_name="John Doe", surname_at_birth="Doe"),
        ],
        families=[family],
    )


def _submit(
    repositories: FakeFamilyTreeRepositories,
    family: Family,
    member_id: UUID,
    *,
    caller: str = "jane",
    now: datetime = T0,
) -> ClaimRequest:
    return claims.submit_claim(
        repositories,
        dispatcher_for(repositories),
        caller=caller,
        family_id=family.id,
        member_id=member_id,
        now=now,
        retention=RETENTION,
    )


def _process(
    repositories: FakeFamilyTreeRepositories,
    claim: ClaimRequest,
    *,
    approve: bool,
    caller: str = "admin",
    admin_message: str | None = None,
    now: datetime = T0,
) -> Outcome[ClaimRequest]:
    return claims.process_claim(
        repositories,
        dispatcher_for(repositories),
        caller=caller,
        claim_id=claim.id,
        approve=approve,
        admin_message=admin_message,
        now=now,
        retention=RETENTION,
    )


def test_submit_creates_pending_claim_and_notifies_admin(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    claim = _submit(repositories, family, ghost.id)

    assert claim.status is ClaimStatus.PENDING
    assert claim.requester_profile.identity == "jane"
    assert claim.member_snapshot.member_id == ghost.id
    assert repositories.claims.get(claim.id) is claim
    [notification] = repositories.notifications.sent_to("admin")
    assert notification.notification_type is NotificationType.GHOST_PROFILE_CLAIM
    assert notification.action_url == f"/claims/{claim.id}"
    assert notification.subject_id == str(claim.id)


def test_second_pending_claim_is_a_duplicate_until_first_is_terminal(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    first = _submit(repositories, family, ghost.id)

    with pytest.raises(DuplicateClaimError):
        _submit(repositories, family, ghost.id)

    _process(repositories, first, approve=False).unwrap()
    second = _submit(repositories, family, ghost.id)

    assert second.is_pending
    assert second.id != first.id


def test_stale_pending_claim_does_not_block_resubmission(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    first = _submit(repositories, family, ghost.id)

    second = _submit(repositories, family, ghost.id, now=EXPIRED_AT)

    assert first.status is ClaimStatus.EXPIRED
    assert second.is_pending
    alerts = [
        n
        for n in repositories.notifications.sent_to("jane")
        if n.notification_type is NotificationType.SYSTEM_ALERT
    ]
    assert len(alerts) == 1


def test_submit_preconditions(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    with pytest.raises(NotFoundError, match="User profile not found"):
        _submit(repositories, family, ghost.id, caller="stranger")
    with pytest.raises(NotFoundError, match="Family member not found"):
        _submit(repositories, family, make_family().id)

    other = make_ghost(family, full_name="Janet Doe")
    family.link_member(other.id, "jane", now=T0)
    with pytest.raises(AlreadyMemberError):
        _submit(repositories, family, ghost.id)

    family.link_member(ghost.id, "john", now=T0)
    with pytest.raises(AlreadyLinkedError):
        _submit(repositories, family, ghost.id)


def test_approval_links_member_and_notifies_requester(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    claim = _submit(repositories, family, ghost.id)
    later = T0 + timedelta(hours=2)

    outcome = _process(repositories, claim, approve=True, admin_message="Welcome!", now=later)

    assert outcome.failure is None
    assert claim.status is ClaimStatus.APPROVED
    assert claim.decision_note == "Welcome!"
    assert ghost.linked_identity == "jane"
    [notification] = repositories.notifications.sent_to("jane")
    assert notification.title == "Ghost profile claim approved"
    assert notification.action_url == f"/family/{family.id}"
    assert notification.message.endswith("Welcome!")


def test_only_the_admin_can_process(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    claim = _submit(repositories, family, ghost.id)

    with pytest.raises(NotAdminError):
        _process(repositories, claim, approve=True, caller="jane")
    with pytest.raises(InvalidInputError):
        _process(repositories, claim, approve=True, admin_message="x" * 201)
    assert claim.is_pending


def test_processing_a_terminal_claim_is_not_pending_on_every_retry(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    claim = _submit(repositories, family, ghost.id)
    _process(repositories, claim, approve=True).unwrap()
    notifications_before = len(repositories.notifications.items)

    for approve in (True, False, True):
        with pytest.raises(NotPendingError, match="already been approved"):
            _process(repositories, claim, approve=approve)

    assert len(repositories.notifications.items) == notifications_before
    assert ghost.linked_identity == "jane"


def test_losing_claim_is_force_rejected_with_already_linked(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    winner = _submit(repositories, family, ghost.id, caller="jane")
    loser = _submit(repositories, family, ghost.id, caller="john")
    _process(repositories, winner, approve=True).unwrap()

    outcome = _process(repositories, loser, approve=True)

    assert isinstance(outcome.failure, AlreadyLinkedError)
    assert loser.status is ClaimStatus.REJECTED
    assert ghost.linked_identity == "jane"
    with pytest.raises(AlreadyLinkedError):
        outcome.unwrap()
    [notice] = repositories.notifications.sent_to("john")
    assert notice.title == "Ghost profile claim rejected"


def test_stale_claim_expires_instead_of_being_decided(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    claim = _submit(repositories, family, ghost.id)

    outcome = _process(repositories, claim, approve=True, now=EXPIRED_AT)

    assert isinstance(outcome.failure, NotPendingError)
    assert claim.status is ClaimStatus.EXPIRED
    assert ghost.is_ghost


def test_removing_a_member_rejects_its_pending_claims(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    claim = _submit(repositories, family, ghost.id)

    remove_member(
        repositories,
        dispatcher_for(repositories),
        caller="admin",
        family_id=family.id,
        member_id=ghost.id,
        now=T0,
    )

    assert claim.status is ClaimStatus.REJECTED
    assert claim.decision_note == MEMBER_REMOVED_REASON
    assert family.member(ghost.id) is None


def test_claim_listing_and_visibility(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    claim = _submit(repositories, family, ghost.id)
    dispatcher = dispatcher_for(repositories)

    mine = claims.list_my_claims(
        repositories, dispatcher, caller="jane", now=T0, retention=RETENTION
    )
    pending = claims.list_pending_for_admin(
        repositories, dispatcher, caller="admin", now=T0, retention=RETENTION
    )

    assert [c.id for c in mine] == [claim.id]
    assert [c.id for c in pending] == [claim.id]
    assert claims.get_claim(
        repositories, dispatcher, caller="admin", claim_id=claim.id, now=T0, retention=RETENTION
    ) is claim
    with pytest.raises(NotRequesterError):
        claims.get_claim(
            repositories,
            dispatcher,
            caller="john",
            claim_id=claim.id,
            now=T0,
            retention=RETENTION,
        )


def test_sweep_expires_only_stale_pending_claims(
    repositories: FakeFamilyTreeRepositories, family: Family, ghost: Member
) -> None:
    stale = _submit(repositories, family, ghost.id, caller="jane")
    other = make_ghost(family, full_name="John Doe")
    fresh = _submit(repositories, family, other.id, caller="john", now=T0 + timedelta(days=20))

    expired = claims.sweep_stale_claims(
        repositories, dispatcher_for(repositories), now=EXPIRED_AT, retention=RETENTION
    )

    assert expired == [stale]
    assert stale.status is ClaimStatus.EXPIRED
    assert fresh.is_pending
