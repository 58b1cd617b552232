from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

import pytest

from legatia.domain.errors import (
    AlreadyLinkedError,
    NotAuthenticatedError,
    NotMemberError,
    NotPendingError,
)
from legatia.domain.model import ClaimStatus, InvitationStatus, Sex
from legatia.service import SweepResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from legatia.domain.model import Family, Member, Profile
    from legatia.service import FamilyTreeService
    from tests.helpers.family_tree import MutableClock


@pytest.fixture
def doe_family(
    service: FamilyTreeService, register: Callable[..., Profile]
) -> tuple[Family, Member]:
    register("admin", full_name="Ada Admin", surname_at_birth="Admin")
    family = service.create_family("admin", name="Doe", description="The Doe family tree")
    ghost = service.add_family_member(
        "admin",
        family.id,
        full_name="Jane Doe",
        surname_at_birth="Doe",
        sex=Sex.FEMALE,
        relationship_to_admin="Cousin",
        birthday=date(1990, 5, 1),
        birth_city="Springfield",
    )
    return family, ghost


def test_calls_require_an_identity(service: FamilyTreeService) -> None:
    with pytest.raises(NotAuthenticatedError):
        service.get_profile(None)
    with pytest.raises(NotAuthenticatedError):
        service.get_user_families("")


def test_ghost_claim_round_trip(
    service: FamilyTreeService,
    register: Callable[..., Profile],
    doe_family: tuple[Family, Member],
) -> None:
    family, ghost = doe_family
    register("jane")

    [match] = service.find_matching_ghost_profiles("jane")
    assert match.member_id == ghost.id
    assert match.similarity_score == 100
    with pytest.raises(NotMemberError):
        service.get_family("jane", family.id)

    claim = service.submit_ghost_profile_claim("jane", family.id, ghost.id)
    assert service.get_unread_notification_count("admin") == 1
    assert [c.id for c in service.get_pending_claims_for_admin("admin")] == [claim.id]

    message = service.process_ghost_profile_claim("admin", claim.id, approve=True)

    assert message == "Claim approved successfully"
    seen = service.get_family("jane", family.id)
    linked = seen.member_linked_to("jane")
    assert linked is not None
    assert linked.id == ghost.id
    assert service.get_claim_request("jane", claim.id).status is ClaimStatus.APPROVED
    assert service.find_matching_ghost_profiles("jane") == []
    assert [f.id for f in service.get_user_families("jane")] == [family.id]
    titles = {n.title for n in service.get_my_notifications("jane")}
    assert titles == {"Ghost profile claim approved"}


def test_losing_claim_is_rejected_and_committed(
    service: FamilyTreeService,
    register: Callable[..., Profile],
    doe_family: tuple[Family, Member],
) -> None:
    family, ghost = doe_family
    register("jane")
    register("john", full_name="John Doe", sex=Sex.MALE)
    first = service.submit_ghost_profile_claim("jane", family.id, ghost.id)
    second = service.submit_ghost_profile_claim("john", family.id, ghost.id)

    service.process_ghost_profile_claim("admin", first.id, approve=True)
    with pytest.raises(AlreadyLinkedError):
        service.process_ghost_profile_claim("admin", second.id, approve=True)

    [johns] = service.get_my_claim_requests("john")
    assert johns.status is ClaimStatus.REJECTED
    assert service.get_pending_claims_for_admin("admin") == []
    with pytest.raises(NotPendingError):
        service.process_ghost_profile_claim("admin", second.id, approve=False)


def test_declined_invitation_leaves_family_untouched(
    service: FamilyTreeService,
    register: Callable[..., Profile],
    doe_family: tuple[Family, Member],
) -> None:
    family, _ = doe_family
    register("jane")

    invitation_id = service.send_family_invitation("admin", family.id, "jane", "Sister", "Hi")
    [received] = service.get_my_invitations("jane")
    assert str(received.id) == invitation_id

    assert service.process_family_invitation("jane", received.id, accept=False) == (
        "Invitation declined"
    )
    with pytest.raises(NotPendingError):
        service.process_family_invitation("jane", received.id, accept=True)

    after = service.get_family("admin", family.id)
    assert len(after.members) == 1
    assert after.member_linked_to("jane") is None
    [sent] = service.get_sent_invitations("admin")
    assert sent.status is InvitationStatus.DECLINED


def test_accepted_invitation_adds_a_linked_member(
    service: FamilyTreeService,
    register: Callable[..., Profile],
    doe_family: tuple[Family, Member],
) -> None:
    family, ghost = doe_family
    register("jane")
    invitation_id = service.send_family_invitation("admin", family.id, "jane", "Sister")
    [received] = service.get_my_invitations("jane")
    assert str(received.id) == invitation_id

    service.process_family_invitation("jane", received.id, accept=True)

    after = service.get_family("jane", family.id)
    assert [m.position for m in after.members] == [0, 1]
    joined = after.member_linked_to("jane")
    assert joined is not None
    assert joined.id != ghost.id
    assert after.member(ghost.id) is not None
    assert after.member(ghost.id).is_ghost  # type: ignore[union-attr]


def test_removing_a_member_rejects_its_pending_claims(
    service: FamilyTreeService,
    register: Callable[..., Profile],
    doe_family: tuple[Family, Member],
) -> None:
    family, ghost = doe_family
    register("jane")
    claim = service.submit_ghost_profile_claim("jane", family.id, ghost.id)

    assert service.remove_family_member("admin", family.id, ghost.id) == (
        "Member removed successfully"
    )

    assert service.get_claim_request("jane", claim.id).status is ClaimStatus.REJECTED
    assert service.get_family("admin", family.id).members == ()


def test_sweep_expires_stale_requests(
    service: FamilyTreeService,
    register: Callable[..., Profile],
    clock: MutableClock,
    doe_family: tuple[Family, Member],
) -> None:
    family, ghost = doe_family
    register("jane")
    register("john", full_name="John Doe", sex=Sex.MALE)
    claim = service.submit_ghost_profile_claim("jane", family.id, ghost.id)
    service.send_family_invitation("admin", family.id, "john", "Brother")

    assert service.sweep_expired().expired_claims == 0
    clock.advance(timedelta(days=30))
    assert service.sweep_expired() == SweepResult(expired_claims=0, expired_invitations=0)
    clock.advance(timedelta(seconds=1))
    result = service.sweep_expired()

    assert (result.expired_claims, result.expired_invitations) == (1, 1)
    assert service.get_claim_request("jane", claim.id).status is ClaimStatus.EXPIRED
    [invitation] = service.get_my_invitations("john")
    assert invitation.status is InvitationStatus.EXPIRED
    assert service.sweep_expired().expired_claims == 0


def test_mark_notifications_read(
    service: FamilyTreeService,
    register: Callable[..., Profile],
    doe_family: tuple[Family, Member],
) -> None:
    family, ghost = doe_family
    register("jane")
    register("john", full_name="John Doe", sex=Sex.MALE)
    service.submit_ghost_profile_claim("jane", family.id, ghost.id)
    service.submit_ghost_profile_claim("john", family.id, ghost.id)
    first, _ = service.get_my_notifications("admin")

    service.mark_notification_read("admin", first.id)

    assert service.get_unread_notification_count("admin") == 1
    assert service.mark_all_notifications_read("admin") == "Marked 1 notifications as read"
    assert service.get_unread_notification_count("admin") == 0
