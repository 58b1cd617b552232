from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from legatia.domain import invitations
from legatia.domain.errors import (
    AlreadyMemberError,
    DuplicatePendingInvitationError,
    InvalidInputError,
    NotAdminError,
    NotFoundError,
    NotInviteeError,
    NotPendingError,
    SelfInviteError,
)
from legatia.domain.model import InvitationStatus, NotificationType
from tests.helpers.family_tree import (
    T0,
    dispatcher_for,
    make_family,
    make_ghost,
    make_profile,
    make_repositories,
)

if TYPE_CHECKING:
    from legatia.domain.model import Family, FamilyInvitation
    from legatia.domain.outcome import Outcome
    from tests.helpers.family_tree import FakeFamilyTreeRepositories

RETENTION = timedelta(days=30)
EXPIRED_AT = T0 + RETENTION + timedelta(seconds=1)


@pytest.fixture
def family() -> Family:
    return make_family(admin="admin")


@pytest.fixture
def repositories(family: Family) -> FakeFamilyTreeRepositories:
    return make_repositories(
        profiles=[
            make_profile("admin", full_name="Ada Admin", surname_at_birth="Admin"),
            make_profile("jane"),
        ],
        families=[family],
    )


def _send(
    repositories: FakeFamilyTreeRepositories,
    family: Family,
    *,
    caller: str = "admin",
    user_id: str = "jane",
    message: str | None = "Join us",
    now: datetime = T0,
) -> FamilyInvitation:
    return invitations.send_invitation(
        repositories,
        dispatcher_for(repositories),
        caller=caller,
        family_id=family.id,
        user_id=user_id,
        relationship_to_admin="Sister",
        message=message,
        now=now,
        retention=RETENTION,
    )


def _respond(
    repositories: FakeFamilyTreeRepositories,
    invitation: FamilyInvitation,
    *,
    accept: bool,
    caller: str = "jane",
    now: datetime = T0,
) -> Outcome[FamilyInvitation]:
    return invitations.process_invitation(
        repositories,
        dispatcher_for(repositories),
        caller=caller,
        invitation_id=invitation.id,
        accept=accept,
        now=now,
        retention=RETENTION,
    )


def test_send_notifies_invitee(repositories: FakeFamilyTreeRepositories, family: Family) -> None:
    invitation = _send(repositories, family)

    assert invitation.is_pending
    assert invitation.family_name == family.name
    [notification] = repositories.notifications.sent_to("jane")
    assert notification.notification_type is NotificationType.FAMILY_INVITATION
    assert notification.action_url == f"/invitations/{invitation.id}"
    assert "Join us" in notification.message


def test_send_preconditions(repositories: FakeFamilyTreeRepositories, family: Family) -> None:
    with pytest.raises(NotAdminError):
        _send(repositories, family, caller="jane", user_id="admin")
    with pytest.raises(SelfInviteError):
        _send(repositories, family, user_id="admin")
    with pytest.raises(NotFoundError, match="User not found"):
        _send(repositories, family, user_id="ghost-user")
    with pytest.raises(InvalidInputError):
        _send(repositories, family, message="x" * 1001)

    _send(repositories, family)
    with pytest.raises(DuplicatePendingInvitationError):
        _send(repositories, family)


def test_cannot_invite_an_existing_member(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    ghost = make_ghost(family)
    family.link_member(ghost.id, "jane", now=T0)

    with pytest.raises(AlreadyMemberError):
        _send(repositories, family)


def test_accept_adds_a_new_linked_member_and_notifies_admin(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    ghost = make_ghost(family)
    invitation = _send(repositories, family)

    _respond(repositories, invitation, accept=True).unwrap()

    assert invitation.status is InvitationStatus.ACCEPTED
    joined = family.member_linked_to("jane")
    assert joined is not None
    assert joined.id != ghost.id
    assert joined.relationship_to_admin == "Sister"
    assert ghost.is_ghost
    [notification] = repositories.notifications.sent_to("admin")
    assert notification.title == "Jane Doe joined your family!"
    assert notification.notification_type is NotificationType.FAMILY_UPDATE


def test_decline_leaves_family_unchanged_and_blocks_later_accept(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    invitation = _send(repositories, family)
    members_before = family.members

    _respond(repositories, invitation, accept=False).unwrap()

    assert invitation.status is InvitationStatus.DECLINED
    assert family.members == members_before
    [notification] = repositories.notifications.sent_to("admin")
    assert notification.title == "Family invitation declined"
    with pytest.raises(NotPendingError):
        _respond(repositories, invitation, accept=True)


def test_only_the_invitee_can_respond(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    invitation = _send(repositories, family)

    with pytest.raises(NotInviteeError):
        _respond(repositories, invitation, accept=True, caller="admin")
    assert invitation.is_pending


def test_accept_after_joining_another_way_is_force_declined(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    invitation = _send(repositories, family)
    ghost = make_ghost(family)
    family.link_member(ghost.id, "jane", now=T0)

    outcome = _respond(repositories, invitation, accept=True)

    assert isinstance(outcome.failure, AlreadyMemberError)
    assert invitation.status is InvitationStatus.DECLINED
    assert invitation.decision_note == invitations.ALREADY_MEMBER_REASON
    assert len([m for m in family.members if m.linked_identity == "jane"]) == 1


def test_stale_invitation_expires_and_can_be_resent(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    invitation = _send(repositories, family)

    outcome = _respond(repositories, invitation, accept=True, now=EXPIRED_AT)

    assert isinstance(outcome.failure, NotPendingError)
    assert invitation.status is InvitationStatus.EXPIRED
    [alert] = [
        n
        for n in repositories.notifications.sent_to("admin")
        if n.notification_type is NotificationType.SYSTEM_ALERT
    ]
    assert alert.subject_id == str(invitation.id)
    assert _send(repositories, family, now=EXPIRED_AT).is_pending


def test_listing_expires_stale_entries(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    invitation = _send(repositories, family)
    dispatcher = dispatcher_for(repositories)

    received = invitations.list_received(
        repositories, dispatcher, caller="jane", now=EXPIRED_AT, retention=RETENTION
    )
    sent = invitations.list_sent(
        repositories, dispatcher, caller="admin", now=EXPIRED_AT, retention=RETENTION
    )

    assert received == [invitation]
    assert sent == [invitation]
    assert invitation.status is InvitationStatus.EXPIRED


def test_invitation_is_still_open_on_the_last_day(
    repositories: FakeFamilyTreeRepositories, family: Family
) -> None:
    invitation = _send(repositories, family)

    outcome = _respond(repositories, invitation, accept=True, now=T0 + RETENTION)

    assert outcome.failure is None
    assert invitation.status is InvitationStatus.ACCEPTED
