"""Invitation workflow: an admin invites a registered user straight into a family."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from legatia.domain.directory import require_profile
from legatia.domain.errors import (
    AlreadyMemberError,
    DuplicatePendingInvitationError,
    NotFoundError,
    NotInviteeError,
    NotPendingError,
    SelfInviteError,
)
from legatia.domain.families import add_linked_member, require_admin, require_family
from legatia.domain.model import FamilyInvitation
from legatia.domain.outcome import Outcome
from legatia.domain.validation import validate_message, validate_name

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime, timedelta
    from uuid import UUID

    from legatia.domain.model import Identity
    from legatia.domain.notifications import NotificationDispatcher
    from legatia.domain.ports import FamilyTreeRepositories

log = getLogger(__name__)

ALREADY_MEMBER_REASON = "The invitee had already joined the family."
FAMILY_GONE_REASON = "The family no longer exists."


def expire_if_stale(
    invitation: FamilyInvitation,
    dispatcher: NotificationDispatcher,
    *,
    now: datetime,
    retention: timedelta,
) -> bool:
    if not invitation.is_stale(now=now, retention=retention):
        return False
    invitation.expire(now=now)
    dispatcher.invitation_expired(invitation, now=now)
    log.info("Invitation %s expired", invitation.id)
    return True


def _expire_all(
    invitations: Iterable[FamilyInvitation],
    dispatcher: NotificationDispatcher,
    *,
    now: datetime,
    retention: timedelta,
) -> list[FamilyInvitation]:
    return [
        invitation
        for invitation in invitations
        if expire_if_stale(invitation, dispatcher, now=now, retention=retention)
    ]


def send_invitation(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    family_id: UUID,
    user_id: Identity,
    relationship_to_admin: str,
    message: str | None = None,
    now: datetime,
    retention: timedelta,
) -> FamilyInvitation:
    family = require_family(repositories, family_id)
    require_admin(family, caller, "send invitations")
    relationship = validate_name(relationship_to_admin, "relationship_to_admin")
    note = validate_message(message)
    if user_id == caller:
        raise SelfInviteError("You cannot invite yourself")
    inviter = require_profile(repositories, caller)
    invitee = repositories.profiles.get(user_id)
    if invitee is None:
        raise NotFoundError("User not found")
    if family.member_linked_to(invitee.identity) is not None:
        raise AlreadyMemberError("User is already a member of this family")

    existing = repositories.invitations.find_pending(family_id=family.id, invitee=user_id)
    if existing is not None and not expire_if_stale(
        existing, dispatcher, now=now, retention=retention
    ):
        raise DuplicatePendingInvitationError(
            "User already has a pending invitation to this family"
        )

    invitation = FamilyInvitation(
        family_id=family.id,
        family_name=family.name,
        inviter=caller,
        invitee=invitee.identity,
        relationship_to_admin=relationship,
        message=note,
        created_at=now,
    )
    repositories.invitations.add(invitation)
    dispatcher.invitation_sent(invitation, inviter=inviter, now=now)
    log.info("Invitation %s sent to %s for family %s", invitation.id, user_id, family.id)
    return invitation


def process_invitation(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    invitation_id: UUID,
    accept: bool,
    now: datetime,
    retention: timedelta,
) -> Outcome[FamilyInvitation]:
    invitation = repositories.invitations.get(invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.invitee != caller:
        raise NotInviteeError("You can only respond to your own invitations")
    if expire_if_stale(invitation, dispatcher, now=now, retention=retention):
        return Outcome(invitation, NotPendingError("Invitation has expired"))
    if not invitation.is_pending:
        raise NotPendingError(f"Invitation has already been {invitation.status.value.lower()}")

    invitee = require_profile(repositories, caller)
    if not accept:
        invitation.decline(now=now)
        dispatcher.invitation_declined(invitation, invitee=invitee, now=now)
        log.info("Invitation %s declined by %s", invitation.id, caller)
        return Outcome(invitation)

    family = repositories.families.get(invitation.family_id)
    if family is None:
        invitation.decline(now=now, note=FAMILY_GONE_REASON)
        dispatcher.invitation_declined(invitation, invitee=invitee, now=now)
        return Outcome(invitation, NotFoundError("Family not found"))
    if family.member_linked_to(caller) is not None:
        invitation.decline(now=now, note=ALREADY_MEMBER_REASON)
        dispatcher.invitation_declined(invitation, invitee=invitee, now=now)
        log.info("Invitation %s force-declined: invitee already a member", invitation.id)
        return Outcome(invitation, AlreadyMemberError("You are already a member of this family"))

    add_linked_member(
        family,
        profile=invitee,
        relationship_to_admin=invitation.relationship_to_admin,
        created_by=invitation.inviter,
        now=now,
    )
    invitation.accept(now=now)
    dispatcher.invitation_accepted(invitation, invitee=invitee, now=now)
    log.info("Invitation %s accepted; %s joined family %s", invitation.id, caller, family.id)
    return Outcome(invitation)


def list_received(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    now: datetime,
    retention: timedelta,
) -> list[FamilyInvitation]:
    """Newest first; stale pending entries are expired on the way out."""

    invitations = repositories.invitations.list_by_invitee(caller)
    _expire_all(invitations, dispatcher, now=now, retention=retention)
    return invitations


def list_sent(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    now: datetime,
    retention: timedelta,
) -> list[FamilyInvitation]:
    invitations = repositories.invitations.list_by_inviter(caller)
    _expire_all(invitations, dispatcher, now=now, retention=retention)
    return invitations


def sweep_stale_invitations(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    now: datetime,
    retention: timedelta,
) -> list[FamilyInvitation]:
    stale = repositories.invitations.list_stale_pending(created_before=now - retention)
    return _expire_all(stale, dispatcher, now=now, retention=retention)
