"""Notification dispatcher and recipient operations.

Every claim or invitation transition emits exactly one notification to the affected
counterpart. Notifications are added to the same repositories (and therefore the same
unit of work) as the transition, so a failed notification rolls the transition back.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from legatia.domain.errors import NotFoundError, NotRecipientError
from legatia.domain.model import ClaimStatus, Notification, NotificationType

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from legatia.domain.model import ClaimRequest, FamilyInvitation, Identity, Profile
    from legatia.domain.ports import FamilyTreeRepositories

log = getLogger(__name__)


class NotificationDispatcher:
    """Build and store notifications for workflow transitions."""

    def __init__(self, repositories: FamilyTreeRepositories) -> None:
        self._repositories = repositories

    def emit(
        self,
        *,
        recipient: Identity,
        title: str,
        message: str,
        notification_type: NotificationType,
        now: datetime,
        action_url: str | None = None,
        subject_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            recipient=recipient,
            title=title,
            message=message,
            notification_type=notification_type,
            action_url=action_url,
            subject_id=subject_id,
            created_at=now,
        )
        self._repositories.notifications.add(notification)
        log.debug("Queued %s notification for %s", notification_type.value, recipient)
        return notification

    # Claims ------------------------------------------------------------------

    def claim_submitted(
        self, claim: ClaimRequest, *, admin: Identity, now: datetime
    ) -> Notification:
        name = claim.requester_profile.full_name
        return self.emit(
            recipient=admin,
            title="New ghost profile claim",
            message=(
                f"{name} has requested to claim the profile of "
                f"{claim.member_snapshot.full_name} in the {claim.family_name} family."
            ),
            notification_type=NotificationType.GHOST_PROFILE_CLAIM,
            now=now,
            action_url=f"/claims/{claim.id}",
            subject_id=str(claim.id),
        )

    def claim_decided(self, claim: ClaimRequest, *, now: datetime) -> Notification:
        member_name = claim.member_snapshot.full_name
        if claim.status is ClaimStatus.APPROVED:
            title = "Ghost profile claim approved"
            message = (
                f"Your claim for {member_name} in the {claim.family_name} family has been approved."
            )
            action_url: str | None = f"/family/{claim.family_id}"
        else:
            title = "Ghost profile claim rejected"
            message = (
                f"Your claim for {member_name} in the {claim.family_name} family has been rejected."
            )
            action_url = f"/claims/{claim.id}"
        if claim.decision_note:
            message = f"{message} {claim.decision_note}"
        return self.emit(
            recipient=claim.requester,
            title=title,
            message=message,
            notification_type=NotificationType.GHOST_PROFILE_CLAIM,
            now=now,
            action_url=action_url,
            subject_id=str(claim.id),
        )

    def claim_expired(self, claim: ClaimRequest, *, now: datetime) -> Notification:
        return self.emit(
            recipient=claim.requester,
            title="Ghost profile claim expired",
            message=(
                f"Your claim for {claim.member_snapshot.full_name} in the "
                f"{claim.family_name} family expired without a decision."
            ),
            notification_type=NotificationType.SYSTEM_ALERT,
            now=now,
            action_url=f"/claims/{claim.id}",
            subject_id=str(claim.id),
        )

    # Invitations -------------------------------------------------------------

    def invitation_sent(
        self, invitation: FamilyInvitation, *, inviter: Profile, now: datetime
    ) -> Notification:
        message = (
            f"{inviter.full_name} has invited you to join the {invitation.family_name} family."
        )
        if invitation.message:
            message = f"{message} Message: {invitation.message}"
        return self.emit(
            recipient=invitation.invitee,
            title=f"Invitation to join {invitation.family_name}",
            message=message,
            notification_type=NotificationType.FAMILY_INVITATION,
            now=now,
            action_url=f"/invitations/{invitation.id}",
            subject_id=str(invitation.id),
        )

    def invitation_accepted(
        self, invitation: FamilyInvitation, *, invitee: Profile, now: datetime
    ) -> Notification:
        return self.emit(
            recipient=invitation.inviter,
            title=f"{invitee.full_name} joined your family!",
            message=(
                f"{invitee.full_name} has accepted your invitation to join the "
                f"{invitation.family_name} family."
            ),
            notification_type=NotificationType.FAMILY_UPDATE,
            now=now,
            action_url=f"/family/{invitation.family_id}",
            subject_id=str(invitation.id),
        )

    def invitation_declined(
        self, invitation: FamilyInvitation, *, invitee: Profile, now: datetime
    ) -> Notification:
        message = (
            f"{invitee.full_name} has declined your invitation to join the "
            f"{invitation.family_name} family."
        )
        if invitation.decision_note:
            message = f"{message} {invitation.decision_note}"
        return self.emit(
            recipient=invitation.inviter,
            title="Family invitation declined",
            message=message,
            notification_type=NotificationType.FAMILY_UPDATE,
            now=now,
            subject_id=str(invitation.id),
        )

    def invitation_expired(self, invitation: FamilyInvitation, *, now: datetime) -> Notification:
        return self.emit(
            recipient=invitation.inviter,
            title="Family invitation expired",
            message=(
                f"Your invitation to {invitation.invitee} to join the "
                f"{invitation.family_name} family expired without a response."
            ),
            notification_type=NotificationType.SYSTEM_ALERT,
            now=now,
            subject_id=str(invitation.id),
        )


def list_notifications(
    repositories: FamilyTreeRepositories, *, recipient: Identity
) -> list[Notification]:
    """Newest first."""

    return repositories.notifications.list_for_recipient(recipient)


def unread_count(repositories: FamilyTreeRepositories, *, recipient: Identity) -> int:
    return repositories.notifications.count_unread(recipient)


def mark_read(
    repositories: FamilyTreeRepositories, *, recipient: Identity, notification_id: UUID
) -> Notification:
    notification = repositories.notifications.get(notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.recipient != recipient:
        raise NotRecipientError("You can only mark your own notifications as read")
    notification.mark_read()
    return notification


def mark_all_read(repositories: FamilyTreeRepositories, *, recipient: Identity) -> int:
    """Mark every unread notification of ``recipient``; return how many changed."""

    changed = 0
    for notification in repositories.notifications.list_unread(recipient):
        if notification.mark_read():
            changed += 1
    return changed
