"""Direct family invitations from an admin to a registered user."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from legatia.domain.errors import NotPendingError
from legatia.domain.model.entity import Entity
from legatia.domain.model.enums import InvitationStatus

if TYPE_CHECKING:
    from datetime import datetime, timedelta
    from uuid import UUID

    from legatia.domain.model.primitives import Identity


@dataclass(eq=False, kw_only=True)
class FamilyInvitation(Entity):
    """``Pending -> {Accepted, Declined, Expired}``; terminal once decided."""

    family_id: UUID
    family_name: str
    inviter: Identity
    invitee: Identity
    relationship_to_admin: str
    message: str | None = None
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime
    decided_at: datetime | None = None
    decision_note: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is InvitationStatus.PENDING

    def is_stale(self, *, now: datetime, retention: timedelta) -> bool:
        return self.is_pending and now - self.created_at > retention

    def accept(self, *, now: datetime) -> None:
        self._decide(InvitationStatus.ACCEPTED, now=now, note=None)

    def decline(self, *, now: datetime, note: str | None = None) -> None:
        self._decide(InvitationStatus.DECLINED, now=now, note=note)

    def expire(self, *, now: datetime) -> None:
        self._decide(InvitationStatus.EXPIRED, now=now, note="Invitation expired")

    def _decide(self, status: InvitationStatus, *, now: datetime, note: str | None) -> None:
        if not self.is_pending:
            raise NotPendingError(f"Invitation has already been {self.status.value.lower()}")
        self.status = status
        self.decided_at = now
        self.decision_note = note
