"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from legatia.domain.model import (
    ClaimRequest,
    Family,
    FamilyInvitation,
    Notification,
    Profile,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from legatia.domain.model import Identity


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ProfileRepository(Repository[Profile], Protocol):
    def get(self, identity: Identity) -> Profile | None: ...

    def search(self, query: str, *, limit: int) -> list[Profile]:
        """Case-insensitive substring search over identity, full name and surname."""
        ...


@runtime_checkable
class FamilyRepository(Repository[Family], Protocol):
    def get(self, family_id: UUID) -> Family | None: ...

    def list_visible(self) -> list[Family]:
        """Visible families ordered by creation (oldest first), then id."""
        ...

    def list_for_identity(self, identity: Identity) -> list[Family]:
        """Families the identity administers or is linked into."""
        ...

    def list_administered_by(self, identity: Identity) -> list[Family]: ...


@runtime_checkable
class ClaimRequestRepository(Repository[ClaimRequest], Protocol):
    def get(self, claim_id: UUID) -> ClaimRequest | None: ...

    def find_pending(self, *, requester: Identity, member_id: UUID) -> ClaimRequest | None: ...

    def list_by_requester(self, requester: Identity) -> list[ClaimRequest]: ...

    def list_pending_for_families(self, family_ids: Iterable[UUID]) -> list[ClaimRequest]: ...

    def list_pending_for_member(self, member_id: UUID) -> list[ClaimRequest]: ...

    def list_stale_pending(self, *, created_before: datetime) -> list[ClaimRequest]: ...


@runtime_checkable
class InvitationRepository(Repository[FamilyInvitation], Protocol):
    def get(self, invitation_id: UUID) -> FamilyInvitation | None: ...

    def find_pending(self, *, family_id: UUID, invitee: Identity) -> FamilyInvitation | None: ...

    def list_by_invitee(self, invitee: Identity) -> list[FamilyInvitation]: ...

    def list_by_inviter(self, inviter: Identity) -> list[FamilyInvitation]: ...

    def list_stale_pending(self, *, created_before: datetime) -> list[FamilyInvitation]: ...


@runtime_checkable
class NotificationRepository(Repository[Notification], Protocol):
    def get(self, notification_id: UUID) -> Notification | None: ...

    def list_for_recipient(self, recipient: Identity) -> list[Notification]: ...

    def list_unread(self, recipient: Identity) -> list[Notification]: ...

    def count_unread(self, recipient: Identity) -> int: ...
