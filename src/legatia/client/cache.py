"""Client-side cache of server-confirmed state."""

from __future__ import annotations

from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from legatia.adapters.wire.schema import (
    ClaimRequestWire,
    FamilyInvitationWire,
    FamilyWire,
    GhostProfileMatchWire,
    NotificationWire,
    ProfileWire,
)


class ClientCache(BaseModel):
    """Everything the user currently sees, keyed by entity id.

    Dicts keep the server's ordering (newest first for lists). The cache is
    only ever replaced wholesale by ``ClientReconciler`` after a confirmed action.
    """

    model_config = ConfigDict(validate_assignment=True)

    profile: ProfileWire | None = None
    families: dict[UUID, FamilyWire] = Field(default_factory=dict)
    matches: list[GhostProfileMatchWire] = Field(default_factory=list)
    my_claims: dict[UUID, ClaimRequestWire] = Field(default_factory=dict)
    admin_claims: dict[UUID, ClaimRequestWire] = Field(default_factory=dict)
    received_invitations: dict[UUID, FamilyInvitationWire] = Field(default_factory=dict)
    sent_invitations: dict[UUID, FamilyInvitationWire] = Field(default_factory=dict)
    notifications: dict[UUID, NotificationWire] = Field(default_factory=dict)
    unread_count: int = 0

    def staged(self) -> ClientCache:
        return self.model_copy(deep=True)

