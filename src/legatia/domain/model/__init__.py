"""Domain model for families, ghost members, claims, invitations and notifications."""

from __future__ import annotations

from .claims import ClaimRequest, MemberSnapshot, ProfileSnapshot
from .entity import Entity, new_id
from .enums import ClaimStatus, InvitationStatus, NotificationType, Sex
from .family import Family, Member, MemberUpdate
from .invitations import FamilyInvitation
from .notifications import Notification
from .primitives import (
    CLEARED,
    UNCHANGED,
    Cleared,
    FieldUpdate,
    Identity,
    SetTo,
    Unchanged,
    apply_optional,
    apply_required,
)
from .profile import Profile, ProfileUpdate

__all__ = [
    "CLEARED",
    "UNCHANGED",
    "ClaimRequest",
    "ClaimStatus",
    "Cleared",
    "Entity",
    "Family",
    "FamilyInvitation",
    "FieldUpdate",
    "Identity",
    "InvitationStatus",
    "Member",
    "MemberSnapshot",
    "MemberUpdate",
    "Notification",
    "NotificationType",
    "Profile",
    "ProfileSnapshot",
    "ProfileUpdate",
    "SetTo",
    "Unchanged",
    "apply_optional",
    "apply_required",
    "new_id",
]
