"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Sex(StrEnum):
    FEMALE = "Female"
    MALE = "Male"
    OTHER = "Other"


class ClaimStatus(StrEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"


class InvitationStatus(StrEnum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    DECLINED = "Declined"
    EXPIRED = "Expired"


class NotificationType(StrEnum):
    FAMILY_INVITATION = "FamilyInvitation"
    GHOST_PROFILE_CLAIM = "GhostProfileClaim"
    FAMILY_UPDATE = "FamilyUpdate"
    SYSTEM_ALERT = "SystemAlert"
