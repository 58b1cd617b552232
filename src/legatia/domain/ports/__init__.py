"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import (
    ClaimRequestRepository,
    FamilyRepository,
    InvitationRepository,
    NotificationRepository,
    ProfileRepository,
    Repository,
)
from .unit_of_work import (
    ConcurrentUpdateError,
    FamilyTreeRepositories,
    FamilyTreeUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ClaimRequestRepository",
    "ConcurrentUpdateError",
    "FamilyRepository",
    "FamilyTreeRepositories",
    "FamilyTreeUnitOfWork",
    "InvitationRepository",
    "NotificationRepository",
    "ProfileRepository",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
]
