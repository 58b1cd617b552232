"""SQLAlchemy adapter package for Legatia."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyClaimRequestRepository,
    SqlAlchemyFamilyRepository,
    SqlAlchemyInvitationRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyProfileRepository,
)
from .unit_of_work import SqlAlchemyFamilyTreeUnitOfWork, shutdown, startup

__all__ = [
    "SqlAlchemyClaimRequestRepository",
    "SqlAlchemyFamilyRepository",
    "SqlAlchemyFamilyTreeUnitOfWork",
    "SqlAlchemyInvitationRepository",
    "SqlAlchemyNotificationRepository",
    "SqlAlchemyProfileRepository",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
