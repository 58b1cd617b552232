"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from legatia.domain.ports.persistence import (
        ClaimRequestRepository,
        FamilyRepository,
        InvitationRepository,
        NotificationRepository,
        ProfileRepository,
    )


class ConcurrentUpdateError(RuntimeError):
    """Commit lost a race: rows it read were changed by another writer meanwhile.

    Nothing of the failed unit of work is persisted; the operation can be re-run
    against the now committed state.
    """


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class FamilyTreeRepositories(RepositoryCollection):
    """Everything a claim, invitation or notification transition touches."""

    profiles: ProfileRepository
    families: FamilyRepository
    claims: ClaimRequestRepository
    invitations: InvitationRepository
    notifications: NotificationRepository


type FamilyTreeUnitOfWork = UnitOfWork[FamilyTreeRepositories]
