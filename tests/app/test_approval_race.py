from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from threading import Barrier
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from legatia.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyFamilyTreeUnitOfWork,
    shutdown,
    startup,
)
from legatia.config import WorkflowPolicy
from legatia.domain.errors import AlreadyLinkedError, WorkflowError
from legatia.domain.model import ClaimStatus, Sex
from legatia.service import FamilyTreeService
from tests.helpers.family_tree import MutableClock

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path
    from uuid import UUID

    from legatia.domain.model import Family, Member


@pytest.fixture
def file_service(tmp_path: Path) -> Iterator[FamilyTreeService]:
    startup(engine=create_engine(f"sqlite+pysqlite:///{tmp_path}/race.db"), force=True)
    try:
        yield FamilyTreeService(
            SqlAlchemyFamilyTreeUnitOfWork, policy=WorkflowPolicy(), clock=MutableClock()
        )
    finally:
        shutdown()


def _register(service: FamilyTreeService, identity: str, full_name: str, sex: Sex) -> None:
    service.create_profile(
        identity,
        full_name=full_name,
        surname_at_birth="Doe",
        sex=sex,
        birthday=date(1990, 5, 1),
        birth_city="Springfield",
        birth_country="USA",
    )


def _contested_ghost(service: FamilyTreeService) -> tuple[Family, Member, UUID, UUID]:
    """A ghost claimed by both jane and john; returns their claim ids in that order."""

    _register(service, "admin", "Ada Doe", Sex.FEMALE)
    _register(service, "jane", "Jane Doe", Sex.FEMALE)
    _register(service, "john", "John Doe", Sex.MALE)
    family = service.create_family("admin", name="Doe", description="")
    ghost = service.add_family_member(
        "admin",
        family.id,
        full_name="J. Doe",
        surname_at_birth="Doe",
        sex=Sex.FEMALE,
        relationship_to_admin="Cousin",
    )
    jane_claim = service.submit_ghost_profile_claim("jane", family.id, ghost.id)
    john_claim = service.submit_ghost_profile_claim("john", family.id, ghost.id)
    return family, ghost, jane_claim.id, john_claim.id


def test_concurrent_approvals_link_the_ghost_once(file_service: FamilyTreeService) -> None:
    service = file_service
    family, ghost, *claim_ids = _contested_ghost(service)
    barrier = Barrier(len(claim_ids))

    def approve(claim_id: UUID) -> WorkflowError | None:
        barrier.wait()
        try:
            service.process_ghost_profile_claim("admin", claim_id, approve=True)
        except WorkflowError as error:
            return error
        return None

    with ThreadPoolExecutor(max_workers=len(claim_ids)) as pool:
        results = list(pool.map(approve, claim_ids))

    assert results.count(None) == 1
    [failure] = [result for result in results if result is not None]
    assert isinstance(failure, AlreadyLinkedError)

    statuses = sorted(service.get_claim_request("admin", c).status for c in claim_ids)
    assert statuses == sorted([ClaimStatus.APPROVED, ClaimStatus.REJECTED])
    linked = service.get_family("admin", family.id).member(ghost.id)
    assert linked is not None
    assert linked.linked_identity in {"jane", "john"}


def test_approval_from_another_process_wins_over_a_stale_read(
    file_service: FamilyTreeService,
) -> None:
    family, ghost, jane_claim, john_claim = _contested_ghost(file_service)
    # A second service has its own lock registry, like a separate CLI invocation.
    rival = FamilyTreeService(SqlAlchemyFamilyTreeUnitOfWork, clock=MutableClock())
    interleaved: list[Callable[[], object]] = [
        lambda: rival.process_ghost_profile_claim("admin", john_claim, approve=True)
    ]

    class InterleavingUnitOfWork(SqlAlchemyFamilyTreeUnitOfWork):
        """Lets the rival commit after this unit of work has read the ghost."""

        def commit(self) -> None:
            if self.session.dirty:
                while interleaved:
                    interleaved.pop()()
            super().commit()

    contender = FamilyTreeService(InterleavingUnitOfWork, clock=MutableClock())

    with pytest.raises(AlreadyLinkedError):
        contender.process_ghost_profile_claim("admin", jane_claim, approve=True)

    assert not interleaved
    assert file_service.get_claim_request("admin", john_claim).status is ClaimStatus.APPROVED
    rejected = file_service.get_claim_request("admin", jane_claim)
    assert rejected.status is ClaimStatus.REJECTED
    assert rejected.decision_note == "This profile has already been claimed by another user"
    linked = file_service.get_family("admin", family.id).member(ghost.id)
    assert linked is not None
    assert linked.linked_identity == "john"
