from __future__ import annotations

import os
from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from legatia.adapters.sqlalchemy import start_mappers
from legatia.adapters.sqlalchemy.migrations import upgrade_head
from legatia.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyFamilyTreeUnitOfWork,
    shutdown,
    startup,
)
from legatia.config import WorkflowPolicy
from legatia.domain.model import Sex
from legatia.service import FamilyTreeService
from tests.helpers.family_tree import MutableClock

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from legatia.domain.model import Profile


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyFamilyTreeUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyFamilyTreeUnitOfWork:
        return SqlAlchemyFamilyTreeUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def service(
    sqlite_unit_of_work: Callable[[], SqlAlchemyFamilyTreeUnitOfWork],
    clock: MutableClock,
) -> FamilyTreeService:
    return FamilyTreeService(sqlite_unit_of_work, policy=WorkflowPolicy(), clock=clock)


@pytest.fixture
def register(service: FamilyTreeService) -> Callable[..., Profile]:
    """Create a profile through the service; keyword overrides replace the Jane Doe defaults."""

    def create(identity: str, **overrides: object) -> Profile:
        fields: dict[str, object] = {
            "full_name": "Jane Doe",
            "surname_at_birth": "Doe",
            "sex": Sex.FEMALE,
            "birthday": date(1990, 5, 1),
            "birth_city": "Springfield",
            "birth_country": "USA",
        }
        fields.update(overrides)
        return service.create_profile(identity, **fields)  # type: ignore[arg-type]

    return create
