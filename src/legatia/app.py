"""Application wiring: build the service and clients from configuration."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from legatia.adapters.remote import HttpRemoteBackend
from legatia.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyFamilyTreeUnitOfWork,
    is_started,
    startup,
)
from legatia.adapters.wire import RemoteCallHandler
from legatia.client import ClientReconciler, InProcessBackend, RemoteClient
from legatia.config import get_remote_config, get_workflow_policy
from legatia.service import FamilyTreeService, utc_now

if TYPE_CHECKING:
    from legatia.config import RemoteConfig, WorkflowPolicy
    from legatia.domain.model import Identity
    from legatia.service import SweepResult
    from legatia.service.actor import Clock, UnitOfWorkFactory

log = getLogger(__name__)


def build_service(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    policy: WorkflowPolicy | None = None,
    clock: Clock = utc_now,
) -> FamilyTreeService:
    """Service over the configured database unless a unit of work factory is given."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyFamilyTreeUnitOfWork
    return FamilyTreeService(
        unit_of_work_factory, policy=policy or get_workflow_policy(), clock=clock
    )


def build_local_client(
    caller: Identity | None, *, service: FamilyTreeService | None = None
) -> ClientReconciler:
    """Reconciler acting as ``caller`` against an in-process service."""

    handler = RemoteCallHandler(service or build_service())
    return ClientReconciler(RemoteClient(InProcessBackend(handler, caller)))


def build_remote_client(
    *, config: RemoteConfig | None = None, principal: Identity | None = None
) -> ClientReconciler:
    """Reconciler talking HTTP to the configured remote actor."""

    effective = config or get_remote_config()
    if principal is not None:
        effective = replace(effective, principal=principal)
    log.debug("Using remote actor at %s", effective.resilience.base_url)
    return ClientReconciler(RemoteClient(HttpRemoteBackend(effective)))


def sweep_expired(*, service: FamilyTreeService | None = None) -> SweepResult:
    """Expire every stale pending claim and invitation."""

    return (service or build_service()).sweep_expired()
