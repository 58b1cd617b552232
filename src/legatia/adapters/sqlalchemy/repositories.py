"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import func, or_, select

from legatia.adapters.sqlalchemy.mappings import (
    claim_request_table,
    family_invitation_table,
    family_member_table,
    family_table,
    notification_table,
    profile_table,
)
from legatia.domain.model import (
    ClaimRequest,
    ClaimStatus,
    Family,
    FamilyInvitation,
    InvitationStatus,
    Notification,
    Profile,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy.orm import Session

    from legatia.domain.model import Identity


class SqlAlchemyProfileRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Profile) -> None:
        self.session.add(entity)

    def get(self, identity: Identity) -> Profile | None:
        return self.session.get(Profile, identity)

    def search(self, query: str, *, limit: int) -> list[Profile]:
        needle = query.lower()
        stmt = (
            select(Profile)
            .where(
                or_(
                    func.lower(profile_table.c.identity).contains(needle, autoescape=True),
                    func.lower(profile_table.c.full_name).contains(needle, autoescape=True),
                    func.lower(profile_table.c.surname_at_birth).contains(
                        needle, autoescape=True
                    ),
                )
            )
            .order_by(profile_table.c.full_name, profile_table.c.identity)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyFamilyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Family) -> None:
        self.session.add(entity)

    def get(self, family_id: UUID) -> Family | None:
        return self.session.get(Family, family_id)

    def list_visible(self) -> list[Family]:
        stmt = (
            select(Family)
            .where(family_table.c.is_visible.is_(True))
            .order_by(family_table.c.created_at, family_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_for_identity(self, identity: Identity) -> list[Family]:
        linked_families = select(family_member_table.c.family_id).where(
            family_member_table.c.linked_identity == identity
        )
        stmt = (
            select(Family)
            .where(
                or_(
                    family_table.c.admin == identity,
                    family_table.c.id.in_(linked_families),
                )
            )
            .order_by(family_table.c.created_at, family_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_administered_by(self, identity: Identity) -> list[Family]:
        stmt = (
            select(Family)
            .where(family_table.c.admin == identity)
            .order_by(family_table.c.created_at, family_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyClaimRequestRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ClaimRequest) -> None:
        self.session.add(entity)

    def get(self, claim_id: UUID) -> ClaimRequest | None:
        return self.session.get(ClaimRequest, claim_id)

    def find_pending(self, *, requester: Identity, member_id: UUID) -> ClaimRequest | None:
        stmt = (
            select(ClaimRequest)
            .where(claim_request_table.c.requester == requester)
            .where(claim_request_table.c.member_id == member_id)
            .where(claim_request_table.c.status == ClaimStatus.PENDING)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_requester(self, requester: Identity) -> list[ClaimRequest]:
        stmt = (
            select(ClaimRequest)
            .where(claim_request_table.c.requester == requester)
            .order_by(claim_request_table.c.created_at.desc(), claim_request_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_pending_for_families(self, family_ids: Iterable[UUID]) -> list[ClaimRequest]:
        ids = list(family_ids)
        if not ids:
            return []
        stmt = (
            select(ClaimRequest)
            .where(claim_request_table.c.family_id.in_(ids))
            .where(claim_request_table.c.status == ClaimStatus.PENDING)
            .order_by(claim_request_table.c.created_at.desc(), claim_request_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_pending_for_member(self, member_id: UUID) -> list[ClaimRequest]:
        stmt = (
            select(ClaimRequest)
            .where(claim_request_table.c.member_id == member_id)
            .where(claim_request_table.c.status == ClaimStatus.PENDING)
            .order_by(claim_request_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())

    def list_stale_pending(self, *, created_before: datetime) -> list[ClaimRequest]:
        stmt = (
            select(ClaimRequest)
            .where(claim_request_table.c.status == ClaimStatus.PENDING)
            .where(claim_request_table.c.created_at < created_before)
            .order_by(claim_request_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyInvitationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: FamilyInvitation) -> None:
        self.session.add(entity)

    def get(self, invitation_id: UUID) -> FamilyInvitation | None:
        return self.session.get(FamilyInvitation, invitation_id)

    def find_pending(self, *, family_id: UUID, invitee: Identity) -> FamilyInvitation | None:
        stmt = (
            select(FamilyInvitation)
            .where(family_invitation_table.c.family_id == family_id)
            .where(family_invitation_table.c.invitee == invitee)
            .where(family_invitation_table.c.status == InvitationStatus.PENDING)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_invitee(self, invitee: Identity) -> list[FamilyInvitation]:
        stmt = (
            select(FamilyInvitation)
            .where(family_invitation_table.c.invitee == invitee)
            .order_by(family_invitation_table.c.created_at.desc(), family_invitation_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_by_inviter(self, inviter: Identity) -> list[FamilyInvitation]:
        stmt = (
            select(FamilyInvitation)
            .where(family_invitation_table.c.inviter == inviter)
            .order_by(family_invitation_table.c.created_at.desc(), family_invitation_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_stale_pending(self, *, created_before: datetime) -> list[FamilyInvitation]:
        stmt = (
            select(FamilyInvitation)
            .where(family_invitation_table.c.status == InvitationStatus.PENDING)
            .where(family_invitation_table.c.created_at < created_before)
            .order_by(family_invitation_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyNotificationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Notification) -> None:
        self.session.add(entity)

    def get(self, notification_id: UUID) -> Notification | None:
        return self.session.get(Notification, notification_id)

    def list_for_recipient(self, recipient: Identity) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(notification_table.c.recipient == recipient)
            .order_by(notification_table.c.created_at.desc(), notification_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def list_unread(self, recipient: Identity) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(notification_table.c.recipient == recipient)
            .where(notification_table.c.is_read.is_(False))
        )
        return list(self.session.execute(stmt).scalars())

    def count_unread(self, recipient: Identity) -> int:
        stmt = (
            select(func.count())
            .select_from(notification_table)
            .where(notification_table.c.recipient == recipient)
            .where(notification_table.c.is_read.is_(False))
        )
        return int(self.session.execute(stmt).scalar_one())


if TYPE_CHECKING:
    from legatia.domain.ports.persistence import (
        ClaimRequestRepository,
        FamilyRepository,
        InvitationRepository,
        NotificationRepository,
        ProfileRepository,
    )

    _session_stub = cast("Session", object())
    _profile_repo: ProfileRepository = SqlAlchemyProfileRepository(_session_stub)
    _family_repo: FamilyRepository = SqlAlchemyFamilyRepository(_session_stub)
    _claim_repo: ClaimRequestRepository = SqlAlchemyClaimRequestRepository(_session_stub)
    _invitation_repo: InvitationRepository = SqlAlchemyInvitationRepository(_session_stub)
    _notification_repo: NotificationRepository = SqlAlchemyNotificationRepository(_session_stub)
