"""SQLAlchemy mapping metadata for the Legatia domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers, relationship

from legatia.domain.model import (
    ClaimRequest,
    ClaimStatus,
    Family,
    FamilyInvitation,
    InvitationStatus,
    Member,
    MemberSnapshot,
    Notification,
    NotificationType,
    Profile,
    ProfileSnapshot,
    Sex,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]
PENDING_ONLY = "status = 'Pending'"


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ProfileSnapshotType(TypeDecorator[ProfileSnapshot]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: ProfileSnapshot | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value.to_dict(), sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> ProfileSnapshot | None:
        _ = dialect
        if value is None:
            return None
        return ProfileSnapshot.from_dict(cast(dict[str, Any], json.loads(value)))


class MemberSnapshotType(TypeDecorator[MemberSnapshot]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: MemberSnapshot | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value.to_dict(), sort_keys=True)

    def process_result_value(self, value: str | None, dialect: Dialect) -> MemberSnapshot | None:
        _ = dialect
        if value is None:
            return None
        return MemberSnapshot.from_dict(cast(dict[str, Any], json.loads(value)))


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _value_enum(enum_cls: type[StrEnum]) -> Enum:
    return Enum(enum_cls, native_enum=False, values_callable=_enum_values, length=32)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Identity directory -----------------------------------------------------------

profile_table = Table(
    "profile",
    mapper_registry.metadata,
    Column("identity", String(255), primary_key=True),
    Column("full_name", String(100), nullable=False),
    Column("surname_at_birth", String(100), nullable=False),
    Column("sex", _value_enum(Sex), nullable=False),
    Column("birthday", Date, nullable=False),
    Column("birth_city", String(100), nullable=False),
    Column("birth_country", String(100), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

# Family store -----------------------------------------------------------------

family_table = Table(
    "family",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String(100), nullable=False),
    Column("description", String(500), nullable=False, default=""),
    Column("admin", String(255), nullable=False, index=True),
    Column("is_visible", Boolean, nullable=False, default=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

family_member_table = Table(
    "family_member",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "family_id",
        UUIDColumnType,
        ForeignKey("family.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("position", Integer, nullable=False, default=0),
    Column("linked_identity", String(255), nullable=True, index=True),
    Column("full_name", String(100), nullable=False),
    Column("surname_at_birth", String(100), nullable=False),
    Column("sex", _value_enum(Sex), nullable=False),
    Column("birthday", Date, nullable=True),
    Column("birth_city", String(100), nullable=True),
    Column("birth_country", String(100), nullable=True),
    Column("death_date", Date, nullable=True),
    Column("relationship_to_admin", String(100), nullable=False),
    Column("created_by", String(255), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("version", Integer, nullable=False, server_default=text("1")),
    # NULLs never collide, so any number of ghosts may share a family.
    UniqueConstraint("family_id", "linked_identity"),
)

# Workflows --------------------------------------------------------------------

claim_request_table = Table(
    "claim_request",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("requester", String(255), nullable=False, index=True),
    Column("family_id", UUIDColumnType, nullable=False, index=True),
    Column("family_name", String(100), nullable=False),
    Column("member_id", UUIDColumnType, nullable=False, index=True),
    Column("requester_profile", ProfileSnapshotType(), nullable=False),
    Column("member_snapshot", MemberSnapshotType(), nullable=False),
    Column("status", _value_enum(ClaimStatus), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("decided_at", UTCDateTime(), nullable=True),
    Column("decision_note", String(200), nullable=True),
    Index(
        "uq_claim_request_pending_requester_member",
        "requester",
        "member_id",
        unique=True,
        sqlite_where=text(PENDING_ONLY),
        postgresql_where=text(PENDING_ONLY),
    ),
)

family_invitation_table = Table(
    "family_invitation",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("family_id", UUIDColumnType, nullable=False, index=True),
    Column("family_name", String(100), nullable=False),
    Column("inviter", String(255), nullable=False, index=True),
    Column("invitee", String(255), nullable=False, index=True),
    Column("relationship_to_admin", String(100), nullable=False),
    Column("message", String(1000), nullable=True),
    Column("status", _value_enum(InvitationStatus), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("decided_at", UTCDateTime(), nullable=True),
    Column("decision_note", String(200), nullable=True),
    Index(
        "uq_family_invitation_pending_family_invitee",
        "family_id",
        "invitee",
        unique=True,
        sqlite_where=text(PENDING_ONLY),
        postgresql_where=text(PENDING_ONLY),
    ),
)

notification_table = Table(
    "notification",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("recipient", String(255), nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("message", Text, nullable=False),
    Column("notification_type", _value_enum(NotificationType), nullable=False),
    Column("is_read", Boolean, nullable=False, default=False),
    Column("action_url", String(255), nullable=True),
    Column("subject_id", String(64), nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Profile, profile_table)

    mapper_registry.map_imperatively(
        Family,
        family_table,
        properties={
            "_members": relationship(
                Member,
                cascade="all, delete-orphan",
                order_by=family_member_table.c.position,
                lazy="selectin",
            ),
        },
    )

    # Member UPDATEs are guarded by the version the row was read at.
    mapper_registry.map_imperatively(
        Member, family_member_table, version_id_col=family_member_table.c.version
    )

    mapper_registry.map_imperatively(ClaimRequest, claim_request_table)

    mapper_registry.map_imperatively(FamilyInvitation, family_invitation_table)

    mapper_registry.map_imperatively(Notification, notification_table)

    configure_mappers()
    return mapper_registry
