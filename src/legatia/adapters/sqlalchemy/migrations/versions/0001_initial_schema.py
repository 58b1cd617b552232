"""Initial family-tree schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial_schema"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

PENDING_ONLY = "status = 'Pending'"

SEX = ("Female", "Male", "Other")
CLAIM_STATUS = ("Pending", "Approved", "Rejected", "Expired")
INVITATION_STATUS = ("Pending", "Accepted", "Declined", "Expired")
NOTIFICATION_TYPE = ("FamilyInvitation", "GhostProfileClaim", "FamilyUpdate", "SystemAlert")


def _enum(values: tuple[str, ...], name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def upgrade() -> None:
    op.create_table(
        "profile",
        sa.Column("identity", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("surname_at_birth", sa.String(length=100), nullable=False),
        sa.Column("sex", _enum(SEX, "sex"), nullable=False),
        sa.Column("birthday", sa.Date(), nullable=False),
        sa.Column("birth_city", sa.String(length=100), nullable=False),
        sa.Column("birth_country", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("identity", name="pk_profile"),
    )

    op.create_table(
        "family",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("admin", sa.String(length=255), nullable=False),
        sa.Column("is_visible", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_family"),
    )
    op.create_index("ix_family_admin", "family", ["admin"])

    op.create_table(
        "family_member",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("family_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("linked_identity", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("surname_at_birth", sa.String(length=100), nullable=False),
        sa.Column("sex", _enum(SEX, "sex"), nullable=False),
        sa.Column("birthday", sa.Date(), nullable=True),
        sa.Column("birth_city", sa.String(length=100), nullable=True),
        sa.Column("birth_country", sa.String(length=100), nullable=True),
        sa.Column("death_date", sa.Date(), nullable=True),
        sa.Column("relationship_to_admin", sa.String(length=100), nullable=False),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["family_id"],
            ["family.id"],
            name="fk_family_member_family_member_family_id_family",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_family_member"),
        sa.UniqueConstraint(
            "family_id",
            "linked_identity",
            name="uq_family_member_family_member_family_id",
        ),
    )
    op.create_index("ix_family_member_family_id", "family_member", ["family_id"])
    op.create_index("ix_family_member_linked_identity", "family_member", ["linked_identity"])

    op.create_table(
        "claim_request",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("requester", sa.String(length=255), nullable=False),
        sa.Column("family_id", sa.Uuid(), nullable=False),
        sa.Column("family_name", sa.String(length=100), nullable=False),
        sa.Column("member_id", sa.Uuid(), nullable=False),
        sa.Column("requester_profile", sa.Text(), nullable=False),
        sa.Column("member_snapshot", sa.Text(), nullable=False),
        sa.Column("status", _enum(CLAIM_STATUS, "claimstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_note", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_claim_request"),
    )
    op.create_index("ix_claim_request_requester", "claim_request", ["requester"])
    op.create_index("ix_claim_request_family_id", "claim_request", ["family_id"])
    op.create_index("ix_claim_request_member_id", "claim_request", ["member_id"])
    op.create_index(
        "uq_claim_request_pending_requester_member",
        "claim_request",
        ["requester", "member_id"],
        unique=True,
        sqlite_where=sa.text(PENDING_ONLY),
        postgresql_where=sa.text(PENDING_ONLY),
    )

    op.create_table(
        "family_invitation",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("family_id", sa.Uuid(), nullable=False),
        sa.Column("family_name", sa.String(length=100), nullable=False),
        sa.Column("inviter", sa.String(length=255), nullable=False),
        sa.Column("invitee", sa.String(length=255), nullable=False),
        sa.Column("relationship_to_admin", sa.String(length=100), nullable=False),
        sa.Column("message", sa.String(length=1000), nullable=True),
        sa.Column("status", _enum(INVITATION_STATUS, "invitationstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_note", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_family_invitation"),
    )
    op.create_index("ix_family_invitation_family_id", "family_invitation", ["family_id"])
    op.create_index("ix_family_invitation_inviter", "family_invitation", ["inviter"])
    op.create_index("ix_family_invitation_invitee", "family_invitation", ["invitee"])
    op.create_index(
        "uq_family_invitation_pending_family_invitee",
        "family_invitation",
        ["family_id", "invitee"],
        unique=True,
        sqlite_where=sa.text(PENDING_ONLY),
        postgresql_where=sa.text(PENDING_ONLY),
    )

    op.create_table(
        "notification",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipient", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "notification_type", _enum(NOTIFICATION_TYPE, "notificationtype"), nullable=False
        ),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("action_url", sa.String(length=255), nullable=True),
        sa.Column("subject_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_notification"),
    )
    op.create_index("ix_notification_recipient", "notification", ["recipient"])


def downgrade() -> None:
    op.drop_index("ix_notification_recipient", table_name="notification")
    op.drop_table("notification")

    op.drop_index("uq_family_invitation_pending_family_invitee", table_name="family_invitation")
    op.drop_index("ix_family_invitation_invitee", table_name="family_invitation")
    op.drop_index("ix_family_invitation_inviter", table_name="family_invitation")
    op.drop_index("ix_family_invitation_family_id", table_name="family_invitation")
    op.drop_table("family_invitation")

    op.drop_index("uq_claim_request_pending_requester_member", table_name="claim_request")
    op.drop_index("ix_claim_request_member_id", table_name="claim_request")
    op.drop_index("ix_claim_request_family_id", table_name="claim_request")
    op.drop_index("ix_claim_request_requester", table_name="claim_request")
    op.drop_table("claim_request")

    op.drop_index("ix_family_member_linked_identity", table_name="family_member")
    op.drop_index("ix_family_member_family_id", table_name="family_member")
    op.drop_table("family_member")

    op.drop_index("ix_family_admin", table_name="family")
    op.drop_table("family")

    op.drop_table("profile")
