"""Pydantic models for the remote call surface.

Conventions: timestamps are integer nanoseconds since the epoch, dates are ISO strings
and optional values are zero-or-one element lists. In update requests an *absent*
field means "leave alone", ``[]`` means "clear" and ``[value]`` means "set".
"""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import Any, cast
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator

from legatia.domain.errors import ErrorKind  # noqa: TC001
from legatia.domain.model import ClaimStatus, InvitationStatus, NotificationType, Sex


def _normalize_sex(value: object) -> object:
    if isinstance(value, str):
        for sex in Sex:
            if sex.value.lower() == value.strip().lower():
                return sex
    return value


def _normalize_sex_list(value: object) -> object:
    if isinstance(value, list):
        return [_normalize_sex(item) for item in cast(list[object], value)]
    return value


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# Errors ------------------------------------------------------------------------


class ErrorPayload(WireModel):
    kind: ErrorKind
    message: str


class Envelope(WireModel):
    """``{"ok": value}`` or ``{"err": {"kind": ..., "message": ...}}``."""

    ok: Any = None
    err: ErrorPayload | None = None


# Responses -----------------------------------------------------------------------


class ProfileWire(WireModel):
    identity: str
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: date
    birth_city: str
    birth_country: str
    created_at: int
    updated_at: int


class MemberWire(WireModel):
    id: UUID
    linked_identity: list[str] = Field(default_factory=list, max_length=1)
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: list[date] = Field(default_factory=list, max_length=1)
    birth_city: list[str] = Field(default_factory=list, max_length=1)
    birth_country: list[str] = Field(default_factory=list, max_length=1)
    death_date: list[date] = Field(default_factory=list, max_length=1)
    relationship_to_admin: str
    created_by: str
    created_at: int
    position: int


class FamilyWire(WireModel):
    id: UUID
    name: str
    description: str
    admin: str
    is_visible: bool
    members: list[MemberWire] = Field(default_factory=list)
    created_at: int
    updated_at: int


class GhostProfileMatchWire(WireModel):
    family_id: UUID
    member_id: UUID
    family_name: str
    ghost_profile_name: str
    similarity_score: int = Field(ge=0, le=100)


class ProfileSnapshotWire(WireModel):
    identity: str
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: date
    birth_city: str
    birth_country: str


class MemberSnapshotWire(WireModel):
    member_id: UUID
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: list[date] = Field(default_factory=list, max_length=1)
    birth_city: list[str] = Field(default_factory=list, max_length=1)
    birth_country: list[str] = Field(default_factory=list, max_length=1)
    relationship_to_admin: str


class ClaimRequestWire(WireModel):
    id: UUID
    requester: str
    family_id: UUID
    family_name: str
    member_id: UUID
    requester_profile: ProfileSnapshotWire
    member_snapshot: MemberSnapshotWire
    status: ClaimStatus
    created_at: int
    decided_at: list[int] = Field(default_factory=list, max_length=1)
    decision_note: list[str] = Field(default_factory=list, max_length=1)


class FamilyInvitationWire(WireModel):
    id: UUID
    family_id: UUID
    family_name: str
    inviter: str
    invitee: str
    relationship_to_admin: str
    message: list[str] = Field(default_factory=list, max_length=1)
    status: InvitationStatus
    created_at: int
    decided_at: list[int] = Field(default_factory=list, max_length=1)
    decision_note: list[str] = Field(default_factory=list, max_length=1)


class NotificationWire(WireModel):
    id: UUID
    recipient: str
    title: str
    message: str
    notification_type: NotificationType
    read: bool
    action_url: list[str] = Field(default_factory=list, max_length=1)
    metadata: list[str] = Field(default_factory=list, max_length=1)
    created_at: int


class UserMatchWire(WireModel):
    identity: str
    full_name: str
    surname_at_birth: str


# Requests ------------------------------------------------------------------------


class NoArguments(WireModel):
    pass


class FamilyMemberRef(WireModel):
    family_id: UUID
    member_id: UUID


class ClaimRef(WireModel):
    claim_id: UUID


class ProcessClaimArguments(WireModel):
    claim_id: UUID
    approve: bool
    admin_message: list[str] = Field(default_factory=list, max_length=1)


class SearchUsersArguments(WireModel):
    query: str


class SendInvitationArguments(WireModel):
    family_id: UUID
    user_id: str
    relationship_to_admin: str
    message: list[str] = Field(default_factory=list, max_length=1)


class ProcessInvitationArguments(WireModel):
    invitation_id: UUID
    accept: bool


class NotificationRef(WireModel):
    notification_id: UUID


class FamilyRef(WireModel):
    family_id: UUID


class ToggleVisibilityArguments(WireModel):
    family_id: UUID
    is_visible: bool


class CreateProfileArguments(WireModel):
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: date
    birth_city: str
    birth_country: str

    normalize_sex = field_validator("sex", mode="before")(_normalize_sex)


class UpdateProfileArguments(WireModel):
    full_name: list[str] = Field(default_factory=list, max_length=1)
    surname_at_birth: list[str] = Field(default_factory=list, max_length=1)
    sex: list[Sex] = Field(default_factory=list, max_length=1)
    birthday: list[date] = Field(default_factory=list, max_length=1)
    birth_city: list[str] = Field(default_factory=list, max_length=1)
    birth_country: list[str] = Field(default_factory=list, max_length=1)

    normalize_sex = field_validator("sex", mode="before")(_normalize_sex_list)


class CreateFamilyArguments(WireModel):
    name: str
    description: str = ""
    is_visible: list[bool] = Field(default_factory=list, max_length=1)


class AddMemberArguments(WireModel):
    family_id: UUID
    full_name: str
    surname_at_birth: str
    sex: Sex
    relationship_to_admin: str
    birthday: list[date] = Field(default_factory=list, max_length=1)
    birth_city: list[str] = Field(default_factory=list, max_length=1)
    birth_country: list[str] = Field(default_factory=list, max_length=1)
    death_date: list[date] = Field(default_factory=list, max_length=1)

    normalize_sex = field_validator("sex", mode="before")(_normalize_sex)


class UpdateMemberArguments(WireModel):
    family_id: UUID
    member_id: UUID
    full_name: list[str] = Field(default_factory=list, max_length=1)
    surname_at_birth: list[str] = Field(default_factory=list, max_length=1)
    sex: list[Sex] = Field(default_factory=list, max_length=1)
    birthday: list[date] = Field(default_factory=list, max_length=1)
    birth_city: list[str] = Field(default_factory=list, max_length=1)
    birth_country: list[str] = Field(default_factory=list, max_length=1)
    death_date: list[date] = Field(default_factory=list, max_length=1)
    relationship_to_admin: list[str] = Field(default_factory=list, max_length=1)

    normalize_sex = field_validator("sex", mode="before")(_normalize_sex_list)
