"""Translate between domain records and wire models."""

from __future__ import annotations

from dataclasses import fields
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Final

from legatia.domain.model import (
    CLEARED,
    UNCHANGED,
    Cleared,
    MemberUpdate,
    ProfileUpdate,
    SetTo,
)

from .schema import (
    ClaimRequestWire,
    FamilyInvitationWire,
    FamilyWire,
    GhostProfileMatchWire,
    MemberSnapshotWire,
    MemberWire,
    NotificationWire,
    ProfileSnapshotWire,
    ProfileWire,
    UpdateMemberArguments,
    UpdateProfileArguments,
    UserMatchWire,
)

if TYPE_CHECKING:
    from uuid import UUID

    from pydantic import BaseModel

    from legatia.domain.directory import UserMatch
    from legatia.domain.matching import GhostProfileMatch
    from legatia.domain.model import (
        ClaimRequest,
        Family,
        FamilyInvitation,
        FieldUpdate,
        Member,
        MemberSnapshot,
        Notification,
        Profile,
        ProfileSnapshot,
    )

EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)
_NANOS_PER_MICRO: Final[int] = 1_000


def to_nanos(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - EPOCH) // timedelta(microseconds=1) * _NANOS_PER_MICRO


def from_nanos(value: int) -> datetime:
    return EPOCH + timedelta(microseconds=value // _NANOS_PER_MICRO)


def opt[T](value: T | None) -> list[T]:
    """Optional value as a zero-or-one element list."""

    return [] if value is None else [value]


def first[T](values: list[T]) -> T | None:
    return values[0] if values else None


# Domain -> wire ------------------------------------------------------------------


def profile_to_wire(profile: Profile) -> ProfileWire:
    return ProfileWire(
        identity=profile.identity,
        full_name=profile.full_name,
        surname_at_birth=profile.surname_at_birth,
        sex=profile.sex,
        birthday=profile.birthday,
        birth_city=profile.birth_city,
        birth_country=profile.birth_country,
        created_at=to_nanos(profile.created_at),
        updated_at=to_nanos(profile.updated_at),
    )


def member_to_wire(member: Member) -> MemberWire:
    return MemberWire(
        id=member.id,
        linked_identity=opt(member.linked_identity),
        full_name=member.full_name,
        surname_at_birth=member.surname_at_birth,
        sex=member.sex,
        birthday=opt(member.birthday),
        birth_city=opt(member.birth_city),
        birth_country=opt(member.birth_country),
        death_date=opt(member.death_date),
        relationship_to_admin=member.relationship_to_admin,
        created_by=member.created_by,
        created_at=to_nanos(member.created_at),
        position=member.position,
    )


def family_to_wire(family: Family) -> FamilyWire:
    return FamilyWire(
        id=family.id,
        name=family.name,
        description=family.description,
        admin=family.admin,
        is_visible=family.is_visible,
        members=[member_to_wire(member) for member in family.members],
        created_at=to_nanos(family.created_at),
        updated_at=to_nanos(family.updated_at),
    )


def match_to_wire(match: GhostProfileMatch) -> GhostProfileMatchWire:
    return GhostProfileMatchWire(
        family_id=match.family_id,
        member_id=match.member_id,
        family_name=match.family_name,
        ghost_profile_name=match.ghost_profile_name,
        similarity_score=match.similarity_score,
    )


def _profile_snapshot_to_wire(snapshot: ProfileSnapshot) -> ProfileSnapshotWire:
    return ProfileSnapshotWire(
        identity=snapshot.identity,
        full_name=snapshot.full_name,
        surname_at_birth=snapshot.surname_at_birth,
        sex=snapshot.sex,
        birthday=snapshot.birthday,
        birth_city=snapshot.birth_city,
        birth_country=snapshot.birth_country,
    )


def _member_snapshot_to_wire(snapshot: MemberSnapshot) -> MemberSnapshotWire:
    return MemberSnapshotWire(
        member_id=snapshot.member_id,
        full_name=snapshot.full_name,
        surname_at_birth=snapshot.surname_at_birth,
        sex=snapshot.sex,
        birthday=opt(snapshot.birthday),
        birth_city=opt(snapshot.birth_city),
        birth_country=opt(snapshot.birth_country),
        relationship_to_admin=snapshot.relationship_to_admin,
    )


def claim_to_wire(claim: ClaimRequest) -> ClaimRequestWire:
    return ClaimRequestWire(
        id=claim.id,
        requester=claim.requester,
        family_id=claim.family_id,
        family_name=claim.family_name,
        member_id=claim.member_id,
        requester_profile=_profile_snapshot_to_wire(claim.requester_profile),
        member_snapshot=_member_snapshot_to_wire(claim.member_snapshot),
        status=claim.status,
        created_at=to_nanos(claim.created_at),
        decided_at=[to_nanos(claim.decided_at)] if claim.decided_at else [],
        decision_note=opt(claim.decision_note),
    )


def invitation_to_wire(invitation: FamilyInvitation) -> FamilyInvitationWire:
    return FamilyInvitationWire(
        id=invitation.id,
        family_id=invitation.family_id,
        family_name=invitation.family_name,
        inviter=invitation.inviter,
        invitee=invitation.invitee,
        relationship_to_admin=invitation.relationship_to_admin,
        message=opt(invitation.message),
        status=invitation.status,
        created_at=to_nanos(invitation.created_at),
        decided_at=[to_nanos(invitation.decided_at)] if invitation.decided_at else [],
        decision_note=opt(invitation.decision_note),
    )


def notification_to_wire(notification: Notification) -> NotificationWire:
    return NotificationWire(
        id=notification.id,
        recipient=notification.recipient,
        title=notification.title,
        message=notification.message,
        notification_type=notification.notification_type,
        read=notification.is_read,
        action_url=opt(notification.action_url),
        metadata=opt(notification.subject_id),
        created_at=to_nanos(notification.created_at),
    )


def user_match_to_wire(match: UserMatch) -> UserMatchWire:
    return UserMatchWire(
        identity=match.identity,
        full_name=match.full_name,
        surname_at_birth=match.surname_at_birth,
    )


# Wire -> domain ------------------------------------------------------------------


def field_update[T](arguments: BaseModel, name: str) -> FieldUpdate[T]:
    """Read the tri-state convention off an update request.

    A field that was not sent is ``Unchanged``; ``[]`` is ``Cleared``; ``[v]`` is ``SetTo(v)``.
    """

    if name not in arguments.model_fields_set:
        return UNCHANGED
    values: list[T] = getattr(arguments, name)
    if not values:
        return CLEARED
    return SetTo(values[0])


def profile_update_from_wire(arguments: UpdateProfileArguments) -> ProfileUpdate:
    return ProfileUpdate(
        full_name=field_update(arguments, "full_name"),
        surname_at_birth=field_update(arguments, "surname_at_birth"),
        sex=field_update(arguments, "sex"),
        birthday=field_update(arguments, "birthday"),
        birth_city=field_update(arguments, "birth_city"),
        birth_country=field_update(arguments, "birth_country"),
    )


def member_update_from_wire(arguments: UpdateMemberArguments) -> MemberUpdate:
    return MemberUpdate(
        full_name=field_update(arguments, "full_name"),
        surname_at_birth=field_update(arguments, "surname_at_birth"),
        sex=field_update(arguments, "sex"),
        birthday=field_update(arguments, "birthday"),
        birth_city=field_update(arguments, "birth_city"),
        birth_country=field_update(arguments, "birth_country"),
        death_date=field_update(arguments, "death_date"),
        relationship_to_admin=field_update(arguments, "relationship_to_admin"),
    )


def _update_payload(update: ProfileUpdate | MemberUpdate) -> dict[str, object]:
    payload: dict[str, object] = {}
    for item in fields(update):
        match getattr(update, item.name):
            case Cleared():
                payload[item.name] = []
            case SetTo(value=value):
                payload[item.name] = [value]
            case _:
                pass
    return payload


def profile_update_to_wire(update: ProfileUpdate) -> UpdateProfileArguments:
    """Inverse of ``profile_update_from_wire``; unchanged fields stay unset."""

    return UpdateProfileArguments.model_validate(_update_payload(update))


def member_update_to_wire(
    family_id: UUID, member_id: UUID, update: MemberUpdate
) -> UpdateMemberArguments:
    payload = _update_payload(update)
    payload["family_id"] = family_id
    payload["member_id"] = member_id
    return UpdateMemberArguments.model_validate(payload)
