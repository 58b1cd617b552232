"""Family store: the sole writer of families, members and the ``linked`` transition."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from legatia.domain.directory import require_profile, validated_name
from legatia.domain.errors import NotAdminError, NotFoundError, NotMemberError
from legatia.domain.model import Family, Member
from legatia.domain.validation import (
    validate_description,
    validate_name,
    validate_optional_name,
)

if TYPE_CHECKING:
    from datetime import date, datetime
    from uuid import UUID

    from legatia.domain.model import Identity, MemberUpdate, Profile, Sex
    from legatia.domain.notifications import NotificationDispatcher
    from legatia.domain.ports import FamilyTreeRepositories

log = getLogger(__name__)

MEMBER_REMOVED_REASON = "The family member was removed by the family admin."


def require_family(repositories: FamilyTreeRepositories, family_id: UUID) -> Family:
    family = repositories.families.get(family_id)
    if family is None:
        raise NotFoundError("Family not found")
    return family


def require_admin(family: Family, identity: Identity, action: str = "manage this family") -> None:
    if not family.is_admin(identity):
        raise NotAdminError(f"Only the family admin can {action}")


def create_family(
    repositories: FamilyTreeRepositories,
    *,
    admin: Identity,
    name: str,
    description: str,
    is_visible: bool = True,
    now: datetime,
) -> Family:
    family_name = validate_name(name, "family_name")
    family_description = validate_description(description)
    require_profile(repositories, admin)
    family = Family(
        name=family_name,
        description=family_description,
        admin=admin,
        is_visible=is_visible,
        created_at=now,
        updated_at=now,
    )
    repositories.families.add(family)
    log.info("Created family %s (%s) for %s", family.id, family.name, admin)
    return family


def get_family(
    repositories: FamilyTreeRepositories, *, caller: Identity, family_id: UUID
) -> Family:
    family = require_family(repositories, family_id)
    if not family.has_access(caller):
        raise NotMemberError("You are not a member of this family")
    return family


def list_user_families(repositories: FamilyTreeRepositories, *, caller: Identity) -> list[Family]:
    return repositories.families.list_for_identity(caller)


def add_ghost_member(
    repositories: FamilyTreeRepositories,
    *,
    caller: Identity,
    family_id: UUID,
    full_name: str,
    surname_at_birth: str,
    sex: Sex,
    relationship_to_admin: str,
    birthday: date | None = None,
    birth_city: str | None = None,
    birth_country: str | None = None,
    death_date: date | None = None,
    now: datetime,
) -> Member:
    family = require_family(repositories, family_id)
    require_admin(family, caller, "add members")
    member = Member(
        full_name=validate_name(full_name, "full_name"),
        surname_at_birth=validate_name(surname_at_birth, "surname_at_birth"),
        sex=sex,
        birthday=birthday,
        birth_city=validate_optional_name(birth_city, "birth_city"),
        birth_country=validate_optional_name(birth_country, "birth_country"),
        death_date=death_date,
        relationship_to_admin=validate_name(relationship_to_admin, "relationship_to_admin"),
        created_by=caller,
        created_at=now,
    )
    family.add_member(member, now=now)
    log.info("Added ghost member %s to family %s", member.id, family.id)
    return member


def add_linked_member(
    family: Family,
    *,
    profile: Profile,
    relationship_to_admin: str,
    created_by: Identity,
    now: datetime,
) -> Member:
    """Append a new member already bound to ``profile``; never merged with a ghost."""

    member = Member(
        full_name=profile.full_name,
        surname_at_birth=profile.surname_at_birth,
        sex=profile.sex,
        birthday=profile.birthday,
        birth_city=profile.birth_city,
        birth_country=profile.birth_country,
        relationship_to_admin=relationship_to_admin,
        created_by=created_by,
        created_at=now,
        linked_identity=profile.identity,
    )
    family.add_member(member, now=now)
    log.info("Linked %s into family %s as a new member", profile.identity, family.id)
    return member


def update_member(
    repositories: FamilyTreeRepositories,
    *,
    caller: Identity,
    family_id: UUID,
    member_id: UUID,
    update: MemberUpdate,
    now: datetime,
) -> Member:
    """Apply a tri-state update; the link itself is never touched here."""

    family = require_family(repositories, family_id)
    require_admin(family, caller, "update members")
    member = family.require_member(member_id)
    member.apply(
        replace(
            update,
            full_name=validated_name(update.full_name, "full_name"),
            surname_at_birth=validated_name(update.surname_at_birth, "surname_at_birth"),
            birth_city=validated_name(update.birth_city, "birth_city"),
            birth_country=validated_name(update.birth_country, "birth_country"),
            relationship_to_admin=validated_name(
                update.relationship_to_admin, "relationship_to_admin"
            ),
        )
    )
    family.updated_at = now
    return member


def remove_member(
    repositories: FamilyTreeRepositories,
    dispatcher: NotificationDispatcher,
    *,
    caller: Identity,
    family_id: UUID,
    member_id: UUID,
    now: datetime,
) -> Member:
    """Remove a member; pending claims on it are rejected and their requesters told."""

    family = require_family(repositories, family_id)
    require_admin(family, caller, "remove members")
    member = family.remove_member(member_id, now=now)
    for claim in repositories.claims.list_pending_for_member(member.id):
        claim.reject(now=now, note=MEMBER_REMOVED_REASON)
        dispatcher.claim_decided(claim, now=now)
    log.info("Removed member %s from family %s", member.id, family.id)
    return member


def set_visibility(
    repositories: FamilyTreeRepositories,
    *,
    caller: Identity,
    family_id: UUID,
    is_visible: bool,
    now: datetime,
) -> Family:
    family = require_family(repositories, family_id)
    require_admin(family, caller, "change family visibility")
    family.set_visibility(is_visible=is_visible, now=now)
    log.info("Family %s visibility set to %s", family.id, is_visible)
    return family
