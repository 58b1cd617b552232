"""Identity directory: registered profiles and user search."""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from legatia.domain.errors import AlreadyMemberError, NotAuthenticatedError, NotFoundError
from legatia.domain.model import Profile, ProfileUpdate, SetTo
from legatia.domain.validation import validate_name, validate_search_query

if TYPE_CHECKING:
    from datetime import date, datetime

    from legatia.domain.model import FieldUpdate, Identity, Sex
    from legatia.domain.ports import FamilyTreeRepositories

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserMatch:
    """A search hit; never stored."""

    identity: Identity
    full_name: str
    surname_at_birth: str


def require_caller(caller: Identity | None) -> Identity:
    """Return the authenticated caller or raise ``NotAuthenticatedError``."""

    if caller is None or not caller.strip():
        raise NotAuthenticatedError
    return caller


def require_profile(repositories: FamilyTreeRepositories, identity: Identity) -> Profile:
    profile = repositories.profiles.get(identity)
    if profile is None:
        raise NotFoundError("User profile not found")
    return profile


def create_profile(
    repositories: FamilyTreeRepositories,
    *,
    identity: Identity,
    full_name: str,
    surname_at_birth: str,
    sex: Sex,
    birthday: date,
    birth_city: str,
    birth_country: str,
    now: datetime,
) -> Profile:
    if repositories.profiles.get(identity) is not None:
        raise AlreadyMemberError("Profile already exists for this identity")
    profile = Profile(
        identity=identity,
        full_name=validate_name(full_name, "full_name"),
        surname_at_birth=validate_name(surname_at_birth, "surname_at_birth"),
        sex=sex,
        birthday=birthday,
        birth_city=validate_name(birth_city, "birth_city"),
        birth_country=validate_name(birth_country, "birth_country"),
        created_at=now,
        updated_at=now,
    )
    repositories.profiles.add(profile)
    log.info("Created profile for %s", identity)
    return profile


def update_profile(
    repositories: FamilyTreeRepositories,
    *,
    identity: Identity,
    update: ProfileUpdate,
    now: datetime,
) -> Profile:
    profile = require_profile(repositories, identity)
    profile.apply(_validated_update(update), now=now)
    return profile


def validated_name(update: FieldUpdate[str], field_name: str) -> FieldUpdate[str]:
    """Validate the value carried by a ``SetTo``; other cases pass through."""

    if isinstance(update, SetTo):
        return SetTo(validate_name(update.value, field_name))
    return update


def _validated_update(update: ProfileUpdate) -> ProfileUpdate:
    return replace(
        update,
        full_name=validated_name(update.full_name, "full_name"),
        surname_at_birth=validated_name(update.surname_at_birth, "surname_at_birth"),
        birth_city=validated_name(update.birth_city, "birth_city"),
        birth_country=validated_name(update.birth_country, "birth_country"),
    )


def search_users(
    repositories: FamilyTreeRepositories, *, query: str, limit: int
) -> list[UserMatch]:
    """Substring search on identity, full name and surname; deduplicated, capped."""

    needle = validate_search_query(query)
    matches: list[UserMatch] = []
    seen: set[Identity] = set()
    for profile in repositories.profiles.search(needle, limit=limit):
        if profile.identity in seen:
            continue
        seen.add(profile.identity)
        matches.append(
            UserMatch(
                identity=profile.identity,
                full_name=profile.full_name,
                surname_at_birth=profile.surname_at_birth,
            )
        )
    return matches[:limit]
