"""Matcher: score unclaimed ghost members against a user's profile.

Scoring is pluggable. ``default_scorer`` compares case- and accent-insensitively and
only counts the fields the ghost actually records, so a sparse ghost is not penalised
for what the admin did not know.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from legatia.domain.directory import require_profile

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from legatia.domain.model import Family, Identity, Member, Profile
    from legatia.domain.ports import FamilyTreeRepositories

FULL_NAME_WEIGHT: Final[int] = 35
PARTIAL_NAME_WEIGHT: Final[int] = 17
SURNAME_WEIGHT: Final[int] = 25
SEX_WEIGHT: Final[int] = 10
BIRTHDAY_WEIGHT: Final[int] = 20
BIRTH_YEAR_WEIGHT: Final[int] = 10
BIRTH_CITY_WEIGHT: Final[int] = 5
BIRTH_COUNTRY_WEIGHT: Final[int] = 5

type SimilarityScorer = Callable[[Profile, Member], int]


@dataclass(frozen=True, slots=True)
class GhostProfileMatch:
    family_id: UUID
    member_id: UUID
    family_name: str
    ghost_profile_name: str
    similarity_score: int


def fold(text: str) -> str:
    """Lower-case, strip accents and collapse whitespace."""

    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return " ".join(stripped.casefold().split())


def default_scorer(profile: Profile, member: Member) -> int:
    earned = 0
    possible = FULL_NAME_WEIGHT + SURNAME_WEIGHT + SEX_WEIGHT

    profile_name, member_name = fold(profile.full_name), fold(member.full_name)
    if profile_name == member_name:
        earned += FULL_NAME_WEIGHT
    elif profile_name and member_name and (
        profile_name in member_name or member_name in profile_name
    ):
        earned += PARTIAL_NAME_WEIGHT

    if fold(profile.surname_at_birth) == fold(member.surname_at_birth):
        earned += SURNAME_WEIGHT

    if profile.sex == member.sex:
        earned += SEX_WEIGHT

    if member.birthday is not None:
        possible += BIRTHDAY_WEIGHT
        if profile.birthday == member.birthday:
            earned += BIRTHDAY_WEIGHT
        elif profile.birthday.year == member.birthday.year:
            earned += BIRTH_YEAR_WEIGHT

    if member.birth_city:
        possible += BIRTH_CITY_WEIGHT
        if fold(profile.birth_city) == fold(member.birth_city):
            earned += BIRTH_CITY_WEIGHT

    if member.birth_country:
        possible += BIRTH_COUNTRY_WEIGHT
        if fold(profile.birth_country) == fold(member.birth_country):
            earned += BIRTH_COUNTRY_WEIGHT

    return earned * 100 // possible


def find_matches(
    profile: Profile,
    families: Iterable[Family],
    *,
    threshold: int,
    scorer: SimilarityScorer = default_scorer,
) -> list[GhostProfileMatch]:
    """Pure read over ``families``; returns matches at or above ``threshold``."""

    ranked: list[tuple[int, Family, Member]] = []
    for family in families:
        if not family.is_visible or _is_involved(family, profile.identity):
            continue
        for member in family.ghosts:
            score = min(max(scorer(profile, member), 0), 100)
            if score >= threshold:
                ranked.append((score, family, member))

    ranked.sort(
        key=lambda item: (-item[0], item[1].created_at, str(item[1].id), item[2].position)
    )
    return [
        GhostProfileMatch(
            family_id=family.id,
            member_id=member.id,
            family_name=family.name,
            ghost_profile_name=member.full_name,
            similarity_score=score,
        )
        for score, family, member in ranked
    ]


def _is_involved(family: Family, identity: Identity) -> bool:
    return family.is_admin(identity) or family.member_linked_to(identity) is not None


def find_matching_ghost_profiles(
    repositories: FamilyTreeRepositories,
    *,
    caller: Identity,
    threshold: int,
    scorer: SimilarityScorer = default_scorer,
) -> list[GhostProfileMatch]:
    profile = require_profile(repositories, caller)
    return find_matches(
        profile, repositories.families.list_visible(), threshold=threshold, scorer=scorer
    )
