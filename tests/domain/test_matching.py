from __future__ import annotations

from datetime import date, timedelta

import pytest

from legatia.domain.errors import NotFoundError
from legatia.domain.matching import (
    default_scorer,
    find_matches,
    find_matching_ghost_profiles,
    fold,
)
from legatia.domain.model import Sex
from tests.helpers.family_tree import (
    T0,
    make_family,
    make_ghost,
    make_profile,
    make_repositories,
)

THRESHOLD = 75


def test_fold_ignores_case_accents_and_spacing() -> None:
    assert fold("  José   MARÍA ") == "jose maria"


def test_identical_ghost_scores_full_marks() -> None:
    family = make_family()
    ghost = make_ghost(family, birth_city="Springfield", birth_country="usa")

    assert default_scorer(make_profile(), ghost) == 100


def test_sparse_ghost_is_scored_on_known_fields_only() -> None:
    family = make_family()
    ghost = make_ghost(family, birthday=None)

    assert default_scorer(make_profile(), ghost) == 100


def test_partial_evidence_scores_lower() -> None:
    family = make_family()
    ghost = make_ghost(family, full_name="Jane", birthday=date(1990, 9, 9), sex=Sex.MALE)

    score = default_scorer(make_profile(), ghost)

    # partial name 17 + surname 25 + birth year 10 out of 90
    assert score == 57


def test_find_matches_filters_and_orders() -> None:
    profile = make_profile()
    older = make_family(name="Older", now=T0)
    newer = make_family(name="Newer", now=T0 + timedelta(days=1))
    hidden = make_family(name="Hidden", is_visible=False)
    own = make_family(admin="jane", name="Own")
    make_ghost(newer)
    make_ghost(older)
    make_ghost(hidden)
    make_ghost(own)
    weak = make_ghost(older, full_name="Jim Beam", surname_at_birth="Beam", sex=Sex.MALE)

    matches = find_matches(profile, [newer, hidden, own, older], threshold=THRESHOLD)

    assert [match.family_name for match in matches] == ["Older", "Newer"]
    assert all(match.similarity_score == 100 for match in matches)
    assert weak.id not in {match.member_id for match in matches}


def test_find_matches_skips_linked_members_and_joined_families() -> None:
    profile = make_profile()
    family = make_family()
    claimed = make_ghost(family)
    family.link_member(claimed.id, "someone-else", now=T0)
    open_family = make_family(name="Open")
    make_ghost(open_family)
    joined = make_family(name="Joined")
    mine = make_ghost(joined)
    make_ghost(joined, full_name="Jane Doe")
    joined.link_member(mine.id, "jane", now=T0)

    matches = find_matches(profile, [family, open_family, joined], threshold=THRESHOLD)

    assert [match.family_name for match in matches] == ["Open"]


def test_scores_are_clamped_and_thresholded() -> None:
    family = make_family()
    make_ghost(family)

    assert find_matches(make_profile(), [family], threshold=0, scorer=lambda *_: 250)[
        0
    ].similarity_score == 100
    assert find_matches(make_profile(), [family], threshold=1, scorer=lambda *_: -5) == []


def test_find_matching_ghost_profiles_needs_a_profile() -> None:
    repositories = make_repositories(families=[make_family()])

    with pytest.raises(NotFoundError, match="User profile not found"):
        find_matching_ghost_profiles(repositories, caller="nobody", threshold=THRESHOLD)


def test_find_matching_ghost_profiles_reads_visible_families() -> None:
    family = make_family()
    ghost = make_ghost(family)
    repositories = make_repositories(profiles=[make_profile()], families=[family])

    matches = find_matching_ghost_profiles(repositories, caller="jane", threshold=THRESHOLD)

    assert [(match.family_id, match.member_id) for match in matches] == [(family.id, ghost.id)]
    assert matches[0].ghost_profile_name == "Jane Doe"
