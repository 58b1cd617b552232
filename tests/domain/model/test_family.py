from __future__ import annotations

from datetime import date, timedelta

import pytest

from legatia.domain.errors import (
    AlreadyLinkedError,
    AlreadyMemberError,
    InvalidInputError,
    NotFoundError,
)
from legatia.domain.model import CLEARED, MemberUpdate, SetTo
from tests.helpers.family_tree import T0, make_family, make_ghost


def test_members_are_appended_in_position_order() -> None:
    family = make_family()
    first = make_ghost(family, full_name="Ann Doe")
    second = make_ghost(family, full_name="Bob Doe")

    assert (first.position, second.position) == (0, 1)
    assert [member.full_name for member in family.members] == ["Ann Doe", "Bob Doe"]
    assert family.ghosts == family.members


def test_position_continues_after_removal() -> None:
    family = make_family()
    first = make_ghost(family)
    make_ghost(family)
    family.remove_member(first.id, now=T0)

    third = make_ghost(family)

    assert third.position == 2


def test_link_member_binds_identity_once() -> None:
    family = make_family()
    ghost = make_ghost(family)
    later = T0 + timedelta(hours=1)

    family.link_member(ghost.id, "jane", now=later)

    assert ghost.linked_identity == "jane"
    assert not ghost.is_ghost
    assert family.updated_at == later
    assert family.has_access("jane")
    with pytest.raises(AlreadyLinkedError):
        family.link_member(ghost.id, "john", now=later)


def test_one_member_per_identity() -> None:
    family = make_family()
    first = make_ghost(family)
    second = make_ghost(family, full_name="Janet Doe")
    family.link_member(first.id, "jane", now=T0)

    with pytest.raises(AlreadyMemberError):
        family.link_member(second.id, "jane", now=T0)
    assert second.is_ghost


def test_unknown_member_is_not_found() -> None:
    family = make_family()

    with pytest.raises(NotFoundError):
        family.require_member(make_family().id)


def test_member_update_tri_state() -> None:
    family = make_family()
    ghost = make_ghost(family, birth_city="Springfield")

    ghost.apply(
        MemberUpdate(
            full_name=SetTo("Jane Q. Doe"),
            birth_city=CLEARED,
            death_date=SetTo(date(2020, 1, 1)),
        )
    )

    assert ghost.full_name == "Jane Q. Doe"
    assert ghost.birth_city is None
    assert ghost.death_date == date(2020, 1, 1)
    assert ghost.surname_at_birth == "Doe"
    assert ghost.birthday == date(1990, 5, 1)


def test_required_member_field_cannot_be_cleared() -> None:
    family = make_family()
    ghost = make_ghost(family)

    with pytest.raises(InvalidInputError):
        ghost.apply(MemberUpdate(full_name=CLEARED))
