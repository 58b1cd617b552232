"""Registered user profiles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from legatia.domain.model.primitives import UNCHANGED, FieldUpdate, apply_required

if TYPE_CHECKING:
    from datetime import date, datetime

    from legatia.domain.model.enums import Sex
    from legatia.domain.model.primitives import Identity


@dataclass(eq=False, kw_only=True)
class Profile:
    """One profile per registered identity, mutated by its owner only."""

    identity: Identity
    full_name: str
    surname_at_birth: str
    sex: Sex
    birthday: date
    birth_city: str
    birth_country: str
    created_at: datetime
    updated_at: datetime

    def apply(self, update: ProfileUpdate, *, now: datetime) -> None:
        self.full_name = apply_required(self.full_name, update.full_name, "full_name")
        self.surname_at_birth = apply_required(
            self.surname_at_birth, update.surname_at_birth, "surname_at_birth"
        )
        self.sex = apply_required(self.sex, update.sex, "sex")
        self.birthday = apply_required(self.birthday, update.birthday, "birthday")
        self.birth_city = apply_required(self.birth_city, update.birth_city, "birth_city")
        self.birth_country = apply_required(
            self.birth_country, update.birth_country, "birth_country"
        )
        self.updated_at = now


@dataclass(frozen=True, kw_only=True)
class ProfileUpdate:
    full_name: FieldUpdate[str] = UNCHANGED
    surname_at_birth: FieldUpdate[str] = UNCHANGED
    sex: FieldUpdate[Sex] = UNCHANGED
    birthday: FieldUpdate[date] = UNCHANGED
    birth_city: FieldUpdate[str] = UNCHANGED
    birth_country: FieldUpdate[str] = UNCHANGED
