"""Domain primitives: scalar aliases + the tri-state field update.

``FieldUpdate`` replaces the wire convention of optional-as-list. The three cases
are distinct types so "leave alone", "clear" and "set" cannot be confused.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from legatia.domain.errors import InvalidInputError

type Identity = str


@dataclass(frozen=True, slots=True)
class Unchanged:
    pass


@dataclass(frozen=True, slots=True)
class Cleared:
    pass


@dataclass(frozen=True, slots=True)
class SetTo[T]:
    value: T


type FieldUpdate[T] = Unchanged | Cleared | SetTo[T]

UNCHANGED: Final[Unchanged] = Unchanged()
CLEARED: Final[Cleared] = Cleared()


def apply_optional[T](current: T | None, update: FieldUpdate[T]) -> T | None:
    """Resolve an update against an optional field."""

    match update:
        case Unchanged():
            return current
        case Cleared():
            return None
        case SetTo(value=value):
            return value


def apply_required[T](current: T, update: FieldUpdate[T], field_name: str) -> T:
    """Resolve an update against a required field; clearing it is rejected."""

    match update:
        case Unchanged():
            return current
        case Cleared():
            raise InvalidInputError(f"{field_name} is required and cannot be cleared")
        case SetTo(value=value):
            return value
