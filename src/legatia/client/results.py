"""Discriminated result of a client action."""

from __future__ import annotations

from dataclasses import dataclass

from legatia.domain.errors import ErrorKind  # noqa: TC001


@dataclass(frozen=True, slots=True)
class Success[T]:
    value: T


@dataclass(frozen=True, slots=True)
class Failure:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


type Result[T] = Success[T] | Failure
