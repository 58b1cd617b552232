"""Committed transitions that may still have to be reported as failures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from legatia.domain.errors import WorkflowError


@dataclass(slots=True)
class Outcome[T]:
    """``value`` was changed and must be committed; ``failure`` is raised afterwards."""

    value: T
    failure: WorkflowError | None = None

    def unwrap(self) -> T:
        if self.failure is not None:
            raise self.failure
        return self.value
