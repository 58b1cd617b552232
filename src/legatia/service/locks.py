"""Per-family mutual exclusion for mutating calls."""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from threading import Lock, RLock
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from uuid import UUID


class FamilyLockRegistry:
    """Hand out one re-entrant lock per family id.

    ``hold`` acquires several locks in a stable (sorted) order so multi-family
    operations cannot deadlock against each other.
    """

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[UUID, RLock] = {}

    def lock_for(self, family_id: UUID) -> RLock:
        with self._guard:
            lock = self._locks.get(family_id)
            if lock is None:
                lock = RLock()
                self._locks[family_id] = lock
            return lock

    @contextmanager
    def hold(self, *family_ids: UUID) -> Iterator[None]:
        with ExitStack() as stack:
            for family_id in sorted(set(family_ids), key=str):
                stack.enter_context(self.lock_for(family_id))
            yield
