"""Per-recipient notification records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from legatia.domain.model.entity import Entity

if TYPE_CHECKING:
    from datetime import datetime

    from legatia.domain.model.enums import NotificationType
    from legatia.domain.model.primitives import Identity


@dataclass(eq=False, kw_only=True)
class Notification(Entity):
    recipient: Identity
    title: str
    message: str
    notification_type: NotificationType
    is_read: bool = False
    action_url: str | None = None
    subject_id: str | None = None
    created_at: datetime

    def mark_read(self) -> bool:
        """Return ``True`` when the flag actually changed."""

        if self.is_read:
            return False
        self.is_read = True
        return True
