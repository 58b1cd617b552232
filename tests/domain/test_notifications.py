from __future__ import annotations

import pytest

from legatia.domain.errors import NotFoundError, NotRecipientError
from legatia.domain.model import NotificationType, new_id
from legatia.domain.notifications import (
    list_notifications,
    mark_all_read,
    mark_read,
    unread_count,
)
from tests.helpers.family_tree import T0, dispatcher_for, make_repositories


def test_mark_read_is_per_recipient_and_idempotent() -> None:
    repositories = make_repositories()
    dispatcher = dispatcher_for(repositories)
    first = dispatcher.emit(
        recipient="jane",
        title="Hello",
        message="First",
        notification_type=NotificationType.SYSTEM_ALERT,
        now=T0,
    )
    dispatcher.emit(
        recipient="jane",
        title="Hello again",
        message="Second",
        notification_type=NotificationType.FAMILY_UPDATE,
        now=T0,
    )

    assert unread_count(repositories, recipient="jane") == 2
    with pytest.raises(NotRecipientError):
        mark_read(repositories, recipient="john", notification_id=first.id)
    with pytest.raises(NotFoundError):
        mark_read(repositories, recipient="jane", notification_id=new_id())

    mark_read(repositories, recipient="jane", notification_id=first.id)
    mark_read(repositories, recipient="jane", notification_id=first.id)

    assert first.is_read
    assert unread_count(repositories, recipient="jane") == 1
    assert [n.message for n in list_notifications(repositories, recipient="jane")] == [
        "Second",
        "First",
    ]


def test_mark_all_read_counts_changes() -> None:
    repositories = make_repositories()
    dispatcher = dispatcher_for(repositories)
    for index in range(3):
        dispatcher.emit(
            recipient="jane",
            title=f"n{index}",
            message="m",
            notification_type=NotificationType.SYSTEM_ALERT,
            now=T0,
        )

    assert mark_all_read(repositories, recipient="jane") == 3
    assert mark_all_read(repositories, recipient="jane") == 0
    assert unread_count(repositories, recipient="jane") == 0
