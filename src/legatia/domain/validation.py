"""Input validation shared by the server and the client.

Limits: names up to 100 characters, descriptions 500,
messages 1000, decision reasons 200, search queries 2-50.
"""

from __future__ import annotations

from typing import Final

from legatia.domain.errors import InvalidInputError

MIN_NAME_LENGTH: Final[int] = 1
MAX_NAME_LENGTH: Final[int] = 100
MAX_DESCRIPTION_LENGTH: Final[int] = 500
MAX_MESSAGE_LENGTH: Final[int] = 1000
MAX_REASON_LENGTH: Final[int] = 200
MIN_SEARCH_QUERY_LENGTH: Final[int] = 2
MAX_SEARCH_QUERY_LENGTH: Final[int] = 50

_NAME_PUNCTUATION: Final[str] = "-'."
_TEXT_PUNCTUATION: Final[str] = ".,!?;:-'\"()[]{}"
_MESSAGE_PUNCTUATION: Final[str] = _TEXT_PUNCTUATION + "@#$%&*+=_/|\\<>"
_SEARCH_PUNCTUATION: Final[str] = "-'.@_"


def _allowed(text: str, punctuation: str) -> bool:
    return all(char.isalnum() or char.isspace() or char in punctuation for char in text)


def validate_name(value: str, field_name: str) -> str:
    """Return the trimmed name or raise ``InvalidInputError``."""

    trimmed = value.strip()
    if not trimmed:
        raise InvalidInputError(f"{field_name} cannot be empty")
    if len(trimmed) < MIN_NAME_LENGTH:
        raise InvalidInputError(f"{field_name} is too short")
    if len(trimmed) > MAX_NAME_LENGTH:
        raise InvalidInputError(f"{field_name} is too long")
    if not _allowed(trimmed, _NAME_PUNCTUATION):
        raise InvalidInputError(f"{field_name} contains invalid characters")
    return trimmed


def validate_optional_name(value: str | None, field_name: str) -> str | None:
    if value is None or not value.strip():
        return None
    return validate_name(value, field_name)


def validate_description(value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) > MAX_DESCRIPTION_LENGTH:
        raise InvalidInputError("description is too long")
    if not _allowed(trimmed, _TEXT_PUNCTUATION):
        raise InvalidInputError("description contains invalid characters")
    return trimmed


def validate_message(value: str | None) -> str | None:
    """Optional free-text message; blank collapses to ``None``."""

    if value is None:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    if len(trimmed) > MAX_MESSAGE_LENGTH:
        raise InvalidInputError("message is too long")
    if not _allowed(trimmed, _MESSAGE_PUNCTUATION):
        raise InvalidInputError("message contains invalid characters")
    return trimmed


def validate_reason(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise InvalidInputError("reason cannot be empty")
    if len(trimmed) > MAX_REASON_LENGTH:
        raise InvalidInputError("reason is too long")
    if not _allowed(trimmed, _TEXT_PUNCTUATION):
        raise InvalidInputError("reason contains invalid characters")
    return trimmed


def validate_search_query(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise InvalidInputError("search query cannot be empty")
    if len(trimmed) < MIN_SEARCH_QUERY_LENGTH:
        raise InvalidInputError("search query is too short")
    if len(trimmed) > MAX_SEARCH_QUERY_LENGTH:
        raise InvalidInputError("search query is too long")
    if not _allowed(trimmed, _SEARCH_PUNCTUATION):
        raise InvalidInputError("search query contains invalid characters")
    return trimmed
