from __future__ import annotations

import pytest

from legatia.domain.errors import InvalidInputError
from legatia.domain.validation import (
    validate_description,
    validate_message,
    validate_name,
    validate_optional_name,
    validate_reason,
    validate_search_query,
)


@pytest.mark.parametrize(
    "value",
    ["O'Brien", "Mary-Jane", "St. John", "José Müller"],
)
def test_validate_name_accepts_common_punctuation(value: str) -> None:
    assert validate_name(f"  {value} ", "full_name") == value


@pytest.mark.parametrize(
    ("value", "message"),
    [
        ("   ", "full_name cannot be empty"),
        ("x" * 101, "full_name is too long"),
        ("Jane!", "full_name contains invalid characters"),
    ],
)
def test_validate_name_rejects(value: str, message: str) -> None:
    with pytest.raises(InvalidInputError, match=message):
        validate_name(value, "full_name")


def test_optional_name_collapses_blank() -> None:
    assert validate_optional_name(None, "birth_city") is None
    assert validate_optional_name("  ", "birth_city") is None
    assert validate_optional_name(" Paris ", "birth_city") == "Paris"


def test_message_limits() -> None:
    assert validate_message("   ") is None
    assert validate_message("See you at 5pm @ home!") == "See you at 5pm @ home!"
    assert validate_message("x" * 1000) == "x" * 1000
    with pytest.raises(InvalidInputError, match="too long"):
        validate_message("x" * 1001)
    with pytest.raises(InvalidInputError, match="invalid characters"):
        validate_message("tab\x00null")


def test_reason_and_description_limits() -> None:
    assert validate_reason(" Not a match. ") == "Not a match."
    with pytest.raises(InvalidInputError, match="cannot be empty"):
        validate_reason("  ")
    with pytest.raises(InvalidInputError, match="too long"):
        validate_reason("x" * 201)
    assert validate_description("") == ""
    with pytest.raises(InvalidInputError, match="too long"):
        validate_description("x" * 501)


@pytest.mark.parametrize(
    ("value", "message"),
    [("", "cannot be empty"), ("a", "too short"), ("a" * 51, "too long"), ("a;b", "invalid")],
)
def test_search_query_rejects(value: str, message: str) -> None:
    with pytest.raises(InvalidInputError, match=message):
        validate_search_query(value)


def test_search_query_allows_email_like_identities() -> None:
    assert validate_search_query(" jane.doe@example ") == "jane.doe@example"
