"""Errors raised while reading Legatia settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """A setting is present but unusable (bad number, out-of-range policy, ...)."""


class MissingConfigurationError(ConfigurationError):
    """Required environment variables are unset or blank."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        super().__init__(f"Missing configuration for: {', '.join(self.names)}")
