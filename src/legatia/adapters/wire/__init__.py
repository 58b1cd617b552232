"""Wire format of the remote call surface."""

from __future__ import annotations

from .handler import METHODS, RemoteCallHandler, failure_envelope
from .schema import Envelope, ErrorPayload

__all__ = [
    "METHODS",
    "Envelope",
    "ErrorPayload",
    "RemoteCallHandler",
    "failure_envelope",
]
