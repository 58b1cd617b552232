"""Client side of the remote call surface."""

from __future__ import annotations

from .backend import InProcessBackend, RemoteBackend, RemoteClient
from .cache import ClientCache
from .reconciler import ClientReconciler
from .results import Failure, Result, Success

__all__ = [
    "ClientCache",
    "ClientReconciler",
    "Failure",
    "InProcessBackend",
    "RemoteBackend",
    "RemoteClient",
    "Result",
    "Success",
]
