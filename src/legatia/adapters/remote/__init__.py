"""Public interface for the HTTP remote backend."""

from __future__ import annotations

from .client import RPC_PATH_PREFIX, HttpRemoteBackend, RemoteResponseError

__all__ = [
    "RPC_PATH_PREFIX",
    "HttpRemoteBackend",
    "RemoteResponseError",
]
