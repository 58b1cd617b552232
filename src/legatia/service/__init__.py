"""Server-side actor: the remote call surface over the domain workflows."""

from __future__ import annotations

from .actor import FamilyTreeService, SweepResult, utc_now
from .locks import FamilyLockRegistry

__all__ = ["FamilyLockRegistry", "FamilyTreeService", "SweepResult", "utc_now"]
