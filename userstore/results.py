"""
Explicit result type for user-store operations.

Store operations never raise.  Instead each one returns either
:class:`Ok` (the backend answered) or :class:`Degraded` (the backend
failed and the data came from the local fallback cache).  Both carry
the same ``data`` shape, so callers that do not care about the backend
can read ``result.data`` and move on, while callers that do care can
check ``result.degraded`` and log ``result.reason``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Ok:
    """The backend handled the operation."""

    data: Any = None

    @property
    def degraded(self) -> bool:
        return False

    @property
    def reason(self) -> None:
        return None


@dataclass(frozen=True)
class Degraded:
    """
    The backend failed; *data* was served from the fallback cache.

    Attributes:
        data: Result computed against the fallback cache.
        reason: Short human-readable description of the failure.
    """

    data: Any
    reason: str

    @property
    def degraded(self) -> bool:
        return True


StoreResult = Ok | Degraded
