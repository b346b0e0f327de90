"""
User-store interface.

Defines :class:`UserStore`, the surface every stage script uses to read
and write user records regardless of where they physically live.  Two
implementations exist:

- :class:`~userstore.memory.MemoryUserStore`: a process-local list.
- :class:`~userstore.remote.RemoteUserStore`: the shared data server,
  degrading to a process-local fallback cache when it is unreachable.

Every operation returns a :data:`~userstore.results.StoreResult` and
never raises.  A missing record is ``Ok(None)``, not an error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from userstore.models import UserRecord
from userstore.results import StoreResult


class UserStore(ABC):
    """Uniform CRUD and status-query surface over user records."""

    @abstractmethod
    def initialize(self) -> StoreResult:
        """Prepare the backend for a run."""

    @abstractmethod
    def clear(self) -> StoreResult:
        """Remove every record."""

    @abstractmethod
    def save(self, record: dict[str, Any]) -> StoreResult:
        """
        Upsert *record* by ``username``; data is the stored record.

        A record without a non-blank string username is not stored and
        comes back as ``Degraded(None, ...)``.
        """

    @abstractmethod
    def update(self, username: str, fields: dict[str, Any]) -> StoreResult:
        """Merge *fields* into the record for *username*; data is the record or None."""

    @abstractmethod
    def get_by_username(self, username: str) -> StoreResult:
        """Data is the record for *username*, or None."""

    @abstractmethod
    def get_all(self) -> StoreResult:
        """Data is a list of every record."""

    @abstractmethod
    def get_by_status(self, step: str) -> StoreResult:
        """Data is the list of records whose ``step`` equals *step*."""

    @abstractmethod
    def get_phase2_ready(self) -> StoreResult:
        """Data is the list of records with ``phase2Ready`` true."""

    @abstractmethod
    def stats(self) -> StoreResult:
        """Data is the presence-based counters dict."""

    @abstractmethod
    def export_snapshot(self) -> StoreResult:
        """Data is ``{records, exportedAt, summary}``."""

    def close(self) -> None:
        """Release backend resources at the end of a run."""

    def __enter__(self) -> UserStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @staticmethod
    def _copy(records: list[UserRecord]) -> list[UserRecord]:
        return [dict(record) for record in records]
