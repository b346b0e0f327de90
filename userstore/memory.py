"""
In-memory user store.

Holds records in a plain list owned by the store instance, so each run
gets its own collection with an explicit lifecycle.  Valid only inside
one process: independently started Locust workers do not share it.
No locking is used; Locust's gevent workers only yield at network I/O
and this store never performs any.
"""

from __future__ import annotations

import logging
from typing import Any

from userstore.models import (
    UserRecord,
    build_snapshot,
    compute_stats,
    filter_by_step,
    filter_phase2_ready,
    find_index,
    has_username,
    merge_record,
    upsert_record,
    utc_now_iso,
)
from userstore.results import Degraded, Ok, StoreResult
from userstore.store import UserStore

logger = logging.getLogger(__name__)


class MemoryUserStore(UserStore):
    """
    Process-local store backed by an ordered list.

    Returned records are copies; mutate them through :meth:`update`.

    Attributes:
        run_started_at: ISO timestamp of store construction.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None):
        self._records: list[UserRecord] = [dict(r) for r in records or []]
        self.run_started_at = utc_now_iso()

    def __len__(self) -> int:
        return len(self._records)

    def initialize(self) -> StoreResult:
        logger.info("Initializing in-memory user store (%d records)", len(self._records))
        return Ok(len(self._records))

    def clear(self) -> StoreResult:
        self._records = []
        logger.info("In-memory user store cleared")
        return Ok(True)

    def save(self, record: dict[str, Any]) -> StoreResult:
        if not has_username(record):
            logger.warning("Refusing to save a record without a username")
            return Degraded(None, "record has no username")
        stored = upsert_record(self._records, record)
        return Ok(dict(stored))

    def update(self, username: str, fields: dict[str, Any]) -> StoreResult:
        index = find_index(self._records, username)
        if index is None:
            return Ok(None)

        self._records[index] = merge_record(self._records[index], fields)
        return Ok(dict(self._records[index]))

    def replace(self, record: dict[str, Any]) -> None:
        """
        Store *record* exactly as given, without stamping timestamps.

        Used to mirror a record the data server already merged.
        """
        index = find_index(self._records, record["username"])
        if index is None:
            self._records.append(dict(record))
        else:
            self._records[index] = dict(record)

    def get_by_username(self, username: str) -> StoreResult:
        index = find_index(self._records, username)
        if index is None:
            return Ok(None)
        return Ok(dict(self._records[index]))

    def get_all(self) -> StoreResult:
        return Ok(self._copy(self._records))

    def get_by_status(self, step: str) -> StoreResult:
        return Ok(self._copy(filter_by_step(self._records, step)))

    def get_phase2_ready(self) -> StoreResult:
        return Ok(self._copy(filter_phase2_ready(self._records)))

    def stats(self) -> StoreResult:
        return Ok(compute_stats(self._records))

    def export_snapshot(self) -> StoreResult:
        return Ok(build_snapshot(self._records))
