"""
User-record model for the onboarding pipeline.

A user record is a plain JSON-shaped dictionary keyed by ``username``.
It travels unchanged between the in-memory store, the data server's
JSON file and the wire, so the helpers here operate on dicts rather
than on a class instance.  Records have merge-update semantics: an
update is shallow-merged onto the stored record and never replaces it.
"""

from __future__ import annotations

import random
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any

UserRecord = dict[str, Any]


class UserStep(str, Enum):
    """Furthest stage a user record has completed, in pipeline order."""

    CREATED = "created"
    SIGNUP_COMPLETE = "signup_complete"
    SIGNIN_COMPLETE = "signin_complete"
    WALLET_COMPLETE = "wallet_complete"
    DID_CREATE_COMPLETE = "did_create_complete"
    PHASE1_COMPLETE = "phase1_complete"
    STRESS_COMPLETE = "stress_complete"


# Stage names in the order they are run, used for progress reporting.
PIPELINE_STAGES = ("signup", "signin", "wallet", "did_create", "did_retrieve")

# Fields that are populated by exactly one stage each.
OPTIONAL_FIELDS = (
    "userId",
    "accessToken",
    "refreshToken",
    "walletId",
    "tenantId",
    "did",
    "hashTenantID",
)

# Error body the data server sends when a username has no record.
USER_NOT_FOUND = "User not found"


def has_username(record: Any) -> bool:
    """Return True if *record* is keyed by a non-blank string username."""
    if not isinstance(record, dict):
        return False
    username = record.get("username")
    return isinstance(username, str) and bool(username.strip())


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def generate_username(prefix: str = "testuser") -> str:
    """
    Generate a username that is unique within a test run.

    Combines a millisecond timestamp with a random suffix so parallel
    Locust workers never collide.
    """
    timestamp = int(time.time() * 1000)
    return f"{prefix}_{timestamp}_{random.randint(0, 999_999)}"


def new_user_record(username: str) -> UserRecord:
    """
    Build the initial record for a freshly created user.

    Args:
        username: Unique username for the record.

    Returns:
        A record with every stage field unset, ``step`` set to
        ``created`` and ``createdAt`` stamped.
    """
    record: UserRecord = {"username": username}
    for field in OPTIONAL_FIELDS:
        record[field] = None
    record["step"] = UserStep.CREATED.value
    record["phase2Ready"] = False
    record["createdAt"] = utc_now_iso()
    return record


def merge_record(existing: UserRecord, updates: dict[str, Any]) -> UserRecord:
    """
    Shallow-merge *updates* over *existing* and stamp ``updatedAt``.

    The returned dict is a new object; *existing* is left untouched.
    ``username`` is the record key and is never changed by a merge.
    """
    merged = {**existing, **updates, "updatedAt": utc_now_iso()}
    merged["username"] = existing["username"]
    return merged


def upsert_record(records: list[UserRecord], record: dict[str, Any]) -> UserRecord:
    """
    Insert or merge *record* into *records* in place, keyed by username.

    An existing record is shallow-merged and stamped ``updatedAt``; a new
    one is appended and stamped ``savedAt``.

    Returns:
        The record as stored.
    """
    index = find_index(records, record["username"])
    if index is not None:
        records[index] = merge_record(records[index], record)
        return records[index]

    stored = {**record, "savedAt": utc_now_iso()}
    records.append(stored)
    return stored


def find_index(records: list[UserRecord], username: str) -> int | None:
    """Return the position of *username* in *records*, or None."""
    for index, record in enumerate(records):
        if record.get("username") == username:
            return index
    return None


def filter_by_step(records: list[UserRecord], step: str) -> list[UserRecord]:
    """Return the records whose ``step`` equals *step* exactly."""
    step_value = step.value if isinstance(step, UserStep) else step
    return [record for record in records if record.get("step") == step_value]


def filter_phase2_ready(records: list[UserRecord]) -> list[UserRecord]:
    """Return the records with ``phase2Ready`` set to ``True``."""
    return [record for record in records if record.get("phase2Ready") is True]


def compute_stats(records: list[UserRecord]) -> dict[str, int]:
    """
    Count records by field presence.

    These counters test whether a field is truthy, not what ``step`` a
    record has reached: a record carrying a ``did`` counts toward
    ``didComplete`` even if its ``step`` was never advanced.
    """
    return {
        "totalUsers": len(records),
        "signupComplete": sum(1 for r in records if r.get("userId")),
        "signinComplete": sum(1 for r in records if r.get("accessToken")),
        "walletComplete": sum(1 for r in records if r.get("walletId")),
        "didComplete": sum(1 for r in records if r.get("did")),
        "phase2Ready": sum(1 for r in records if r.get("phase2Ready")),
    }


def build_summary(records: list[UserRecord]) -> dict[str, int]:
    """Summarise a run for the end-of-run export."""
    return {
        "totalUsers": len(records),
        "phase2Ready": sum(1 for r in records if r.get("phase2Ready")),
        "completedUsers": len(filter_by_step(records, UserStep.PHASE1_COMPLETE)),
    }


def build_snapshot(records: list[UserRecord]) -> dict[str, Any]:
    """Package records and their summary for end-of-run reporting."""
    return {
        "records": [dict(record) for record in records],
        "exportedAt": utc_now_iso(),
        "summary": build_summary(records),
    }


def progress_line(stage: str) -> str:
    """
    Render pipeline progress after *stage* has completed.

    Example:
        >>> progress_line("wallet")
        'Progress: 60% (3/5)'
    """
    position = PIPELINE_STAGES.index(stage) + 1
    percent = round(position / len(PIPELINE_STAGES) * 100)
    return f"Progress: {percent}% ({position}/{len(PIPELINE_STAGES)})"
