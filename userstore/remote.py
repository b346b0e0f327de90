"""
Remote user store backed by the data server.

:class:`RemoteUserStore` forwards every operation to the data server's
JSON API so that every Locust worker process sees the same user list.
Each call carries a short timeout.  When a call fails for any reason
(timeout, connection error, unserializable request body, non-2xx
status, body that is not JSON, or body with the wrong shape) the
operation is re-run against a process-local
:class:`~userstore.memory.MemoryUserStore` and returned as
:class:`~userstore.results.Degraded`.  Successful writes and reads are
mirrored into that cache so degraded reads still see recent data.

No client-side locking is done: concurrent partial updates to the same
username race on the server and the last merge wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import requests

from userstore.memory import MemoryUserStore
from userstore.models import (
    USER_NOT_FOUND,
    UserRecord,
    build_snapshot,
    filter_phase2_ready,
    has_username,
)
from userstore.results import Degraded, Ok, StoreResult
from userstore.store import UserStore

logger = logging.getLogger(__name__)

STATS_KEYS = (
    "totalUsers",
    "signupComplete",
    "signinComplete",
    "walletComplete",
    "didComplete",
    "phase2Ready",
)


class ResponseShapeError(ValueError):
    """A data-server response body did not match the endpoint's schema."""


# =====================================================================
# Response decoders
# =====================================================================


def _decode_record(payload: Any) -> UserRecord:
    if not isinstance(payload, dict) or not isinstance(payload.get("username"), str):
        raise ResponseShapeError("expected a user record object")
    return payload


def _decode_record_list(payload: Any) -> list[UserRecord]:
    if not isinstance(payload, list):
        raise ResponseShapeError("expected a JSON array of user records")
    return [_decode_record(item) for item in payload]


def _decode_save(payload: Any) -> int:
    if not isinstance(payload, dict) or payload.get("success") is not True:
        raise ResponseShapeError("save-user response missing success flag")
    total = payload.get("total")
    if not isinstance(total, int):
        raise ResponseShapeError("save-user response missing integer total")
    return total


def _decode_update(payload: Any) -> UserRecord:
    if not isinstance(payload, dict) or payload.get("success") is not True:
        raise ResponseShapeError("update-user response missing success flag")
    return _decode_record(payload.get("user"))


def _decode_stats(payload: Any) -> dict[str, int]:
    if not isinstance(payload, dict):
        raise ResponseShapeError("expected a stats object")
    for key in STATS_KEYS:
        if not isinstance(payload.get(key), int):
            raise ResponseShapeError(f"stats response missing integer {key}")
    return {key: payload[key] for key in STATS_KEYS}


def _decode_success(payload: Any) -> bool:
    if not isinstance(payload, dict) or payload.get("success") is not True:
        raise ResponseShapeError("response missing success flag")
    return True


def _decode_health(payload: Any) -> int:
    if not isinstance(payload, dict) or payload.get("status") != "healthy":
        raise ResponseShapeError("data server did not report healthy")
    users = payload.get("users")
    if not isinstance(users, int):
        raise ResponseShapeError("health response missing integer users")
    return users


def _is_user_not_found(response: Any) -> bool:
    """Return True if a 404 body is the data server's missing-user error."""
    try:
        payload = response.json()
    except ValueError:
        return False
    return isinstance(payload, dict) and payload.get("error") == USER_NOT_FOUND


# =====================================================================
# Store
# =====================================================================


class RemoteUserStore(UserStore):
    """
    Store that delegates to the data server with a local fallback cache.

    Args:
        base_url: Root URL of the data server, e.g. ``http://localhost:3001``.
        timeout: Seconds to wait for each data-server call.
        session: Optional pre-built ``requests.Session`` (used by tests).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.fallback = MemoryUserStore()
        self._session = session or requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def close(self) -> None:
        self._session.close()

    # ---- transport -------------------------------------------------------

    def _call(
        self,
        method: str,
        path: str,
        on_success: Callable[[Any], Any],
        on_failure: Callable[[], Any],
        *,
        json: Any = None,
        on_not_found: Callable[[], Any] | None = None,
    ) -> StoreResult:
        """
        Perform one data-server request and map the outcome to a result.

        Args:
            method: HTTP method.
            path: Path below :attr:`base_url`.
            on_success: Receives the decoded JSON body and returns the
                result data.  May raise :class:`ResponseShapeError`.
            on_failure: Computes the result data from the fallback cache.
            json: Optional request body.
            on_not_found: When given, a 404 carrying the data server's
                missing-user error is a normal outcome and this callable
                supplies the result data.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout)
        except requests.Timeout:
            return self._degrade(method, path, "request timed out", on_failure)
        except requests.exceptions.InvalidJSONError as exc:
            return self._degrade(method, path, f"request body is not JSON serializable ({exc})", on_failure)
        except requests.RequestException as exc:
            return self._degrade(method, path, f"service unavailable ({exc.__class__.__name__})", on_failure)
        except (TypeError, ValueError) as exc:
            return self._degrade(method, path, f"request body is not JSON serializable ({exc})", on_failure)

        # A 404 from an unknown route is a failure, not a missing user.
        if response.status_code == 404 and on_not_found is not None and _is_user_not_found(response):
            return Ok(on_not_found())
        if not 200 <= response.status_code < 300:
            return self._degrade(method, path, f"HTTP {response.status_code}", on_failure)

        try:
            payload = response.json()
        except ValueError:
            return self._degrade(method, path, "response is not valid JSON", on_failure)

        try:
            return Ok(on_success(payload))
        except ResponseShapeError as exc:
            return self._degrade(method, path, str(exc), on_failure)

    def _degrade(
        self,
        method: str,
        path: str,
        reason: str,
        on_failure: Callable[[], Any],
    ) -> Degraded:
        logger.warning("Data server %s %s failed: %s; using fallback cache", method, path, reason)
        return Degraded(on_failure(), reason)

    def _mirror(self, records: list[UserRecord]) -> list[UserRecord]:
        for record in records:
            self.fallback.replace(record)
        return records

    # ---- operations ------------------------------------------------------

    def initialize(self) -> StoreResult:
        logger.info("Initializing remote user store at %s", self.base_url)
        return self._call(
            "GET",
            "/health",
            _decode_health,
            lambda: len(self.fallback),
        )

    def clear(self) -> StoreResult:
        # The fallback cache is emptied whether or not the server answers.
        self.fallback.clear()
        return self._call(
            "DELETE",
            "/users",
            _decode_success,
            lambda: True,
        )

    def save(self, record: dict[str, Any]) -> StoreResult:
        if not has_username(record):
            logger.warning("Refusing to save a record without a username")
            return Degraded(None, "record has no username")

        def on_success(payload: Any) -> UserRecord:
            _decode_save(payload)
            return self.fallback.save(record).data

        return self._call(
            "POST",
            "/save-user",
            on_success,
            lambda: self.fallback.save(record).data,
            json=record,
        )

    def update(self, username: str, fields: dict[str, Any]) -> StoreResult:
        def on_success(payload: Any) -> UserRecord:
            user = _decode_update(payload)
            self.fallback.replace(user)
            return user

        return self._call(
            "PUT",
            f"/update-user/{quote(username, safe='')}",
            on_success,
            lambda: self.fallback.update(username, fields).data,
            json=fields,
            on_not_found=lambda: None,
        )

    def get_by_username(self, username: str) -> StoreResult:
        def on_success(payload: Any) -> UserRecord:
            return self._mirror([_decode_record(payload)])[0]

        return self._call(
            "GET",
            f"/users/{quote(username, safe='')}",
            on_success,
            lambda: self.fallback.get_by_username(username).data,
            on_not_found=lambda: None,
        )

    def get_all(self) -> StoreResult:
        return self._call(
            "GET",
            "/users",
            lambda payload: self._mirror(_decode_record_list(payload)),
            lambda: self.fallback.get_all().data,
        )

    def get_by_status(self, step: str) -> StoreResult:
        step_value = getattr(step, "value", step)
        return self._call(
            "GET",
            f"/users/status/{quote(step_value, safe='')}",
            lambda payload: self._mirror(_decode_record_list(payload)),
            lambda: self.fallback.get_by_status(step_value).data,
        )

    def get_phase2_ready(self) -> StoreResult:
        result = self.get_all()
        ready = filter_phase2_ready(result.data)
        if result.degraded:
            return Degraded(ready, result.reason)
        return Ok(ready)

    def stats(self) -> StoreResult:
        return self._call(
            "GET",
            "/stats",
            _decode_stats,
            lambda: self.fallback.stats().data,
        )

    def export_snapshot(self) -> StoreResult:
        result = self.get_all()
        snapshot = build_snapshot(result.data)
        if result.degraded:
            return Degraded(snapshot, result.reason)
        return Ok(snapshot)
