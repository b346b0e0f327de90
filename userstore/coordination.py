"""
Status-driven stage coordination.

Each onboarding stage reads the users a previous stage produced, acts on
one of them per iteration, and writes the result back with a new
``step``.  This module holds that policy so the Locust user classes only
have to make the HTTP call:

1. :meth:`StageCoordinator.setup` pulls the prerequisite population once.
   An empty population is fatal for the whole stage run.
2. :meth:`StageCoordinator.pick` selects one user uniformly at random,
   independently per iteration.
3. :meth:`StageCoordinator.complete` writes the stage's fields plus the
   next ``step`` through ``update``.  Failed iterations never call it.

Stage ordering is an operational convention; nothing here enforces that
the previous stage has run.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any

from userstore.models import UserRecord, UserStep, utc_now_iso
from userstore.store import UserStore

logger = logging.getLogger(__name__)


class StageSetupError(RuntimeError):
    """A stage cannot start at all."""


class EmptyUserPoolError(StageSetupError):
    """No user records carry the step a stage requires."""

    def __init__(self, stage: str, required_step: str):
        self.stage = stage
        self.required_step = required_step
        super().__init__(
            f"No users with step '{required_step}' available for stage '{stage}'; "
            f"run the preceding stage first"
        )


class RunMode(str, Enum):
    """Kind of test campaign a stage runs in."""

    SMOKE = "smoke"
    LOAD = "load"
    STRESS = "stress"


@dataclass(frozen=True)
class Stage:
    """
    One onboarding stage.

    Attributes:
        name: Short stage name (also the progress-report key).
        required_step: Step a user must have for this stage, or None for
            the signup stage which creates users.
        completed_step: Step written on success.
        timestamp_field: Advisory timestamp written on success.
    """

    name: str
    required_step: UserStep | None
    completed_step: UserStep
    timestamp_field: str | None = None


SIGNUP = Stage("signup", None, UserStep.SIGNUP_COMPLETE)
SIGNIN = Stage("signin", UserStep.SIGNUP_COMPLETE, UserStep.SIGNIN_COMPLETE, "lastSignin")
WALLET = Stage("wallet", UserStep.SIGNIN_COMPLETE, UserStep.WALLET_COMPLETE, "lastWalletCreation")
DID_CREATE = Stage("did_create", UserStep.WALLET_COMPLETE, UserStep.DID_CREATE_COMPLETE, "lastDIDCreation")
DID_RETRIEVE = Stage("did_retrieve", UserStep.DID_CREATE_COMPLETE, UserStep.PHASE1_COMPLETE, "lastDIDRetrieval")

STAGES = {stage.name: stage for stage in (SIGNUP, SIGNIN, WALLET, DID_CREATE, DID_RETRIEVE)}


class StageCoordinator:
    """
    Store-facing policy for one stage within one run.

    Args:
        store: Store handle shared by every virtual user of the run.
        stage: Stage being exercised.
        mode: Campaign kind; stress runs tag their writes.
    """

    def __init__(self, store: UserStore, stage: Stage, mode: RunMode = RunMode.LOAD):
        self.store = store
        self.stage = stage
        self.mode = RunMode(mode)
        self.users: list[UserRecord] = []

    def setup(self) -> list[UserRecord]:
        """
        Snapshot the prerequisite population once per run.

        Returns:
            The snapshot (empty for the signup stage).

        Raises:
            EmptyUserPoolError: If the stage needs users and none exist.
        """
        if self.stage.required_step is None:
            return self.users

        result = self.store.get_by_status(self.stage.required_step.value)
        if result.degraded:
            logger.warning("User pool for %s read from fallback cache: %s", self.stage.name, result.reason)

        self.users = list(result.data)
        if not self.users:
            logger.error("No users with step '%s' for stage %s", self.stage.required_step.value, self.stage.name)
            raise EmptyUserPoolError(self.stage.name, self.stage.required_step.value)

        logger.info("Found %d users for stage %s", len(self.users), self.stage.name)
        return self.users

    def pick(self) -> UserRecord | None:
        """Return one snapshot user chosen uniformly at random, or None."""
        if not self.users:
            return None
        return random.choice(self.users)

    def success_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Build the full update for a successful iteration."""
        update = dict(fields)
        update["step"] = self.stage.completed_step.value
        if self.stage.timestamp_field:
            update[self.stage.timestamp_field] = utc_now_iso()

        terminal = self.stage.completed_step is UserStep.PHASE1_COMPLETE
        if terminal:
            update["phase2Ready"] = True
        if self.mode is RunMode.STRESS:
            update["stressTest"] = True
            if terminal:
                update["step"] = UserStep.STRESS_COMPLETE.value
                update["allStressTestsComplete"] = True
        return update

    def complete(self, username: str, fields: dict[str, Any]) -> UserRecord | None:
        """
        Persist a successful iteration for *username*.

        Returns:
            The merged record, or None if the user is no longer stored.
        """
        result = self.store.update(username, self.success_fields(fields))
        if result.data is None:
            logger.warning("User %s vanished before stage %s could record success", username, self.stage.name)
        return result.data

    def record_signup(self, record: dict[str, Any]) -> UserRecord:
        """Persist a newly signed-up user through ``save``."""
        stored = dict(record)
        stored["step"] = self.stage.completed_step.value
        if self.mode is RunMode.STRESS:
            stored["testType"] = "stress"
        return self.store.save(stored).data
