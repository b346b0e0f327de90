"""
JSON file persistence for the data server.

The whole user list lives in one JSON array.  Reads always go to disk
and writes always replace the whole file, so every response reflects
the latest flushed write.  There is no locking: two requests that read
before either writes back race, and the last writer wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from userstore.models import UserRecord

logger = logging.getLogger(__name__)


class UserFile:
    """
    A JSON file holding the data server's user list.

    Attributes:
        path: Location of the JSON file.  Its directory is created on
            first write.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def load(self) -> list[UserRecord]:
        """
        Read the user list from disk.

        A missing, unreadable or malformed file yields an empty list so
        the server can always start a campaign.
        """
        if not self.path.exists():
            return []

        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not read {self.path}: {exc}; starting from an empty list")
            return []

        if not isinstance(data, list):
            logger.warning(f"{self.path} does not hold a JSON array; starting from an empty list")
            return []
        return [record for record in data if isinstance(record, dict)]

    def write(self, records: list[UserRecord]) -> None:
        """Flush *records* to disk, replacing the file atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".users-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
