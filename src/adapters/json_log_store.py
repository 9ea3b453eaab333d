"""JSON file storage adapter for the message log.

Implements the core LogStorePort with one JSON array per conversation label
and calendar day: ``<directory>/<label>-<YYYY-MM-DD>.json``.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from datetime import date
from typing import Any

_UNSAFE_CHARS = re.compile(r"[\\/\x00]")


class JsonLogStore:
    """Thin file wrapper that satisfies the LogStorePort contract."""

    def __init__(self, directory: str) -> None:
        self._directory = directory

    def path_for(self, label: str, day: date) -> str:
        # Labels come from chat titles, which may contain path separators.
        safe_label = _UNSAFE_CHARS.sub("_", label) or "_"
        return os.path.join(self._directory, f"{safe_label}-{day.isoformat()}.json")

    def read(self, label: str, day: date) -> list[dict[str, Any]]:
        """Return the persisted records, or an empty list if the file is absent."""

        path = self.path_for(label, day)
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return []
        if not isinstance(data, list):
            raise ValueError(f"Message log {path} does not contain a JSON array")
        return data

    def write(self, label: str, day: date, records: list[dict[str, Any]]) -> None:
        """Overwrite the log file atomically."""

        path = self.path_for(label, day)
        os.makedirs(self._directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._directory, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
