"""Durable device state.

A single JSON document, rewritten through a temp file and ``os.replace`` so a
crash mid-write leaves the previous version intact.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.logging_config import get_logger

logger = get_logger(__name__)

QUEUE_KEY = "queue"
ENDPOINT_KEY = "last_endpoint"
SNAPSHOTS_KEY = "snapshots"
DECISIONS_KEY = "decision_statuses"


class LocalStore:
    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._set_aside(f"unreadable ({e})")
            return {}
        if not isinstance(data, dict):
            self._set_aside(f"not a JSON object ({type(data).__name__})")
            return {}
        return data

    def _set_aside(self, reason: str) -> None:
        # Keep the bad file for recovery; the next write would overwrite it.
        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        target = self._path.with_name(f"{self._path.name}.{stamp}.corrupt")
        os.replace(self._path, target)
        logger.error("Device state at %s is %s; moved to %s and starting empty", self._path, reason, target)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self._path.name, suffix=".tmp", dir=str(self._path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self._path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
