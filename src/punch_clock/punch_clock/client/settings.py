from __future__ import annotations

import importlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from config import get_settings_module

from ..core.constants import DEFAULT_PROBE_TIMEOUT, DEFAULT_REQUEST_TIMEOUT, DEFAULT_SYNC_INTERVAL

STATE_FILENAME = "device_state.json"


@dataclass(frozen=True)
class ClientSettings:
    endpoints: tuple[str, ...]
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    state_dir: Path = Path(".punch_clock")
    sync_interval: float = DEFAULT_SYNC_INTERVAL

    @property
    def state_file(self) -> Path:
        return self.state_dir / STATE_FILENAME

    @classmethod
    def load(cls, settings_module: Optional[str] = None) -> "ClientSettings":
        settings = importlib.import_module(settings_module or get_settings_module())
        endpoints = tuple(getattr(settings, "CLIENT_ENDPOINTS", ()) or ())
        if not endpoints:
            raise ValueError("CLIENT_ENDPOINTS is empty")
        return cls(
            endpoints=endpoints,
            probe_timeout=float(getattr(settings, "CLIENT_PROBE_TIMEOUT", DEFAULT_PROBE_TIMEOUT)),
            request_timeout=float(getattr(settings, "CLIENT_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
            state_dir=Path(getattr(settings, "CLIENT_STATE_DIR", ".punch_clock")),
            sync_interval=float(getattr(settings, "CLIENT_SYNC_INTERVAL", DEFAULT_SYNC_INTERVAL)),
        )
