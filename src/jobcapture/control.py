"""
Status and control surface - the enable gate, status queries and message dispatch
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from jobcapture.models import (
    GET_STATUS,
    JOB_DETECTED,
    TOGGLE_ENABLED,
    JobPostingRecord,
    RelayAck,
)
from jobcapture.relay import Relay

logger = logging.getLogger(__name__)


def _resolved(ack: RelayAck) -> "Future[RelayAck]":
    future: "Future[RelayAck]" = Future()
    future.set_result(ack)
    return future


class SettingsStore:
    """Persisted {"enabled": bool}; capture is enabled unless explicitly turned off."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.enabled = self._load()

    def _load(self) -> bool:
        if not self.path.exists():
            return True
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read settings %s: %s", self.path, exc)
            return True
        return not (isinstance(data, dict) and data.get("enabled") is False)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"enabled": self.enabled}, f)

    def toggle(self) -> bool:
        # Re-read first so a toggle from another process is not lost
        self.set_enabled(not self._load())
        return self.enabled


class ControlSurface:
    """Dispatches JOB_DETECTED, GET_STATUS and TOGGLE_ENABLED messages."""

    def __init__(self, settings: SettingsStore, relay: Relay):
        self.settings = settings
        self.relay = relay

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def handle(self, message: Dict[str, Any]) -> Union["Future[RelayAck]", Dict[str, Any]]:
        message_type = (message or {}).get("type")
        if message_type == JOB_DETECTED:
            return self.submit(message.get("job") or {})
        if message_type == GET_STATUS:
            return self.status()
        if message_type == TOGGLE_ENABLED:
            return {"enabled": self.toggle()}
        logger.warning("Unknown message type: %r", message_type)
        return {"success": False, "error": "Unknown message type"}

    def submit(self, job: Union[JobPostingRecord, Dict[str, Any]]) -> "Future[RelayAck]":
        """Gate then relay; a disabled gate resolves immediately without touching the relay."""
        if not self.settings.enabled:
            logger.info("Auto-capture paused, ignoring job")
            return _resolved(RelayAck(success=False, reason="disabled"))

        if isinstance(job, JobPostingRecord):
            record = job
        else:
            try:
                record = JobPostingRecord.model_validate(job)
            except ValidationError as exc:
                logger.warning("Rejected malformed job message: %s", exc)
                return _resolved(RelayAck(success=False, reason="invalid"))

        logger.info("Job detected: %s", record)
        return self.relay.relay(record)

    def status(self) -> Dict[str, bool]:
        return {"enabled": self.settings.enabled, "connected": self.relay.is_connected()}

    def toggle(self) -> bool:
        enabled = self.settings.toggle()
        logger.info("Auto-capture %s", "ON" if enabled else "OFF")
        return enabled

    def pending_count(self) -> int:
        return len(self.relay.queue)
