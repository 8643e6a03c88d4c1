"""
Fallback queue - bounded local store for records the desktop app never received
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 100


class FallbackQueue:
    """FIFO list persisted as a JSON array; the oldest entries are evicted past max_size."""

    def __init__(self, path: Path, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.path = Path(path)
        self.max_size = max_size
        self._lock = threading.Lock()

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Failed to read fallback queue %s: %s", self.path, exc)
            return []

        if not isinstance(data, list):
            logger.warning("Ignoring fallback queue with unexpected shape: %s", self.path)
            return []
        return [entry for entry in data if isinstance(entry, dict)]

    def _save(self, entries: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entries, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def append(self, entry: Dict[str, Any]) -> int:
        """Add entry at the tail; returns how many old entries were evicted."""
        with self._lock:
            entries = self._load()
            entries.append(entry)
            evicted = max(len(entries) - self.max_size, 0)
            if evicted:
                entries = entries[evicted:]
                logger.info("Fallback queue full; evicted %d oldest entr%s", evicted, "y" if evicted == 1 else "ies")
            self._save(entries)
            return evicted

    def entries(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self._load()

    def drain(self) -> List[Dict[str, Any]]:
        """Remove and return every queued entry, oldest first."""
        with self._lock:
            entries = self._load()
            if entries:
                self._save([])
            return entries

    def __len__(self) -> int:
        return len(self.entries())
