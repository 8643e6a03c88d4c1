import json
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from jobcapture.models import DataQuality, JobPostingRecord, RelayAck
from jobcapture.relay import METHOD_PRIMARY

COUNTERS = (
    "navigations",
    "attempts",
    "finalized",
    "duplicates",
    "exhausted",
    "relayed_primary",
    "queued_local",
    "ignored_disabled",
    "undelivered",
)

# Oldest events are dropped past this; a long browsing session should not grow without bound
MAX_EVENTS = 500


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CaptureMetrics:
    """
    What one watch session captured and where each record ended up.

    The capture session reports navigations, attempts and outcomes; the
    agent reports delivery acks. Written as JSON when the session ends so
    exhausted captures and local fallbacks are visible after the fact.
    """

    session_id: str = field(default_factory=lambda: datetime.now().strftime("%Y%m%d_%H%M%S"))
    started_at_iso: str = field(default_factory=_utc_now_iso)
    started_at_monotonic: float = field(default_factory=time.monotonic)
    ended_at_iso: Optional[str] = None
    duration_seconds: Optional[float] = None
    counters: Dict[str, int] = field(default_factory=lambda: dict.fromkeys(COUNTERS, 0))
    platforms: Counter = field(default_factory=Counter)
    poor_quality: int = 0
    events: List[Dict[str, Any]] = field(default_factory=list)

    def _event(self, kind: str, **data: Any) -> None:
        payload = {"t": _utc_now_iso(), "kind": kind}
        payload.update({k: v for k, v in data.items() if v is not None})
        self.events.append(payload)
        if len(self.events) > MAX_EVENTS:
            del self.events[: len(self.events) - MAX_EVENTS]

    # === Capture session ===

    def navigation(self) -> None:
        self.counters["navigations"] += 1

    def attempt(self) -> None:
        self.counters["attempts"] += 1

    def duplicate(self) -> None:
        self.counters["duplicates"] += 1

    def exhausted(self, url: Optional[str], attempts: int) -> None:
        self.counters["exhausted"] += 1
        self._event("exhausted", url=url, attempts=attempts)

    def finalized(self, record: JobPostingRecord) -> None:
        self.counters["finalized"] += 1
        self.platforms[record.platform.value] += 1
        if record.data_quality is DataQuality.POOR:
            self.poor_quality += 1
        self._event(
            "finalized",
            platform=record.platform.value,
            job_id=record.platform_job_id,
            quality=record.data_quality.value,
        )

    # === Delivery ===

    def delivered(self, record: JobPostingRecord, ack: RelayAck) -> None:
        """Count one relay ack against the record it answers."""
        if ack.success:
            self.counters["relayed_primary" if ack.method == METHOD_PRIMARY else "queued_local"] += 1
            self._event("relayed", job_id=record.platform_job_id, method=ack.method)
        elif ack.reason == "disabled":
            self.counters["ignored_disabled"] += 1
        else:
            self.counters["undelivered"] += 1
            self._event("undelivered", job_id=record.platform_job_id, reason=ack.reason)

    # === Reporting ===

    def finish(self) -> None:
        if self.ended_at_iso is None:
            self.ended_at_iso = _utc_now_iso()
            self.duration_seconds = max(time.monotonic() - self.started_at_monotonic, 0.0)

    def summary(self) -> Dict[str, Any]:
        c = self.counters
        delivered = c["relayed_primary"] + c["queued_local"]
        attempted = c["finalized"] + c["exhausted"]
        return {
            "captured": c["finalized"],
            "sent": c["relayed_primary"],
            "queued": c["queued_local"],
            "ignored": c["ignored_disabled"],
            "undelivered": c["undelivered"],
            "exhausted": c["exhausted"],
            "poor_quality": self.poor_quality,
            "capture_rate": round(c["finalized"] / attempted, 3) if attempted else None,
            "primary_rate": round(c["relayed_primary"] / delivered, 3) if delivered else None,
        }

    def summary_line(self) -> str:
        s = self.summary()
        line = f"Captured {s['captured']} job(s): {s['sent']} sent, {s['queued']} queued locally"
        if s["exhausted"]:
            line += f", {s['exhausted']} gave up"
        if s["ignored"]:
            line += f", {s['ignored']} ignored while paused"
        return line

    def to_dict(self) -> Dict[str, Any]:
        duration = self.duration_seconds
        if duration is None:
            duration = max(time.monotonic() - self.started_at_monotonic, 0.0)
        return {
            "session_id": self.session_id,
            "started_at": self.started_at_iso,
            "ended_at": self.ended_at_iso or _utc_now_iso(),
            "duration_seconds": round(duration, 3),
            "counters": dict(self.counters),
            "platforms": dict(self.platforms),
            "summary": self.summary(),
            "events": list(self.events),
        }

    def write_json(self, *, template: str) -> Path:
        """Write to template with {timestamp} filled from the session id."""
        path = Path((template or "output/capture_metrics_{timestamp}.json").replace("{timestamp}", self.session_id))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
        return path
