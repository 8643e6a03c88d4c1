"""
Capture agent - one page context wired end to end

watcher -> capture session -> extractor -> control gate -> relay -> notifier
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Optional

from jobcapture.capture import CaptureSession
from jobcapture.config_loader import ConfigLoader
from jobcapture.control import ControlSurface
from jobcapture.document import Document
from jobcapture.extractors.base import FieldExtractor
from jobcapture.metrics import CaptureMetrics
from jobcapture.models import JobPostingRecord, RelayAck
from jobcapture.notify import LogNotifier, Notifier
from jobcapture.scheduling import TimerQueue
from jobcapture.watcher import NavigationWatcher

logger = logging.getLogger(__name__)


class CaptureAgent:
    def __init__(
        self,
        document: Document,
        control: ControlSurface,
        *,
        scheduler: Optional[TimerQueue] = None,
        notifier: Optional[Notifier] = None,
        config: Optional[ConfigLoader] = None,
        metrics: Optional[CaptureMetrics] = None,
    ):
        config = config or ConfigLoader(None)
        self.document = document
        self.control = control
        self.scheduler = scheduler or TimerQueue()
        self.notifier = notifier or LogNotifier()
        self.metrics = metrics or CaptureMetrics()

        self.session = CaptureSession(
            document,
            self.scheduler,
            self._on_finalized,
            initial_delay=config.get_initial_delay(),
            retry_delay=config.get_retry_delay(),
            max_retries=config.get_max_retries(),
            metrics=self.metrics,
        )
        self.watcher = NavigationWatcher(
            document,
            self.scheduler,
            self._on_posting,
            on_navigation=self._on_navigation,
            debounce=config.get_debounce(),
        )

    def start(self) -> None:
        self.watcher.start()

    def stop(self) -> None:
        self.watcher.stop()
        self.session.cancel()
        self.metrics.finish()

    def pump(self, max_wait: float = 0.25) -> float:
        """Run due timers; returns how long the caller may idle before the next pump."""
        self.scheduler.run_due()
        delay = self.scheduler.next_delay()
        return max_wait if delay is None else min(delay, max_wait)

    def _on_navigation(self, navigation_id: int) -> None:
        self.metrics.navigation()
        # Superseded work stops now; classification waits for the debounce
        self.session.cancel()

    def _on_posting(self, navigation_id: int, extractor: FieldExtractor, url: str) -> None:
        self.session.arm(navigation_id, extractor, url)

    def _on_finalized(self, record: JobPostingRecord) -> None:
        future = self.control.submit(record)
        # Completion may land on the relay worker thread; hop back before touching state
        future.add_done_callback(lambda done: self.scheduler.call_soon(self._on_ack, record, done))

    def _on_ack(self, record: JobPostingRecord, future: "Future[RelayAck]") -> None:
        try:
            ack = future.result()
        except Exception:
            logger.exception("Relay failed for job %s", record.platform_job_id)
            return

        self.metrics.delivered(record, ack)
        if ack.success:
            self.notifier.captured(record)
        elif ack.reason != "disabled":
            logger.warning("Job %s was not delivered: %s", record.platform_job_id, ack.reason)
