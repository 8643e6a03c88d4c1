"""
Capture session - retry, backoff and dedup state for one page context

IDLE -> ARMED -> WAITING -> EXTRACTING -> FINALIZED
                     ^            |
                     +- RETRYING -+-> EXHAUSTED

FINALIZED and EXHAUSTED are per-navigation outcomes; the session drops
back to IDLE right after reaching either one.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Hashable, Optional, Set

from jobcapture.document import Document
from jobcapture.extractors.base import FieldExtractor
from jobcapture.metrics import CaptureMetrics
from jobcapture.models import JobPostingRecord
from jobcapture.scheduling import TimerHandle, TimerQueue

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_DELAY = 4.0
DEFAULT_RETRY_DELAY = 3.0
DEFAULT_MAX_RETRIES = 5


class CaptureState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    WAITING = "waiting"
    EXTRACTING = "extracting"
    RETRYING = "retrying"
    FINALIZED = "finalized"
    EXHAUSTED = "exhausted"


_IN_FLIGHT = (CaptureState.ARMED, CaptureState.WAITING, CaptureState.EXTRACTING, CaptureState.RETRYING)


class CaptureSession:
    """Explicit capture state for one page context."""

    def __init__(
        self,
        document: Document,
        scheduler: TimerQueue,
        on_finalized: Callable[[JobPostingRecord], None],
        *,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        max_retries: int = DEFAULT_MAX_RETRIES,
        metrics: Optional[CaptureMetrics] = None,
    ):
        self.document = document
        self.scheduler = scheduler
        self.on_finalized = on_finalized
        self.initial_delay = initial_delay
        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self.metrics = metrics or CaptureMetrics()

        self.state = CaptureState.IDLE
        self.last_outcome: Optional[CaptureState] = None
        self.retry_count = 0
        self.last_captured_id: Optional[str] = None
        self.captured_urls: Set[str] = set()
        self.navigation_id: Optional[Hashable] = None
        self.url: Optional[str] = None
        self.extractor: Optional[FieldExtractor] = None
        self._timer: Optional[TimerHandle] = None

    @property
    def in_flight(self) -> bool:
        return self.state in _IN_FLIGHT

    def arm(self, navigation_id: Hashable, extractor: FieldExtractor, url: Optional[str] = None) -> bool:
        """
        Start capturing for a navigation; returns False when the trigger is ignored.

        A repeat trigger for the navigation already in flight is ignored. A
        trigger for any other navigation supersedes the pending work.
        """
        url = url or self.document.url
        if self.in_flight and navigation_id == self.navigation_id:
            logger.debug("Capture already in progress for navigation %s; ignoring trigger", navigation_id)
            return False

        self.cancel()
        if url in self.captured_urls:
            logger.info("Already captured %s in this context; skipping", url)
            self.metrics.duplicate()
            return False

        self.navigation_id = navigation_id
        self.url = url
        self.extractor = extractor
        self.retry_count = 0
        self.state = CaptureState.ARMED
        logger.debug("Armed capture for %s (%s)", url, extractor.platform.value)
        self._schedule(self.initial_delay)
        return True

    def cancel(self) -> None:
        """Drop the pending timer; an in-flight capture goes back to IDLE."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.in_flight:
            logger.debug("Cancelled capture for %s", self.url)
            self.state = CaptureState.IDLE
            self.retry_count = 0

    def _schedule(self, delay: float) -> None:
        # Last trigger wins: never two live timers for one context
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self.scheduler.call_later(delay, self._attempt, self.navigation_id)
        self.state = CaptureState.WAITING

    def _attempt(self, navigation_id: Hashable) -> None:
        if navigation_id != self.navigation_id or self.state is not CaptureState.WAITING:
            return
        self._timer = None
        self.state = CaptureState.EXTRACTING
        self.metrics.attempt()

        try:
            record = self.extractor.extract(self.document)
        except Exception:
            logger.exception("Extractor raised; treating page as not ready")
            record = None

        if record is None:
            self._not_ready()
        elif record.platform_job_id == self.last_captured_id:
            self._duplicate(record)
        else:
            self._finalize(record)

    def _not_ready(self) -> None:
        if self.retry_count < self.max_retries:
            self.retry_count += 1
            self.state = CaptureState.RETRYING
            logger.debug("Content not ready, retrying (%d/%d)", self.retry_count, self.max_retries)
            self._schedule(self.retry_delay)
            return

        logger.warning("Failed to extract job data from %s after %d retries", self.url, self.max_retries)
        self.metrics.exhausted(self.url, self.max_retries + 1)
        self._settle(CaptureState.EXHAUSTED)

    def _duplicate(self, record: JobPostingRecord) -> None:
        logger.info("Job %s already captured; not relaying again", record.platform_job_id)
        self.captured_urls.add(self.url)
        self.metrics.duplicate()
        self._settle(CaptureState.IDLE)

    def _finalize(self, record: JobPostingRecord) -> None:
        self.last_captured_id = record.platform_job_id
        self.captured_urls.add(self.url)
        self.captured_urls.add(record.source_url)
        self.state = CaptureState.FINALIZED
        self.metrics.finalized(record)
        logger.info("Captured %s", record)
        try:
            self.on_finalized(record)
        except Exception:
            logger.exception("Finalized-record handler failed for job %s", record.platform_job_id)
        self._settle(CaptureState.FINALIZED)

    def _settle(self, outcome: CaptureState) -> None:
        self.last_outcome = outcome
        self.retry_count = 0
        self.state = CaptureState.IDLE
