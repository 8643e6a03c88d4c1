"""
Relay - hands finalized records to the desktop app, or queues them locally

Delivery runs on a single worker thread so a slow or dead desktop app never
blocks the watcher. Each send gets a wall-clock deadline; a send that fails
or overruns it goes straight to the fallback queue. There is no retry loop:
queued records are only re-sent by an explicit export.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as SendTimeout
from typing import Optional

from jobcapture.errors import TransportError
from jobcapture.fallback import FallbackQueue
from jobcapture.models import JobPostingRecord, RelayAck, job_detected_message, queued_entry
from jobcapture.transport import Transport

logger = logging.getLogger(__name__)

METHOD_PRIMARY = "primary"
METHOD_LOCAL = "local"

DEFAULT_TIMEOUT = 5.0


class Relay:
    def __init__(
        self,
        transport: Transport,
        queue: FallbackQueue,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        executor: Optional[Executor] = None,
    ):
        self.transport = transport
        self.queue = queue
        self.timeout = timeout
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="relay")
        # A send stuck past its deadline keeps a sender busy; the second one keeps the next record moving
        self._sender = ThreadPoolExecutor(max_workers=2, thread_name_prefix="relay-send")

    def relay(self, record: JobPostingRecord) -> "Future[RelayAck]":
        """Deliver record in the background; the future always resolves to an ack."""
        return self._executor.submit(self._deliver, record)

    def _deliver(self, record: JobPostingRecord) -> RelayAck:
        attempt = self._sender.submit(self.transport.send, job_detected_message(record))
        try:
            attempt.result(timeout=self.timeout)
        except SendTimeout:
            attempt.cancel()
            logger.warning(
                "Desktop app did not answer within %.1fs; storing job %s locally", self.timeout, record.platform_job_id
            )
        except TransportError as exc:
            logger.warning("Desktop app not reachable (%s); storing job %s locally", exc, record.platform_job_id)
        else:
            logger.info("Sent job %s to desktop app", record.platform_job_id)
            return RelayAck(success=True, method=METHOD_PRIMARY)

        try:
            self.queue.append(queued_entry(record))
        except OSError as exc:
            logger.error("Failed to store job %s locally: %s", record.platform_job_id, exc)
            return RelayAck(success=False, reason="unavailable")
        return RelayAck(success=True, method=METHOD_LOCAL)

    def is_connected(self) -> bool:
        """Side-effect-free reachability probe; failures mean "not connected"."""
        try:
            return bool(self.transport.ping())
        except Exception:
            logger.debug("Connectivity probe raised", exc_info=True)
            return False

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
        # Never block on a send that already overran its deadline
        self._sender.shutdown(wait=False, cancel_futures=True)
