"""
Navigation watcher - detects SPA route changes from content-changed notifications
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from jobcapture.document import Document
from jobcapture.extractors import extractor_for_url
from jobcapture.extractors.base import FieldExtractor
from jobcapture.scheduling import TimerHandle, TimerQueue

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.3

PostingCallback = Callable[[int, FieldExtractor, str], None]


class NavigationWatcher:
    """
    Compares the document location on every mutation notification.

    A change fires on_navigation(navigation_id) right away and, once the
    location has been stable for the debounce delay, classifies it. Posting
    views are reported through on_posting(navigation_id, extractor, url).
    """

    def __init__(
        self,
        document: Document,
        scheduler: TimerQueue,
        on_posting: PostingCallback,
        *,
        on_navigation: Optional[Callable[[int], None]] = None,
        debounce: float = DEFAULT_DEBOUNCE,
        resolve: Callable[[str], Optional[FieldExtractor]] = extractor_for_url,
    ):
        self.document = document
        self.scheduler = scheduler
        self.on_posting = on_posting
        self.on_navigation = on_navigation
        self.debounce = debounce
        self.resolve = resolve

        self.last_url: Optional[str] = None
        self.navigation_id = 0
        self._debounce_timer: Optional[TimerHandle] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Subscribe to content changes and classify the current location once."""
        if self.running:
            return
        self.last_url = self.document.url
        self._unsubscribe = self.document.subscribe(self.on_mutation)
        logger.info("Watching %s", self.last_url)
        self.classify(self.navigation_id)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
            self._debounce_timer = None

    def on_mutation(self) -> None:
        if not self.running:
            return
        url = self.document.url
        if url == self.last_url:
            return

        self.last_url = url
        self.navigation_id += 1
        logger.debug("Location changed to %s (navigation %d)", url, self.navigation_id)
        if self.on_navigation is not None:
            self.on_navigation(self.navigation_id)

        if self._debounce_timer is not None:
            self._debounce_timer.cancel()
        self._debounce_timer = self.scheduler.call_later(self.debounce, self.classify, self.navigation_id)

    def classify(self, navigation_id: int) -> bool:
        """Report the current location if it is a posting view."""
        if navigation_id != self.navigation_id:
            return False
        self._debounce_timer = None
        url = self.document.url
        extractor = self.resolve(url)
        if extractor is None:
            logger.debug("No extractor for %s", url)
            return False
        if not extractor.is_posting_view(self.document):
            logger.debug("%s is not a posting view", url)
            return False
        self.on_posting(navigation_id, extractor, url)
        return True
