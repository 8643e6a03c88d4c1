"""
Capture acknowledgments shown to the user
"""

import logging
from abc import ABC, abstractmethod

from jobcapture.models import JobPostingRecord, Platform

logger = logging.getLogger(__name__)

MESSAGE = "✓ Job captured"

PLATFORM_COLORS = {
    Platform.LINKEDIN: "#0a66c2",
    Platform.INDEED: "#2164f3",
    Platform.GLASSDOOR: "#0caa41",
}

TOAST_SCRIPT = """
({ text, color }) => {
  const note = document.createElement('div');
  note.style.cssText = [
    'position: fixed', 'top: 20px', 'right: 20px', `background: ${color}`,
    'color: white', 'padding: 12px 20px', 'border-radius: 8px',
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif",
    'font-size: 14px', 'font-weight: 500', 'box-shadow: 0 4px 12px rgba(0,0,0,0.15)',
    'z-index: 999999',
  ].join(';');
  note.textContent = text;
  document.body.appendChild(note);
  setTimeout(() => {
    note.style.transition = 'opacity 0.3s';
    note.style.opacity = '0';
    setTimeout(() => note.remove(), 300);
  }, 2000);
}
"""


class Notifier(ABC):
    @abstractmethod
    def captured(self, record: JobPostingRecord) -> None:
        ...


class LogNotifier(Notifier):
    def captured(self, record: JobPostingRecord) -> None:
        logger.info("%s: %s", MESSAGE, record)


class PageNotifier(Notifier):
    """Transient toast in the page the user is looking at."""

    def __init__(self, page):
        self.page = page

    def captured(self, record: JobPostingRecord) -> None:
        color = PLATFORM_COLORS.get(record.platform, "#4285f4")
        try:
            self.page.evaluate(TOAST_SCRIPT, {"text": MESSAGE, "color": color})
        except Exception as exc:
            # The page may have navigated away or closed
            logger.debug("Could not show capture toast: %s", exc)
