"""
Document adapters - read-only views over rendered page content

HtmlDocument wraps a BeautifulSoup snapshot (offline extraction, tests).
PageDocument wraps a live Playwright page the user is browsing.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from soupsieve import SelectorSyntaxError

logger = logging.getLogger(__name__)

Listener = Callable[[], None]

# Tags rendered on their own line(s) when computing inner text
_PARAGRAPH_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6", "ul", "ol", "section", "article", "table"}
_LINE_TAGS = {"li", "div", "tr", "dd", "dt", "header", "footer", "blockquote", "pre"}
_SKIP_PARENTS = {"script", "style", "noscript", "template"}


def _collapse(text: str) -> str:
    return " ".join((text or "").split())


def _normalize_lines(raw: str) -> str:
    lines = [_collapse(line) for line in raw.split("\n")]
    out: List[str] = []
    for line in lines:
        if not line and (not out or not out[-1]):
            continue
        out.append(line)
    return "\n".join(out).strip()


class Element(ABC):
    """Read-only element handle."""

    @property
    @abstractmethod
    def text(self) -> str:
        """Text content with whitespace collapsed."""

    @property
    @abstractmethod
    def inner_text(self) -> str:
        """Rendered text with line breaks between block elements preserved."""

    @property
    @abstractmethod
    def raw_text(self) -> str:
        """Unrendered text, including script bodies (JSON-LD)."""

    @abstractmethod
    def get(self, attribute: str) -> Optional[str]:
        ...

    @abstractmethod
    def select(self, css: str) -> List["Element"]:
        ...

    def select_one(self, css: str) -> Optional["Element"]:
        found = self.select(css)
        return found[0] if found else None


class Document(ABC):
    """The rendered content tree plus its location string."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    @property
    @abstractmethod
    def url(self) -> str:
        ...

    @abstractmethod
    def select(self, css: str) -> List[Element]:
        ...

    def select_one(self, css: str) -> Optional[Element]:
        found = self.select(css)
        return found[0] if found else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a content-changed listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Content-changed listener failed")


# ---------------------------------------------------------------------------
# BeautifulSoup snapshot
# ---------------------------------------------------------------------------

class SoupElement(Element):
    def __init__(self, tag: Tag):
        self._tag = tag

    @property
    def text(self) -> str:
        return _collapse(self._tag.get_text())

    @property
    def inner_text(self) -> str:
        parts: List[str] = []
        for node in self._tag.descendants:
            if isinstance(node, Tag):
                if node.name == "br":
                    parts.append("\n")
                elif node.name in _PARAGRAPH_TAGS:
                    parts.append("\n\n")
                elif node.name in _LINE_TAGS:
                    parts.append("\n")
            elif isinstance(node, NavigableString) and not isinstance(node, Comment):
                if node.parent is not None and node.parent.name in _SKIP_PARENTS:
                    continue
                parts.append(str(node).replace("\n", " "))
        return _normalize_lines("".join(parts))

    @property
    def raw_text(self) -> str:
        return self._tag.string or self._tag.get_text()

    def get(self, attribute: str) -> Optional[str]:
        value = self._tag.get(attribute)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def select(self, css: str) -> List[Element]:
        return _soup_select(self._tag, css)


def _soup_select(root: Tag, css: str) -> List[Element]:
    try:
        return [SoupElement(tag) for tag in root.select(css)]
    except (SelectorSyntaxError, NotImplementedError, ValueError) as exc:
        logger.debug("Selector %r not supported: %s", css, exc)
        return []


class HtmlDocument(Document):
    """A parsed HTML snapshot with a location string."""

    def __init__(self, url: str, html: str):
        super().__init__()
        self._url = url
        self._soup = BeautifulSoup(html or "", "html.parser")

    @property
    def url(self) -> str:
        return self._url

    def select(self, css: str) -> List[Element]:
        return _soup_select(self._soup, css)

    def update(self, url: Optional[str] = None, html: Optional[str] = None) -> None:
        """Replace the snapshot (like a SPA re-render) and notify listeners."""
        if url is not None:
            self._url = url
        if html is not None:
            self._soup = BeautifulSoup(html, "html.parser")
        self._notify()

    @classmethod
    def from_file(cls, path, url: str) -> "HtmlDocument":
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return cls(url, f.read())


# ---------------------------------------------------------------------------
# Live Playwright page
# ---------------------------------------------------------------------------

BINDING_NAME = "__jobcaptureMutation"

OBSERVER_SCRIPT = """
(() => {
  if (window.__jobcaptureObserver) return;
  let pending = false;
  const notify = () => {
    if (pending) return;
    pending = true;
    setTimeout(() => {
      pending = false;
      try { window.%(binding)s(); } catch (e) {}
    }, 50);
  };
  const start = () => {
    window.__jobcaptureObserver = new MutationObserver(notify);
    window.__jobcaptureObserver.observe(document.documentElement, { childList: true, subtree: true });
  };
  if (document.documentElement) { start(); } else { document.addEventListener('DOMContentLoaded', start); }
})();
""" % {"binding": BINDING_NAME}


class PageElement(Element):
    def __init__(self, handle):
        self._handle = handle

    @property
    def text(self) -> str:
        try:
            return _collapse(self._handle.text_content() or "")
        except Exception:
            logger.debug("text_content failed", exc_info=True)
            return ""

    @property
    def inner_text(self) -> str:
        try:
            return _normalize_lines(self._handle.inner_text() or "")
        except Exception:
            logger.debug("inner_text failed", exc_info=True)
            return self.text

    @property
    def raw_text(self) -> str:
        try:
            return self._handle.text_content() or ""
        except Exception:
            return ""

    def get(self, attribute: str) -> Optional[str]:
        try:
            return self._handle.get_attribute(attribute)
        except Exception:
            return None

    def select(self, css: str) -> List[Element]:
        try:
            return [PageElement(h) for h in self._handle.query_selector_all(css)]
        except Exception as exc:
            logger.debug("Selector %r failed: %s", css, exc)
            return []


class PageDocument(Document):
    """Adapter over a Playwright sync Page; mutations are forwarded to listeners."""

    def __init__(self, page):
        super().__init__()
        self.page = page
        self._installed = False

    @property
    def url(self) -> str:
        return self.page.url

    def select(self, css: str) -> List[Element]:
        try:
            return [PageElement(h) for h in self.page.query_selector_all(css)]
        except Exception as exc:
            logger.debug("Selector %r failed: %s", css, exc)
            return []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        unsubscribe = super().subscribe(listener)
        if not self._installed:
            self._install_observer()
        return unsubscribe

    def _install_observer(self) -> None:
        self._installed = True
        self.page.expose_binding(BINDING_NAME, lambda source: self._notify())
        self.page.add_init_script(OBSERVER_SCRIPT)
        # History API navigations fire framenavigated without a full load
        self.page.on("framenavigated", self._on_frame_navigated)
        try:
            self.page.evaluate(OBSERVER_SCRIPT)
        except Exception:
            logger.debug("Observer injection into current document failed", exc_info=True)

    def _on_frame_navigated(self, frame) -> None:
        if frame == self.page.main_frame:
            self._notify()


