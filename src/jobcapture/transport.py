"""
Primary delivery path to the collaborating desktop application.

The desktop application listens on a local port; records are POSTed as the
JOB_DETECTED message and a GET on the health path answers connectivity
probes.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from jobcapture.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://127.0.0.1:45782"
JOBS_PATH = "/jobs"
HEALTH_PATH = "/health"

# urllib3 fills each chunk before yielding it; acks are tiny, so read byte-wise to check the deadline
_READ_CHUNK = 1
MAX_RESPONSE_BYTES = 64 * 1024


class Transport(ABC):
    @abstractmethod
    def send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Deliver message; return the application's response or raise TransportError."""

    @abstractmethod
    def ping(self) -> bool:
        """True when the application is reachable. Never raises."""


class HttpTransport(Transport):
    """
    JSON over HTTP with requests.

    `timeout` bounds the whole send, body included: requests only limits the
    connect and each individual read, so the body is streamed against a
    wall-clock deadline. Probes go through their own session because send()
    runs on the relay worker while ping() runs on the caller's thread.
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        timeout: float = 5.0,
        ping_timeout: float = 1.0,
        session: Optional[requests.Session] = None,
        ping_session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.ping_timeout = ping_timeout
        self.session = session or requests.Session()
        self.ping_session = ping_session or requests.Session()

    def send(self, message: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.endpoint}{JOBS_PATH}"
        deadline = time.monotonic() + self.timeout
        try:
            resp = self.session.post(url, json=message, timeout=self.timeout, stream=True)
        except requests.RequestException as exc:
            raise TransportError(f"desktop app unreachable: {exc}") from exc

        try:
            text = self._read_body(resp, deadline)
        finally:
            resp.close()

        if not resp.ok:
            raise TransportError(f"desktop app HTTP {resp.status_code}: {text[:200]}")

        try:
            data = json.loads(text)
        except ValueError as exc:
            raise TransportError(f"desktop app invalid JSON: {text[:200]}") from exc

        if not isinstance(data, dict) or data.get("success") is not True:
            raise TransportError(f"desktop app rejected job: {text[:200]}")
        return data

    def _read_body(self, resp: requests.Response, deadline: float) -> str:
        body = bytearray()
        try:
            for chunk in resp.iter_content(chunk_size=_READ_CHUNK):
                body.extend(chunk)
                if time.monotonic() > deadline:
                    raise TransportError(f"desktop app response exceeded {self.timeout}s")
                if len(body) > MAX_RESPONSE_BYTES:
                    raise TransportError(f"desktop app response larger than {MAX_RESPONSE_BYTES} bytes")
        except requests.RequestException as exc:
            raise TransportError(f"desktop app response failed: {exc}") from exc
        return body.decode(resp.encoding or "utf-8", errors="replace")

    def ping(self) -> bool:
        try:
            resp = self.ping_session.get(f"{self.endpoint}{HEALTH_PATH}", timeout=self.ping_timeout)
        except requests.RequestException as exc:
            logger.debug("Desktop app ping failed: %s", exc)
            return False
        return resp.ok

    def close(self) -> None:
        self.session.close()
        self.ping_session.close()
