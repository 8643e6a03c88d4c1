"""
Native messaging bridge

Browser native messaging speaks length-prefixed JSON on stdin/stdout: a
4-byte little-endian unsigned length followed by that many bytes of UTF-8
JSON. This host forwards JOB_DETECTED messages to the desktop app.
"""

from __future__ import annotations

import json
import logging
import struct
from typing import Any, BinaryIO, Dict, Optional

from jobcapture.errors import FramingError, TransportError
from jobcapture.models import JOB_DETECTED
from jobcapture.transport import Transport

logger = logging.getLogger(__name__)

MAX_MESSAGE_BYTES = 1024 * 1024
_HEADER = struct.Struct("<I")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_message(stream: BinaryIO) -> Optional[Dict[str, Any]]:
    """Next message, or None on a clean end of stream."""
    header = _read_exact(stream, _HEADER.size)
    if not header:
        return None
    if len(header) < _HEADER.size:
        raise FramingError("truncated length header")

    (length,) = _HEADER.unpack(header)
    if length > MAX_MESSAGE_BYTES:
        raise FramingError(f"message of {length} bytes exceeds {MAX_MESSAGE_BYTES}")

    body = _read_exact(stream, length)
    if len(body) < length:
        raise FramingError(f"truncated message: expected {length} bytes, got {len(body)}")

    try:
        message = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise FramingError(f"invalid JSON payload: {exc}") from exc
    if not isinstance(message, dict):
        raise FramingError("message must be a JSON object")
    return message


def write_message(stream: BinaryIO, message: Dict[str, Any]) -> None:
    body = json.dumps(message).encode("utf-8")
    if len(body) > MAX_MESSAGE_BYTES:
        raise FramingError(f"message of {len(body)} bytes exceeds {MAX_MESSAGE_BYTES}")
    stream.write(_HEADER.pack(len(body)))
    stream.write(body)
    stream.flush()


def run_host(stdin: BinaryIO, stdout: BinaryIO, transport: Transport) -> int:
    """Serve until end of stream or a framing error; returns messages handled."""
    handled = 0
    logger.info("Native messaging host started")
    while True:
        try:
            message = read_message(stdin)
        except FramingError as exc:
            logger.error("Message loop error: %s", exc)
            break
        if message is None:
            break

        handled += 1
        logger.debug("Received from extension: %s", message.get("type"))
        if message.get("type") == JOB_DETECTED:
            try:
                response = transport.send(message)
                reply: Dict[str, Any] = {"success": True, "response": response}
            except TransportError as exc:
                logger.warning("Failed to forward to desktop app: %s", exc)
                reply = {"success": False, "error": str(exc)}
        else:
            reply = {"success": False, "error": "Unknown message type"}
        write_message(stdout, reply)

    logger.info("Native messaging host stopped after %d message(s)", handled)
    return handled
