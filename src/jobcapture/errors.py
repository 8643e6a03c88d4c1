"""
Error types shared across the capture pipeline
"""


class JobCaptureError(Exception):
    """Base class for all capture pipeline errors."""


class ConfigValidationError(JobCaptureError, ValueError):
    """Raised when configuration fails invariant validation."""


class TransportError(JobCaptureError):
    """Raised when the desktop application cannot be reached or rejects a message."""


class FramingError(JobCaptureError):
    """Raised when a native messaging frame is truncated or oversized."""
