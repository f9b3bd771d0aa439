"""Exceptions and failure events for docingest."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


# -----------------------------------------------------------------------------
# Failure events
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class FailureEvent:
    """Structured failure record handed back to the caller for logging."""

    input_id: str
    error: str
    message: str
    format: str | None = None
    cause: str | None = None
    retryable: bool = False

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class IngestError(Exception):
    """Base exception for ingestion and transform operations."""

    client_error: bool = True
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_event(self, input_id: str) -> FailureEvent:
        """Describe this error as a FailureEvent for the given input."""
        return FailureEvent(
            input_id=input_id,
            error=type(self).__name__,
            message=self.message,
            format=getattr(self, "format", None),
            cause=getattr(self, "cause", None),
            retryable=self.retryable,
        )


class UnsupportedFormat(IngestError):
    """Raised when a declared media type is outside the supported set."""

    def __init__(self, media_type: str) -> None:
        super().__init__(f"Unsupported media type: {media_type or '<empty>'}")
        self.media_type = media_type


class ExtractionError(IngestError):
    """
    Raised when a format-specific extractor cannot parse its input.

    cause is "malformed" when the input itself is unreadable and
    "internal" for faults unrelated to the input bytes.
    """

    MALFORMED = "malformed"
    INTERNAL = "internal"

    def __init__(self, format: str, cause: str, message: str) -> None:
        super().__init__(f"{format}: {message}")
        self.format = format
        self.cause = cause


class TransformError(IngestError):
    """Raised when a single image cannot be decoded or re-encoded."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(f"{reason}: {message}")
        self.reason = reason
        self.cause = reason


class InvalidRequest(IngestError):
    """Raised when transform parameters fail validation."""

    pass


class UploadRejected(IngestError):
    """Raised by the upload boundary for oversized or disallowed files."""

    pass


class StagingFailure(IngestError):
    """Raised when the staging directory cannot be created, written or removed."""

    client_error = False
    retryable = True


class InternalError(IngestError):
    """Unexpected fault captured for one batch item."""

    client_error = False
