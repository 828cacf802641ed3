"""Custom exceptions for Bookmark Archive.

This module defines the exception hierarchy used throughout the archive.
All processing-related exceptions inherit from ProcessorError, which allows
for unified error handling in the enrichment pipeline.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Why a batch could not be classified.

    Recorded on every failed batch so run summaries can be logged
    and grouped without inspecting exception types.
    """

    TRANSPORT = "transport_error"
    SERVICE = "service_error"
    INVALID_RESPONSE = "invalid_response"
    EMPTY_RESPONSE = "empty_response"
    UNEXPECTED = "unexpected_error"


class ProcessorError(Exception):
    """Base class for processor errors.

    All recoverable errors during bookmark processing should inherit from this class.
    """

    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None):
        super().__init__(message)
        if retryable is not None:
            self.retryable = retryable


class ClassificationError(ProcessorError):
    """A batch could not be classified.

    Raised by the classification client. The pipeline catches it at the
    batch boundary, so it never aborts a run.
    """

    kind: FailureKind = FailureKind.INVALID_RESPONSE

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message, retryable=retryable)
        self.status_code = status_code


class TransportError(ClassificationError):
    """Network failure, timeout or non-success HTTP status.

    Usually transient, so the caller may retry after a delay.
    """

    kind = FailureKind.TRANSPORT
    retryable: bool = True


class ServiceError(ClassificationError):
    """The service answered with an explicit error payload.

    Overload and rate limit errors arrive this way and may clear up on retry.
    """

    kind = FailureKind.SERVICE
    retryable: bool = True


class InvalidResponseError(ClassificationError):
    """Response is not valid JSON or does not match the expected schema.

    Retrying with the same input rarely helps.
    """

    kind = FailureKind.INVALID_RESPONSE
    retryable: bool = False


class EmptyResponseError(ClassificationError):
    """Service returned no usable text content."""

    kind = FailureKind.EMPTY_RESPONSE
    retryable: bool = False


class ParseError(ProcessorError):
    """Failed to parse import content.

    The content could not be parsed into the expected format.
    Not retryable unless the source is fixed.
    """

    retryable: bool = False


class RunInProgressError(ProcessorError):
    """An enrichment run is already active on this pipeline.

    Runs against the same archive must be serialized by the caller.
    """

    retryable: bool = False


class ConfigurationError(Exception):
    """Invalid configuration.

    This is NOT a ProcessorError - configuration issues should be fixed
    before the processor runs, not retried automatically.
    """

    pass
