"""Exception types raised by the submission processing pipeline."""

from typing import Optional


class SubmissionProcessorError(Exception):
    """Base class for all pipeline errors."""


class InvalidBatchFormat(SubmissionProcessorError):
    """
    The inbound event does not match the S3 notification shape.

    This is the only error that leaves the handler: nothing in the batch is
    processed, and the trigger is left to retry or dead-letter the invocation.
    """

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class MetadataFetchError(SubmissionProcessorError):
    """Reading an object's metadata from S3 failed (missing, denied, transient)."""

    def __init__(self, bucket: str, key: str, cause: Exception):
        super().__init__(f"Failed to get S3 object metadata: {cause}")
        self.bucket = bucket
        self.key = key
        self.cause = cause


class MediaProcessingError(SubmissionProcessorError):
    """The media-processing capability could not probe or extract from a video."""
