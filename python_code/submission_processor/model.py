"""
Data models for the Video Submission Processing Pipeline.

This module defines the core data structures passed between the parts of the
application. Dataclasses and TypedDicts keep the data contracts explicit,
statically checked by mypy, and self-documenting. Runtime validation of the
inbound event lives in `schemas.py`.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Generic, List, Optional, TypedDict, TypeVar

T = TypeVar("T")
E = TypeVar("E")

UPLOAD_COMPLETED_EVENTS = frozenset(
    {"ObjectCreated:Put", "ObjectCreated:CompleteMultipartUpload"}
)


class SubmissionStatus(str, Enum):
    """Lifecycle of a submission record. `uploading` is set outside this package."""

    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.COMPLETED, SubmissionStatus.FAILED)


class OutcomeKind(str, Enum):
    SKIPPED = "skipped"
    REJECTED = "rejected"
    PROCESSED = "processed"
    FAILED = "failed"


class VideoResolution(TypedDict):
    width: int
    height: int


@dataclass(frozen=True)
class NotificationRecord:
    """
    One "object uploaded" notification, flattened from the S3 event record.

    Attributes:
        event_name: The S3 event name, e.g. "ObjectCreated:Put".
        bucket_name: The bucket the object landed in.
        object_key: The URL-decoded object key.
    """

    event_name: str
    bucket_name: str
    object_key: str

    @property
    def is_upload_completed(self) -> bool:
        return self.event_name in UPLOAD_COMPLETED_EVENTS


@dataclass(frozen=True)
class SubmissionKey:
    """Identifies a submission, parsed from `courseId/assignmentId/userId/<ts>_<fileName>`."""

    course_id: str
    assignment_id: str
    user_id: str
    file_name: str

    def table_key(self) -> Dict[str, str]:
        """The DynamoDB primary key of the submission record."""
        return {"assignmentId": self.assignment_id, "userId": self.user_id}

    def __str__(self) -> str:
        return f"{self.assignment_id}/{self.user_id}"


@dataclass(frozen=True)
class ObjectMetadata:
    size_bytes: int
    content_type: str
    custom_tags: Dict[str, str]
    last_modified: datetime


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "ValidationResult":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str) -> "ValidationResult":
        return cls(accepted=False, reason=reason)


@dataclass(frozen=True)
class MediaInfo:
    duration_seconds: int
    resolution: VideoResolution


@dataclass
class ProcessingResult:
    """
    The derived artifacts of one accepted upload.

    Attributes:
        thumbnail_urls: Public URLs of the generated thumbnails, in offset order.
                        Empty when thumbnail generation failed.
        processing_duration_ms: Wall-clock time spent generating artifacts.
        video_duration_seconds: Best-effort duration, None when unknown.
        video_resolution: Best-effort resolution, None when unknown.
    """

    thumbnail_urls: List[str] = field(default_factory=list)
    processing_duration_ms: int = 0
    video_duration_seconds: Optional[int] = None
    video_resolution: Optional[VideoResolution] = None


@dataclass
class RecordOutcome:
    """
    The explicit result of processing one notification record.

    `skipped` means the record was not a submission upload and nothing was
    written. `rejected` means the upload broke the size/type/tag policy and the
    submission was marked failed without a retry increment. `failed` means a
    processing stage raised and the retry count was incremented. `processed`
    means the submission reached `completed`.
    """

    kind: OutcomeKind
    record: NotificationRecord
    submission_key: Optional[SubmissionKey] = None
    reason: Optional[str] = None
    result: Optional[ProcessingResult] = None

    @classmethod
    def skipped(cls, record: NotificationRecord, reason: str) -> "RecordOutcome":
        return cls(OutcomeKind.SKIPPED, record, reason=reason)

    @classmethod
    def rejected(cls, record: NotificationRecord, key: SubmissionKey, reason: str) -> "RecordOutcome":
        return cls(OutcomeKind.REJECTED, record, submission_key=key, reason=reason)

    @classmethod
    def processed(cls, record: NotificationRecord, key: SubmissionKey, result: ProcessingResult) -> "RecordOutcome":
        return cls(OutcomeKind.PROCESSED, record, submission_key=key, result=result)

    @classmethod
    def failed(cls, record: NotificationRecord, reason: str, key: Optional[SubmissionKey] = None) -> "RecordOutcome":
        return cls(OutcomeKind.FAILED, record, submission_key=key, reason=reason)


@dataclass
class BatchResult:
    """Per-record outcomes of one invocation, in the order the records arrived."""

    outcomes: List[RecordOutcome] = field(default_factory=list)

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.kind is kind)

    def summary(self) -> Dict[str, int]:
        counts = {kind.value: self.count(kind) for kind in OutcomeKind}
        counts["total"] = len(self.outcomes)
        return counts


class Result(Generic[T, E]):
    """
    A minimal ok/err container for best-effort operations.

    Used where a failure must be recorded but must not travel as an exception
    across a component boundary (state writes, thumbnail generation).
    """

    __slots__ = ("_value", "_error", "_is_ok")

    def __init__(self, value: Optional[T], error: Optional[E], is_ok: bool):
        self._value = value
        self._error = error
        self._is_ok = is_ok

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(value, None, True)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        return cls(None, error, False)

    @property
    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def is_err(self) -> bool:
        return not self._is_ok

    @property
    def value(self) -> T:
        if not self._is_ok:
            raise ValueError(f"Called value on Result.err: {self._error!r}")
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> E:
        if self._is_ok:
            raise ValueError("Called error on Result.ok")
        return self._error  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Result.ok({self._value!r})" if self._is_ok else f"Result.err({self._error!r})"
