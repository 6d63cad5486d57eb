"""
Inbound event schemas.

The TypedDicts describe the S3 notification shape for static analysis; the
Pydantic models validate it at runtime before any record is touched.
"""

from typing import List, TypedDict
from urllib.parse import unquote_plus

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import InvalidBatchFormat
from .model import NotificationRecord

# --- Static Type Hinting (for mypy and IDEs) ---


class S3BucketDict(TypedDict):
    name: str


class S3ObjectDict(TypedDict):
    key: str


class S3DataDict(TypedDict):
    bucket: S3BucketDict
    object: S3ObjectDict


class S3EventRecord(TypedDict):
    eventName: str
    s3: S3DataDict


class S3Event(TypedDict):
    Records: List[S3EventRecord]


# --- Runtime Validation (using Pydantic) ---


class S3BucketModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)


class S3ObjectModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str = Field(..., min_length=1)


class S3DataModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bucket: S3BucketModel
    object: S3ObjectModel


class S3EventNotificationRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event_name: str = Field(..., alias="eventName")
    s3: S3DataModel

    def to_record(self) -> NotificationRecord:
        # S3 URL-encodes keys in notifications ("a+b" for "a b").
        return NotificationRecord(
            event_name=self.event_name,
            bucket_name=self.s3.bucket.name,
            object_key=unquote_plus(self.s3.object.key),
        )


class S3EventNotification(BaseModel):
    model_config = ConfigDict(extra="ignore")

    records: List[S3EventNotificationRecord] = Field(..., alias="Records")


def parse_notification_batch(event: object) -> List[NotificationRecord]:
    """
    Validates the whole event and flattens it into notification records.

    Any record that breaks the schema invalidates the entire batch; there is no
    partial acceptance at this stage.

    Raises:
        InvalidBatchFormat: If the event is not a well-formed S3 notification.
    """
    try:
        notification = S3EventNotification.model_validate(event)
    except ValidationError as e:
        raise InvalidBatchFormat("Invalid S3 event format", errors=e.errors()) from e
    return [record.to_record() for record in notification.records]
