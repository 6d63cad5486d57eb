"""
Shared fixtures for the submission processor tests.

AWS is faked with moto's `mock_aws`; the clients factory is told so via USE_MOTO.
"""

import os
from datetime import datetime, timezone
from unittest.mock import Mock

import boto3
import pytest
from aws_lambda_powertools import Logger
from moto import mock_aws

# Set required environment variables before any pipeline module is imported
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["USE_MOTO"] = "1"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from submission_processor.model import (  # noqa: E402
    NotificationRecord,
    ObjectMetadata,
    Result,
    SubmissionKey,
)

VIDEO_BUCKET = "demo-project-videos"
THUMBNAIL_BUCKET = "demo-project-thumbnails"
SUBMISSIONS_TABLE = "submissions"
VALID_KEY = "CS101/assignment123/user123/1704067200000_test-video.mp4"
VALID_TAGS = {
    "assignment-id": "assignment123",
    "course-id": "CS101",
    "upload-type": "assignment",
    "user-id": "user123",
}


@pytest.fixture
def logger():
    return Logger(service="submission-processor-test")


@pytest.fixture
def submission_key():
    return SubmissionKey(
        course_id="CS101",
        assignment_id="assignment123",
        user_id="user123",
        file_name="test-video.mp4",
    )


@pytest.fixture
def make_record():
    def _make(
        key: str = VALID_KEY,
        bucket: str = VIDEO_BUCKET,
        event_name: str = "ObjectCreated:Put",
    ) -> NotificationRecord:
        return NotificationRecord(event_name=event_name, bucket_name=bucket, object_key=key)

    return _make


@pytest.fixture
def make_metadata():
    def _make(
        size_bytes: int = 10 * 1024 * 1024,
        content_type: str = "video/mp4",
        tags=None,
    ) -> ObjectMetadata:
        return ObjectMetadata(
            size_bytes=size_bytes,
            content_type=content_type,
            custom_tags=dict(VALID_TAGS if tags is None else tags),
            last_modified=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _make


@pytest.fixture
def make_event():
    def _make(*records):
        return {
            "Records": [
                {
                    "eventName": event_name,
                    "s3": {"bucket": {"name": bucket}, "object": {"key": key}},
                }
                for event_name, bucket, key in records
            ]
        }

    return _make


@pytest.fixture
def state_store_mock():
    """A state store whose writes all succeed."""
    store = Mock()
    store.set_status.return_value = Result.ok(None)
    store.set_results.return_value = Result.ok(None)
    store.increment_retry_count.return_value = Result.ok(None)
    return store


@pytest.fixture
def aws():
    with mock_aws():
        yield


@pytest.fixture
def s3_client(aws):
    client = boto3.client("s3", region_name="us-east-1")
    client.create_bucket(Bucket=VIDEO_BUCKET)
    client.create_bucket(Bucket=THUMBNAIL_BUCKET)
    return client


@pytest.fixture
def dynamodb(aws):
    resource = boto3.resource("dynamodb", region_name="us-east-1")
    resource.create_table(
        TableName=SUBMISSIONS_TABLE,
        KeySchema=[
            {"AttributeName": "assignmentId", "KeyType": "HASH"},
            {"AttributeName": "userId", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "assignmentId", "AttributeType": "S"},
            {"AttributeName": "userId", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    return resource


@pytest.fixture
def submissions_table(dynamodb):
    return dynamodb.Table(SUBMISSIONS_TABLE)


@pytest.fixture
def dynamodb_client(dynamodb):
    """Low-level client over the same moto backend as the `dynamodb` resource."""
    return boto3.client("dynamodb", region_name="us-east-1")


@pytest.fixture
def seed_submission(submissions_table):
    """Creates a record the way the upload-initiation step would."""

    def _seed(assignment_id: str = "assignment123", user_id: str = "user123", **attrs):
        item = {
            "assignmentId": assignment_id,
            "userId": user_id,
            "status": "uploading",
            "retryCount": 0,
            **attrs,
        }
        submissions_table.put_item(Item=item)
        return item

    return _seed


@pytest.fixture
def upload_video(s3_client):
    def _upload(key: str = VALID_KEY, body: bytes = b"\x00" * 1024, content_type: str = "video/mp4", tags=None):
        s3_client.put_object(
            Bucket=VIDEO_BUCKET,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=dict(VALID_TAGS if tags is None else tags),
        )

    return _upload
