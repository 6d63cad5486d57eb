"""
Integration tests for the Submission State Store against a moto DynamoDB table
"""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from submission_processor.model import ProcessingResult, SubmissionKey, SubmissionStatus
from submission_processor.state_store import SubmissionStateStore


@pytest.fixture
def store(dynamodb_client, logger):
    return SubmissionStateStore(dynamodb_client, "submissions", logger)


def _item(table, assignment_id="assignment123", user_id="user123"):
    return table.get_item(Key={"assignmentId": assignment_id, "userId": user_id})["Item"]


class TestSetStatus:

    def test_processing_sets_status_without_processed_at(self, store, submissions_table, seed_submission, submission_key):
        seed_submission()

        result = store.set_status(submission_key, SubmissionStatus.PROCESSING)

        item = _item(submissions_table)
        assert result.is_ok
        assert item["status"] == "processing"
        assert item["updatedAt"].endswith("Z")
        assert "processedAt" not in item
        assert "errorMessage" not in item

    def test_failed_sets_error_message_and_processed_at(
        self, store, submissions_table, seed_submission, submission_key
    ):
        seed_submission()

        store.set_status(submission_key, SubmissionStatus.FAILED, "Missing required metadata: course-id")

        item = _item(submissions_table)
        assert item["status"] == "failed"
        assert item["errorMessage"] == "Missing required metadata: course-id"
        assert item["processedAt"] == item["updatedAt"]
        assert item["retryCount"] == 0

    def test_completed_sets_processed_at(self, store, submissions_table, seed_submission, submission_key):
        seed_submission()

        store.set_status(submission_key, SubmissionStatus.COMPLETED)

        assert "processedAt" in _item(submissions_table)

    def test_preserves_unrelated_attributes(self, store, submissions_table, seed_submission, submission_key):
        seed_submission(fileName="test-video.mp4", courseId="CS101")

        store.set_status(submission_key, SubmissionStatus.PROCESSING)

        item = _item(submissions_table)
        assert item["fileName"] == "test-video.mp4"
        assert item["courseId"] == "CS101"


class TestSetResults:

    def test_persists_all_results(self, store, submissions_table, seed_submission, submission_key):
        seed_submission()
        results = ProcessingResult(
            thumbnail_urls=["https://t/thumb_0s.jpg", "https://t/thumb_10s.jpg"],
            processing_duration_ms=250,
            video_duration_seconds=16,
            video_resolution={"width": 1920, "height": 1080},
        )

        assert store.set_results(submission_key, results).is_ok

        item = _item(submissions_table)
        assert item["thumbnailUrls"] == ["https://t/thumb_0s.jpg", "https://t/thumb_10s.jpg"]
        assert item["processingDurationMs"] == 250
        assert item["videoDurationSeconds"] == 16
        assert item["videoResolution"] == {"width": 1920, "height": 1080}

    def test_optional_media_info_is_omitted(self, store, submissions_table, seed_submission, submission_key):
        seed_submission()

        store.set_results(submission_key, ProcessingResult(thumbnail_urls=[], processing_duration_ms=5))

        item = _item(submissions_table)
        assert item["thumbnailUrls"] == []
        assert "videoDurationSeconds" not in item
        assert "videoResolution" not in item


class TestIncrementRetryCount:

    def test_increments_by_one(self, store, submissions_table, seed_submission, submission_key):
        seed_submission(retryCount=2)

        store.increment_retry_count(submission_key)

        assert _item(submissions_table)["retryCount"] == 3

    def test_starts_from_zero_when_counter_missing(self, store, submissions_table, submission_key):
        submissions_table.put_item(Item={"assignmentId": "assignment123", "userId": "user123"})

        store.increment_retry_count(submission_key)
        store.increment_retry_count(submission_key)

        assert _item(submissions_table)["retryCount"] == 2


class TestPersistenceFailures:

    def test_missing_table_returns_error_instead_of_raising(self, dynamodb_client, logger, submission_key):
        store = SubmissionStateStore(dynamodb_client, "does-not-exist", logger)

        result = store.set_status(submission_key, SubmissionStatus.FAILED, "boom")

        assert result.is_err
        assert "ResourceNotFoundException" in result.error

    def test_client_errors_are_absorbed_by_every_operation(self, logger, submission_key):
        client = Mock()
        client.update_item.side_effect = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
            "UpdateItem",
        )
        store = SubmissionStateStore(client, "submissions", logger)

        assert store.set_status(submission_key, SubmissionStatus.PROCESSING).is_err
        assert store.set_results(submission_key, ProcessingResult()).is_err
        assert store.increment_retry_count(submission_key).is_err

    def test_unmarshallable_value_is_absorbed(self, store, seed_submission, submission_key):
        seed_submission()

        result = store.set_results(submission_key, ProcessingResult(processing_duration_ms=1.5))

        assert result.is_err
        assert result.error.startswith("TypeError")


class TestClientUsage:

    def test_sends_marshalled_attributes_to_low_level_client(self, logger, submission_key):
        client = Mock()
        store = SubmissionStateStore(client, "submissions", logger)

        store.set_status(submission_key, SubmissionStatus.FAILED, "boom")

        params = client.update_item.call_args.kwargs
        assert params["TableName"] == "submissions"
        assert params["Key"] == {"assignmentId": {"S": "assignment123"}, "userId": {"S": "user123"}}
        assert params["ExpressionAttributeNames"] == {"#status": "status"}
        assert params["ExpressionAttributeValues"][":status"] == {"S": "failed"}
        assert params["ExpressionAttributeValues"][":errorMessage"] == {"S": "boom"}

    def test_one_store_serves_concurrent_workers(self, store, submissions_table, seed_submission):
        user_ids = [f"user{i}" for i in range(24)]
        for user_id in user_ids:
            seed_submission(user_id=user_id)
        keys = [SubmissionKey("CS101", "assignment123", user_id, "v.mp4") for user_id in user_ids]

        def _complete(key):
            first = store.set_status(key, SubmissionStatus.PROCESSING)
            second = store.set_status(key, SubmissionStatus.COMPLETED)
            third = store.increment_retry_count(key)
            return first.is_ok and second.is_ok and third.is_ok

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(_complete, keys))

        assert all(results)
        for user_id in user_ids:
            item = _item(submissions_table, user_id=user_id)
            assert item["status"] == "completed"
            assert item["retryCount"] == 1
