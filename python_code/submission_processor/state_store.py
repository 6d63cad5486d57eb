"""
Submission State Store: the only writer of submission records.

Every write is an `update_item` against the `(assignmentId, userId)` key of the
submissions table. Writes are best-effort: instead of raising, each operation
returns a `Result` so the caller can log the failure and carry on. Losing a
status update is preferable to failing a correctly processed upload or the
rest of the batch.

The store is shared by every worker thread of a batch, so it talks to DynamoDB
through a low-level client (thread safe) and not a `Table` resource (not thread
safe). Python values are marshalled with boto3's `TypeSerializer`.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aws_lambda_powertools import Logger
from boto3.dynamodb.types import TypeSerializer
from mypy_boto3_dynamodb import DynamoDBClient

from .model import ProcessingResult, Result, SubmissionKey, SubmissionStatus

_serializer = TypeSerializer()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _marshall(values: Dict[str, Any]) -> Dict[str, Any]:
    return {name: _serializer.serialize(value) for name, value in values.items()}


class SubmissionStateStore:
    def __init__(self, dynamodb_client: DynamoDBClient, table_name: str, logger: Logger):
        self._client = dynamodb_client
        self._table_name = table_name
        self._logger = logger

    def set_status(
        self,
        key: SubmissionKey,
        status: SubmissionStatus,
        error_message: Optional[str] = None,
    ) -> Result[None, str]:
        """Sets status and updatedAt; errorMessage if given; processedAt on a terminal status."""
        now = _utc_now_iso()
        expression = "SET #status = :status, updatedAt = :updatedAt"
        values: Dict[str, Any] = {":status": status.value, ":updatedAt": now}

        if error_message:
            expression += ", errorMessage = :errorMessage"
            values[":errorMessage"] = error_message

        if status.is_terminal:
            expression += ", processedAt = :processedAt"
            values[":processedAt"] = now

        result = self._update(key, expression, values, names={"#status": "status"})
        if result.is_ok:
            self._logger.info(
                f"Updated submission status to {status.value}.",
                extra={"submission": str(key)},
            )
        return result

    def set_results(self, key: SubmissionKey, results: ProcessingResult) -> Result[None, str]:
        expression = (
            "SET thumbnailUrls = :thumbnailUrls, "
            "processingDurationMs = :processingDurationMs, updatedAt = :updatedAt"
        )
        values: Dict[str, Any] = {
            ":thumbnailUrls": list(results.thumbnail_urls),
            ":processingDurationMs": results.processing_duration_ms,
            ":updatedAt": _utc_now_iso(),
        }

        if results.video_duration_seconds is not None:
            expression += ", videoDurationSeconds = :videoDurationSeconds"
            values[":videoDurationSeconds"] = results.video_duration_seconds

        if results.video_resolution is not None:
            expression += ", videoResolution = :videoResolution"
            values[":videoResolution"] = dict(results.video_resolution)

        result = self._update(key, expression, values)
        if result.is_ok:
            self._logger.info(
                "Updated submission with processing results.",
                extra={"submission": str(key)},
            )
        return result

    def increment_retry_count(self, key: SubmissionKey) -> Result[None, str]:
        # if_not_exists keeps the increment atomic even when the record has no counter yet.
        result = self._update(
            key,
            "SET retryCount = if_not_exists(retryCount, :zero) + :increment, updatedAt = :updatedAt",
            {":zero": 0, ":increment": 1, ":updatedAt": _utc_now_iso()},
        )
        if result.is_ok:
            self._logger.info("Incremented retry count.", extra={"submission": str(key)})
        return result

    def _update(
        self,
        key: SubmissionKey,
        expression: str,
        values: Dict[str, Any],
        names: Optional[Dict[str, str]] = None,
    ) -> Result[None, str]:
        try:
            params: Dict[str, Any] = {
                "TableName": self._table_name,
                "Key": _marshall(key.table_key()),
                "UpdateExpression": expression,
                "ExpressionAttributeValues": _marshall(values),
            }
            if names:
                params["ExpressionAttributeNames"] = names
            self._client.update_item(**params)
        except Exception as e:
            return Result.err(f"{type(e).__name__}: {e}")
        return Result.ok(None)
