"""
Record Processor: drives one notification record through the submission lifecycle.

    uploading (set upstream) -> processing -> completed | failed

The processor never raises for a per-record problem. Every path ends in an
explicit RecordOutcome:
  - skipped:   not an upload-completed event, foreign bucket, or a key that is
               not a submission object. Nothing is fetched or written.
  - rejected:  size/type/tag policy violation. Status `failed`, retry count untouched.
  - failed:    anything in the fetch or generation stages raised. Status `failed`,
               retry count incremented once.
  - processed: results stored and status `completed`.
"""

from aws_lambda_powertools import Logger

from . import core
from .exceptions import MetadataFetchError
from .media import ArtifactGenerator
from .model import (
    NotificationRecord,
    RecordOutcome,
    Result,
    SubmissionKey,
    SubmissionStatus,
)
from .state_store import SubmissionStateStore
from .storage import MetadataFetcher


class RecordProcessor:
    def __init__(
        self,
        video_bucket: str,
        metadata_fetcher: MetadataFetcher,
        artifact_generator: ArtifactGenerator,
        state_store: SubmissionStateStore,
        logger: Logger,
    ):
        self._video_bucket = video_bucket
        self._fetcher = metadata_fetcher
        self._generator = artifact_generator
        self._store = state_store
        self._logger = logger

    def process(self, record: NotificationRecord) -> RecordOutcome:
        log_ctx = {"bucket": record.bucket_name, "key": record.object_key, "event": record.event_name}
        self._logger.info("Processing record.", extra=log_ctx)

        if not record.is_upload_completed:
            self._logger.info("Skipping non-upload event.", extra=log_ctx)
            return RecordOutcome.skipped(record, f"Non-upload event: {record.event_name}")

        if record.bucket_name != self._video_bucket:
            self._logger.info(
                "Skipping non-video bucket.",
                extra={**log_ctx, "expected_bucket": self._video_bucket},
            )
            return RecordOutcome.skipped(record, f"Non-video bucket: {record.bucket_name}")

        key = core.parse_object_key(record.object_key)
        if key is None:
            self._logger.warning("Could not parse S3 key; not a submission object.", extra=log_ctx)
            return RecordOutcome.skipped(record, f"Unparseable key: {record.object_key}")

        try:
            metadata = self._fetcher.fetch(record.bucket_name, record.object_key)
        except MetadataFetchError as e:
            return self._fail(record, key, str(e))
        except Exception as e:
            self._logger.exception(
                "Unexpected error fetching object metadata.", extra={**log_ctx, "submission": str(key)}
            )
            return self._fail(record, key, str(e) or type(e).__name__)

        validation = core.validate_upload(metadata)
        if not validation.accepted:
            reason = validation.reason or "Upload rejected"
            self._logger.warning(
                "Video validation failed.",
                extra={**log_ctx, "submission": str(key), "reason": reason},
            )
            self._record_write(
                self._store.set_status(key, SubmissionStatus.FAILED, reason), "set_status", key
            )
            return RecordOutcome.rejected(record, key, reason)

        self._record_write(self._store.set_status(key, SubmissionStatus.PROCESSING), "set_status", key)

        try:
            result = self._generator.generate(metadata, key, record.bucket_name, record.object_key)
        except Exception as e:
            self._logger.exception(
                "Error processing video submission.", extra={**log_ctx, "submission": str(key)}
            )
            return self._fail(record, key, str(e) or type(e).__name__)

        self._record_write(self._store.set_results(key, result), "set_results", key)
        self._record_write(self._store.set_status(key, SubmissionStatus.COMPLETED), "set_status", key)
        self._logger.info("Successfully processed video submission.", extra={"submission": str(key)})
        return RecordOutcome.processed(record, key, result)

    def _fail(self, record: NotificationRecord, key: SubmissionKey, message: str) -> RecordOutcome:
        self._record_write(
            self._store.set_status(key, SubmissionStatus.FAILED, message), "set_status", key
        )
        self._record_write(self._store.increment_retry_count(key), "increment_retry_count", key)
        return RecordOutcome.failed(record, message, key=key)

    def _record_write(self, result: Result[None, str], operation: str, key: SubmissionKey) -> None:
        """Logs a failed state write and drops it."""
        if result.is_err:
            self._logger.error(
                "Submission state write failed.",
                extra={"operation": operation, "submission": str(key), "error": result.error},
            )
