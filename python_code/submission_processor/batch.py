"""
Batch Orchestrator: validates the notification batch and fans it out.

Records are independent. Each one runs as a task on a bounded thread pool, and
any exception it raises is captured at the task boundary and turned into a
`failed` outcome, so one bad record never aborts its siblings. `process`
returns only after every task has settled.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import List

from aws_lambda_powertools import Logger

from .model import BatchResult, NotificationRecord, RecordOutcome
from .processor import RecordProcessor
from .schemas import parse_notification_batch


class BatchOrchestrator:
    def __init__(self, record_processor: RecordProcessor, logger: Logger, max_workers: int = 16):
        self._processor = record_processor
        self._logger = logger
        self._max_workers = max_workers

    def process(self, event: object) -> BatchResult:
        """
        Processes every record of an S3 notification event.

        Returns:
            The per-record outcomes, in the order the records appear in the event.

        Raises:
            InvalidBatchFormat: If the event is structurally invalid. Nothing is
                                processed in that case.
        """
        records = parse_notification_batch(event)
        if not records:
            self._logger.info("No records to process.")
            return BatchResult()

        self._logger.info(f"Received {len(records)} records to process.")
        workers = min(self._max_workers, len(records))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._run_record, record) for record in records]
            outcomes: List[RecordOutcome] = [future.result() for future in futures]

        result = BatchResult(outcomes=outcomes)
        self._logger.info("Batch processing completed.", extra=result.summary())
        return result

    def _run_record(self, record: NotificationRecord) -> RecordOutcome:
        try:
            return self._processor.process(record)
        except Exception as e:
            self._logger.exception(
                "Unhandled error processing record.",
                extra={"bucket": record.bucket_name, "key": record.object_key},
            )
            return RecordOutcome.failed(record, f"{type(e).__name__}: {e}")
