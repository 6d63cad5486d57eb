"""
Main AWS Lambda handler for the Video Submission Processing Pipeline.

This module serves as the primary entry point and wiring point for the function.
Its responsibilities include:
  - Loading and validating configuration from environment variables.
  - Building the AWS clients and pipeline components once per container.
  - Receiving S3 "object created" notification batches.
  - Handing the batch to the BatchOrchestrator, which isolates per-record failures.
  - Emitting the final metrics and re-raising only fatal, whole-batch errors.
"""

import json
import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aws_lambda_powertools import Logger
from mypy_boto3_dynamodb import DynamoDBClient
from mypy_boto3_s3 import S3Client

from . import clients, core
from .batch import BatchOrchestrator
from .config import Settings
from .media import ArtifactGenerator, MediaProcessor, SimulatedMediaProcessor
from .processor import RecordProcessor
from .state_store import SubmissionStateStore
from .storage import MetadataFetcher, ThumbnailWriter

SERVICE_NAME = "submission-processor"

logger = Logger(service=SERVICE_NAME)

ORCHESTRATOR: Optional[BatchOrchestrator] = None
SETTINGS: Optional[Settings] = None


def build_orchestrator(
    settings: Settings,
    s3_client: S3Client,
    dynamodb_client: DynamoDBClient,
    log: Logger,
    media_processor: Optional[MediaProcessor] = None,
) -> BatchOrchestrator:
    """Wires the pipeline components around the given clients."""
    generator = ArtifactGenerator(
        media_processor=media_processor or SimulatedMediaProcessor(),
        thumbnail_writer=ThumbnailWriter(s3_client, settings.thumbnail_bucket),
        logger=log,
        interval_seconds=settings.thumbnail_interval_seconds,
    )
    processor = RecordProcessor(
        video_bucket=settings.video_bucket,
        metadata_fetcher=MetadataFetcher(s3_client, log),
        artifact_generator=generator,
        state_store=SubmissionStateStore(dynamodb_client, settings.submissions_table, log),
        logger=log,
    )
    return BatchOrchestrator(processor, log, max_workers=settings.max_workers)


def get_orchestrator() -> BatchOrchestrator:
    """
    Returns the container-wide orchestrator, building it on first use.

    Clients and configuration are created once per Lambda execution
    environment and reused across invocations.
    """
    global ORCHESTRATOR, SETTINGS
    if ORCHESTRATOR is None:
        SETTINGS = Settings.from_env()
        logger.setLevel(SETTINGS.log_level)
        s3_client, dynamodb_client = clients.get_boto_clients()
        ORCHESTRATOR = build_orchestrator(SETTINGS, s3_client, dynamodb_client, logger)
        logger.info(
            "Pipeline initialized.",
            extra={
                "video_bucket": SETTINGS.video_bucket,
                "thumbnail_bucket": SETTINGS.thumbnail_bucket,
                "submissions_table": SETTINGS.submissions_table,
            },
        )
    return ORCHESTRATOR


def _request_id(context: Any) -> str:
    request_id = getattr(context, "aws_request_id", None)
    if request_id:
        return request_id
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"proc_{int(time.time() * 1000)}_{suffix}"


def _build_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Centralized helper to build the final Lambda response."""
    return {"statusCode": status_code, "body": json.dumps(body)}


def handler(event: Dict, context: Any):
    """
    Main Lambda entry point for S3 upload notifications.

    Per-record problems (skips, policy rejections, processing failures, state
    write outages) are absorbed and reported through the submission records and
    the response summary. Only a structurally invalid batch, or a failure to
    set up the pipeline, is re-raised so the trigger can retry or dead-letter it.
    """
    start_time = datetime.now(timezone.utc)
    logger.append_keys(request_id=_request_id(context))
    logger.info("Starting video submission processing.")
    logger.debug("Received event.", extra={"event": event})

    orchestrator = get_orchestrator()
    environment = SETTINGS.environment if SETTINGS else "dev"

    try:
        batch_result = orchestrator.process(event)
    except Exception as e:
        latency_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
        error_payload = {"error_type": type(e).__name__, "error_message": str(e), "latency_ms": latency_ms}
        core.emit_metrics(environment, "Failure", error_payload, logger)
        logger.error(f"Video submission processing failed: {json.dumps(error_payload)}", exc_info=True)
        raise

    latency_ms = int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
    log_payload: Dict[str, Any] = {**batch_result.summary(), "latency_ms": latency_ms}
    core.emit_metrics(environment, "Success", log_payload, logger)
    logger.info("Video submission processing completed successfully.", extra=log_payload)
    return _build_response(200, log_payload)
