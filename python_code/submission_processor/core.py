"""
Core business logic for the Video Submission Processing Pipeline.

These functions are "pure" and testable: they make no AWS SDK calls and hold
no global state. The only dependency, the Powertools logger used for metrics,
is passed in by the caller.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aws_lambda_powertools import Logger

from .model import ObjectMetadata, SubmissionKey, ValidationResult

MAX_UPLOAD_SIZE_BYTES = 500 * 1024 * 1024
PROCESSABLE_VIDEO_TYPES = ("video/mp4", "video/avi", "video/mov", "video/webm")
REQUIRED_OBJECT_TAGS = ("assignment-id", "course-id", "upload-type", "user-id")
METRICS_NAMESPACE = "VideoSubmissionPipeline"

_TIMESTAMPED_FILE_NAME = re.compile(r"\d+_(.+)")


def parse_object_key(object_key: str) -> Optional[SubmissionKey]:
    """
    Parses `courseId/assignmentId/userId/<unixMillis>_<fileName>` into a SubmissionKey.

    Anything after the third slash is treated as the timestamped file name, so a
    file name may itself contain slashes.

    Args:
        object_key: The decoded S3 object key.

    Returns:
        The parsed SubmissionKey, or None if the key is not a submission object.
    """
    parts = object_key.split("/")
    if len(parts) < 4:
        return None

    course_id, assignment_id, user_id = parts[0], parts[1], parts[2]
    match = _TIMESTAMPED_FILE_NAME.fullmatch("/".join(parts[3:]))
    if not match:
        return None

    file_name = match.group(1)
    if not (course_id and assignment_id and user_id and file_name):
        return None

    return SubmissionKey(
        course_id=course_id,
        assignment_id=assignment_id,
        user_id=user_id,
        file_name=file_name,
    )


def validate_upload(metadata: ObjectMetadata) -> ValidationResult:
    """
    Applies the upload policy to an object's metadata. The first failing rule wins.

    1. Size must not exceed MAX_UPLOAD_SIZE_BYTES.
    2. Content type must be one of PROCESSABLE_VIDEO_TYPES.
    3. Every tag in REQUIRED_OBJECT_TAGS must be present and non-empty.
    """
    if metadata.size_bytes > MAX_UPLOAD_SIZE_BYTES:
        return ValidationResult.reject(
            f"File size {metadata.size_bytes} bytes exceeds maximum allowed size "
            f"of {MAX_UPLOAD_SIZE_BYTES} bytes"
        )

    if metadata.content_type not in PROCESSABLE_VIDEO_TYPES:
        return ValidationResult.reject(
            f"Content type {metadata.content_type} is not supported. "
            f"Supported types: {', '.join(PROCESSABLE_VIDEO_TYPES)}"
        )

    for tag in REQUIRED_OBJECT_TAGS:
        if not metadata.custom_tags.get(tag):
            return ValidationResult.reject(f"Missing required metadata: {tag}")

    return ValidationResult.accept()


def emit_metrics(environment: str, status: str, payload: Dict[str, Any], logger: Logger) -> Dict[str, Any]:
    """
    Formats and logs batch metrics in CloudWatch Embedded Metric Format (EMF).

    Dashboards and alarms should filter/group by the 'Environment' dimension.

    Args:
        environment: Deployment environment, used as the metric dimension.
        status: "Success" or "Failure".
        payload: Batch summary; known counters become metrics, the rest is context.
        logger: The Powertools Logger the EMF line is written through.

    Returns:
        The EMF document that was logged.
    """
    base_metrics = {
        "RecordsReceived": payload.get("total", 0),
        "RecordsProcessed": payload.get("processed", 0),
        "RecordsSkipped": payload.get("skipped", 0),
        "RecordsRejected": payload.get("rejected", 0),
        "RecordsFailed": payload.get("failed", 0),
    }
    if "latency_ms" in payload:
        base_metrics["ProcessingLatencyMs"] = payload["latency_ms"]

    emf_payload = {
        "_aws": {
            "Timestamp": int(datetime.now(timezone.utc).timestamp() * 1000),
            "CloudWatchMetrics": [
                {
                    "Namespace": METRICS_NAMESPACE,
                    "Dimensions": [["Environment"]],
                    "Metrics": [
                        {"Name": k, "Unit": "Milliseconds" if "Latency" in k else "Count"}
                        for k in base_metrics
                    ],
                }
            ],
        },
        "Environment": environment,
        "Status": status,
        **payload,
        **base_metrics,
    }
    logger.info(json.dumps(emf_payload, default=str))
    return emf_payload
