"""
Derived artifact generation: thumbnails, duration and resolution.

Frame extraction and probing are an external capability behind the
`MediaProcessor` protocol. `SimulatedMediaProcessor` stands in for it until a
real transcoder (e.g. MediaConvert) is wired up; the pipeline trusts whatever
the processor returns.
"""

import time
from typing import List, Protocol

from aws_lambda_powertools import Logger

from .exceptions import MediaProcessingError
from .model import MediaInfo, ObjectMetadata, ProcessingResult, Result, SubmissionKey
from .storage import ThumbnailWriter

MAX_THUMBNAILS = 5
BYTES_PER_THUMBNAIL = 50 * 1024 * 1024


class MediaProcessor(Protocol):
    def probe(self, bucket: str, key: str, metadata: ObjectMetadata) -> MediaInfo:
        ...

    def extract_frame(self, bucket: str, key: str, offset_seconds: int) -> bytes:
        ...


class SimulatedMediaProcessor:
    """
    Estimates media info from the object size and returns placeholder frames.

    Duration assumes a nominal bitrate; resolution is reported as 1080p.
    """

    NOMINAL_BYTES_PER_SECOND = 625_000  # 5 Mbit/s
    DEFAULT_RESOLUTION = {"width": 1920, "height": 1080}
    PLACEHOLDER_FRAME = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"

    def probe(self, bucket: str, key: str, metadata: ObjectMetadata) -> MediaInfo:
        if metadata.size_bytes <= 0:
            raise MediaProcessingError(f"Cannot probe empty object s3://{bucket}/{key}")
        duration = max(1, metadata.size_bytes // self.NOMINAL_BYTES_PER_SECOND)
        return MediaInfo(duration_seconds=duration, resolution=dict(self.DEFAULT_RESOLUTION))  # type: ignore[arg-type]

    def extract_frame(self, bucket: str, key: str, offset_seconds: int) -> bytes:
        return self.PLACEHOLDER_FRAME


def thumbnail_offsets(size_bytes: int, interval_seconds: int) -> List[int]:
    """One thumbnail per started 50 MiB of source, capped at MAX_THUMBNAILS."""
    count = min(size_bytes // BYTES_PER_THUMBNAIL + 1, MAX_THUMBNAILS)
    return [i * interval_seconds for i in range(count)]


def thumbnail_key(key: SubmissionKey, offset_seconds: int) -> str:
    return f"thumbnails/{key.assignment_id}/{key.user_id}/thumb_{offset_seconds}s.jpg"


class ArtifactGenerator:
    def __init__(
        self,
        media_processor: MediaProcessor,
        thumbnail_writer: ThumbnailWriter,
        logger: Logger,
        interval_seconds: int = 10,
    ):
        self._media = media_processor
        self._thumbnails = thumbnail_writer
        self._logger = logger
        self._interval = interval_seconds

    def generate(
        self,
        metadata: ObjectMetadata,
        key: SubmissionKey,
        source_bucket: str,
        source_key: str,
    ) -> ProcessingResult:
        """
        Produces the derived artifacts of one accepted upload.

        A thumbnail failure is logged and yields an empty list; a failed probe
        leaves duration and resolution unset. Any other exception propagates to
        the caller as a processing failure.
        """
        start = time.monotonic()
        self._logger.info("Starting video processing.", extra={"submission": str(key)})

        thumbnails = self._generate_thumbnails(metadata, key, source_bucket, source_key)
        if thumbnails.is_err:
            self._logger.error(
                "Thumbnail generation failed; continuing without thumbnails.",
                extra={"submission": str(key), "error": thumbnails.error},
            )

        result = ProcessingResult(thumbnail_urls=thumbnails.value if thumbnails.is_ok else [])

        try:
            info = self._media.probe(source_bucket, source_key, metadata)
            result.video_duration_seconds = info.duration_seconds
            result.video_resolution = info.resolution
        except MediaProcessingError as e:
            self._logger.warning(
                "Could not determine video duration/resolution.",
                extra={"submission": str(key), "error": str(e)},
            )

        result.processing_duration_ms = int((time.monotonic() - start) * 1000)
        self._logger.info(
            "Video processing completed.",
            extra={
                "submission": str(key),
                "thumbnails": len(result.thumbnail_urls),
                "processing_duration_ms": result.processing_duration_ms,
            },
        )
        return result

    def _generate_thumbnails(
        self,
        metadata: ObjectMetadata,
        key: SubmissionKey,
        source_bucket: str,
        source_key: str,
    ) -> Result[List[str], str]:
        urls: List[str] = []
        try:
            for offset in thumbnail_offsets(metadata.size_bytes, self._interval):
                frame = self._media.extract_frame(source_bucket, source_key, offset)
                urls.append(self._thumbnails.put(thumbnail_key(key, offset), frame))
        except Exception as e:
            return Result.err(f"{type(e).__name__}: {e}")
        return Result.ok(urls)
