"""
S3-facing components: the metadata fetcher and the thumbnail writer.

Both take their S3 client as a constructor argument so that tests can hand in
a `moto` client or a mock.
"""

from datetime import datetime, timezone

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_s3 import S3Client

from .exceptions import MetadataFetchError
from .model import ObjectMetadata

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class MetadataFetcher:
    """Reads size, content type, user metadata and last-modified of one object."""

    def __init__(self, s3_client: S3Client, logger: Logger):
        self._s3 = s3_client
        self._logger = logger

    def fetch(self, bucket: str, key: str) -> ObjectMetadata:
        """
        Issues a `head_object` for the object and normalizes the response.

        There are no retries here beyond botocore's own; a failed record is
        retried by re-delivery of the upload event, if at all.

        Raises:
            MetadataFetchError: If S3 reports an error or the call cannot be made.
        """
        try:
            head = self._s3.head_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            self._logger.error(
                "Error getting S3 object metadata.",
                extra={"bucket": bucket, "key": key, "error": str(e)},
            )
            raise MetadataFetchError(bucket, key, e) from e

        return ObjectMetadata(
            size_bytes=int(head.get("ContentLength") or 0),
            content_type=head.get("ContentType") or DEFAULT_CONTENT_TYPE,
            custom_tags=dict(head.get("Metadata") or {}),
            last_modified=head.get("LastModified") or datetime.now(timezone.utc),
        )


class ThumbnailWriter:
    """Stores thumbnail images in the thumbnail bucket and returns their public URLs."""

    def __init__(self, s3_client: S3Client, bucket: str):
        self._s3 = s3_client
        self.bucket = bucket

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def put(self, key: str, image: bytes) -> str:
        self._s3.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=image,
            ContentType="image/jpeg",
        )
        return self.url_for(key)
