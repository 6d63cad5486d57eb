"""
Construction of the two AWS clients the submission pipeline talks to.

S3 serves both metadata reads on the video bucket and thumbnail writes on the
thumbnail bucket; DynamoDB holds the submission records. Both are low-level
clients, which boto3 allows to be shared by the batch worker threads. Nothing
else in the package calls `boto3` directly, so tests swap AWS out by activating
`moto` or by handing the components mocks.
"""

import logging
import os
from typing import Tuple

import boto3
import botocore.config

from mypy_boto3_dynamodb import DynamoDBClient
from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

# A shared retry configuration for clients that must ride out transient
# network or throttling errors. Pipeline-level retries are not performed;
# a failed record is left for upstream re-delivery.
BOTO_CONFIG_RETRYABLE = botocore.config.Config(
    retries={"max_attempts": 5, "mode": "adaptive"}
)


def get_boto_clients() -> Tuple[S3Client, DynamoDBClient]:
    """
    Creates the S3 and DynamoDB clients, both on the adaptive retry config.

    They are pinned to `AWS_REGION` when it is set so that the video bucket,
    the thumbnail bucket and the submissions table resolve to the same region.
    Under `USE_MOTO` the calls are intercepted by an active `moto` mock.

    Returns:
        A tuple of (s3_client, dynamodb_client).
    """
    aws_region = os.environ.get("AWS_REGION")
    if not aws_region:
        logger.warning("AWS_REGION not set, boto3 will attempt to resolve it.")

    if os.environ.get("USE_MOTO"):
        logger.info("MOTO ENABLED: S3 and DynamoDB calls go to the moto mock.")

    s3_client: S3Client = boto3.client(
        "s3", region_name=aws_region, config=BOTO_CONFIG_RETRYABLE
    )
    dynamodb_client: DynamoDBClient = boto3.client(
        "dynamodb", region_name=aws_region, config=BOTO_CONFIG_RETRYABLE
    )

    return s3_client, dynamodb_client
