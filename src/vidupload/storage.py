from __future__ import annotations

import logging
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from vidupload.config import UploadConfig
from vidupload.exceptions import ConfigError, ObjectStoreError

logger = logging.getLogger(__name__)


class S3ObjectStore:
    """Writes processed videos to an S3 bucket."""

    def __init__(self, client: Any, bucket: str, region: str):
        if not bucket:
            raise ConfigError("An S3 bucket name is required")
        if not region:
            raise ConfigError("An S3 region is required")
        self.client = client
        self.bucket = bucket
        self.region = region

    @classmethod
    def from_config(cls, config: UploadConfig) -> S3ObjectStore:
        """Creates a store backed by a new boto3 client for ``config.s3_region``."""
        client = boto3.client("s3", region_name=config.s3_region)
        return cls(client, bucket=config.s3_bucket, region=config.s3_region)

    def put(self, key: str, body: BinaryIO, content_type: str) -> None:
        """Uploads ``body`` under ``key``.

        Raises:
            ObjectStoreError: On any network, permission or service failure.
        """
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            logger.error("Upload of s3://%s/%s failed: %s", self.bucket, key, e)
            raise ObjectStoreError(f"Could not store {key} in bucket {self.bucket}: {e}") from e
        logger.info("Stored s3://%s/%s", self.bucket, key)

    def public_url(self, key: str) -> str:
        """Virtual-hosted-style URL for ``key``. Derived locally, never from the store response."""
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
