"""Amazon S3 (or S3-compatible) remote."""

from typing import List, Optional, Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..utils.logger import Logger
from ..utils.errors import ObjectNotFoundError, RemoteUnreachableError, ConfigurationError
from .provider import RemoteStore

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


class S3Remote(RemoteStore):
    """Remote backed by an S3 bucket, with every key under ``prefix``."""

    def __init__(
        self,
        bucket: Optional[str],
        prefix: str = "",
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout: float = 30.0,
        retries: int = 3,
        client: Optional[Any] = None
    ):
        if not bucket:
            raise ConfigurationError(
                "No S3 bucket configured (set remote.bucket or BUCKETGIT_BUCKET)"
            )
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        if client is None:
            client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint_url,
                config=BotoConfig(
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": retries, "mode": "standard"},
                ),
            )
        self.client = client

    def _key(self, key: str) -> str:
        return f"{self.prefix}/{key}" if self.prefix else key

    def put(self, key: str, data: bytes) -> None:
        try:
            self.client.put_object(Bucket=self.bucket, Key=self._key(key), Body=data)
        except (BotoCoreError, ClientError) as e:
            raise RemoteUnreachableError(f"Upload of {key} to s3://{self.bucket} failed: {e}") from e
        Logger.debug(f"Uploaded s3://{self.bucket}/{self._key(key)} ({len(data)} bytes)")

    def get(self, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self._key(key))
            return response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in MISSING_KEY_CODES:
                raise ObjectNotFoundError(f"Remote key not found: {key}") from e
            raise RemoteUnreachableError(f"Download of {key} from s3://{self.bucket} failed: {e}") from e
        except BotoCoreError as e:
            raise RemoteUnreachableError(f"Download of {key} from s3://{self.bucket} failed: {e}") from e

    def list(self, prefix: str = "") -> List[str]:
        full_prefix = self._key(prefix)
        strip = len(self.prefix) + 1 if self.prefix else 0
        keys = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=full_prefix):
                for item in page.get("Contents", []):
                    keys.append(item["Key"][strip:])
        except (BotoCoreError, ClientError) as e:
            raise RemoteUnreachableError(f"Listing s3://{self.bucket}/{full_prefix} failed: {e}") from e
        return sorted(keys)

    def describe(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}" if self.prefix else f"s3://{self.bucket}"
