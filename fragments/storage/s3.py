"""S3-backed blob store."""

import asyncio
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from common.logging_config import get_logger
from fragments.exceptions import StorageFailureError
from fragments.storage.interfaces import blob_key

logger = get_logger(__name__)


class S3BlobStore:
    """
    Blob store over one S3 bucket.

    Objects are stored at "{owner_id}/{id}" as raw bytes with no envelope.
    A custom endpoint (e.g. LocalStack or MinIO) can be configured, in which
    case path-style addressing is used.
    """

    def __init__(
        self,
        bucket_name: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        credentials: Optional[Dict[str, Optional[str]]] = None,
        client: Any = None,
    ):
        self.bucket_name = bucket_name
        if client is None:
            if endpoint_url:
                logger.debug(f"Using alternate S3 endpoint [endpoint={endpoint_url}]")
            client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=endpoint_url,
                config=Config(s3={"addressing_style": "path"}),
                **(credentials or {}),
            )
        self._client = client

        logger.info(f"Using S3 blob store [bucket={bucket_name}] [region={region}]")

    def _read_object(self, key: str) -> bytes:
        response = self._client.get_object(Bucket=self.bucket_name, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    async def put(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        key = blob_key(owner_id, fragment_id)
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=bytes(data),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error writing fragment data to S3 [bucket={self.bucket_name}] [key={key}]: {e}")
            raise StorageFailureError("unable to write fragment data") from e

        logger.debug(f"Fragment data written to S3 [key={key}] [size={len(data)}]")

    async def get(self, owner_id: str, fragment_id: str) -> Optional[bytes]:
        key = blob_key(owner_id, fragment_id)
        try:
            return await asyncio.to_thread(self._read_object, key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error streaming fragment data from S3 [bucket={self.bucket_name}] [key={key}]: {e}")
            raise StorageFailureError("unable to read fragment data") from e

    async def delete(self, owner_id: str, fragment_id: str) -> None:
        key = blob_key(owner_id, fragment_id)
        try:
            await asyncio.to_thread(
                self._client.delete_object,
                Bucket=self.bucket_name,
                Key=key,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting fragment data from S3 [bucket={self.bucket_name}] [key={key}]: {e}")
            raise StorageFailureError("unable to delete fragment data") from e
