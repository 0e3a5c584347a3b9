"""Choose the storage backends once, at startup, from configuration."""

from typing import Dict, Optional

from common.logging_config import get_logger
from fragments import config
from fragments.exceptions import ConfigurationError
from fragments.storage.interfaces import StorageBackends
from fragments.storage.memory import InMemoryBlobStore, InMemoryMetadataStore

logger = get_logger(__name__)

MEMORY_BACKEND = "memory"
AWS_BACKEND = "aws"


def _aws_credentials() -> Dict[str, Optional[str]]:
    """
    Explicit credentials from the environment, if both key parts are set.

    Otherwise boto3 falls back to its default provider chain.
    """
    if config.AWS_ACCESS_KEY_ID and config.AWS_SECRET_ACCESS_KEY:
        logger.debug("Using explicit AWS credentials from AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY")
        return {
            "aws_access_key_id": config.AWS_ACCESS_KEY_ID,
            "aws_secret_access_key": config.AWS_SECRET_ACCESS_KEY,
            "aws_session_token": config.AWS_SESSION_TOKEN,
        }
    return {}


def create_backends() -> StorageBackends:
    """
    Bind the metadata and blob stores for this process.

    Both stores are AWS-backed when AWS_REGION is configured and in-process
    otherwise. Mixing the two kinds is not supported.

    Returns:
        StorageBackends pair

    Raises:
        ConfigurationError: If AWS_REGION is set without a table or bucket name
    """
    if not config.AWS_REGION:
        logger.info("AWS_REGION not set - using in-memory fragment storage")
        return StorageBackends(
            metadata=InMemoryMetadataStore(),
            blobs=InMemoryBlobStore(),
            kind=MEMORY_BACKEND,
        )

    missing = [
        name for name, value in (
            ("AWS_DYNAMODB_TABLE_NAME", config.AWS_DYNAMODB_TABLE_NAME),
            ("AWS_S3_BUCKET_NAME", config.AWS_S3_BUCKET_NAME),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(f"missing expected env vars: {', '.join(missing)}")

    from fragments.storage.dynamodb import DynamoDBMetadataStore
    from fragments.storage.s3 import S3BlobStore

    credentials = _aws_credentials()
    logger.info(f"AWS_REGION={config.AWS_REGION} - using DynamoDB and S3 fragment storage")

    return StorageBackends(
        metadata=DynamoDBMetadataStore(
            table_name=config.AWS_DYNAMODB_TABLE_NAME,
            region=config.AWS_REGION,
            endpoint_url=config.AWS_DYNAMODB_ENDPOINT_URL,
            credentials=credentials,
        ),
        blobs=S3BlobStore(
            bucket_name=config.AWS_S3_BUCKET_NAME,
            region=config.AWS_REGION,
            endpoint_url=config.AWS_S3_ENDPOINT_URL,
            credentials=credentials,
        ),
        kind=AWS_BACKEND,
    )
