"""DynamoDB-backed metadata store."""

import asyncio
from typing import Any, Dict, List, Optional, Union

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from common.logging_config import get_logger
from fragments.exceptions import StorageFailureError
from fragments.types import FragmentMetadata

logger = get_logger(__name__)


class DynamoDBMetadataStore:
    """
    Metadata store over a DynamoDB table.

    The table has a composite primary key: ``ownerId`` (partition key) and
    ``id`` (sort key). Each item is the full FragmentMetadata record.
    Blocking boto3 calls are run in a worker thread so the event loop never
    waits on the network.
    """

    def __init__(
        self,
        table_name: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        credentials: Optional[Dict[str, Optional[str]]] = None,
        table: Any = None,
    ):
        self.table_name = table_name
        if table is None:
            resource = boto3.resource(
                "dynamodb",
                region_name=region,
                endpoint_url=endpoint_url,
                **(credentials or {}),
            )
            table = resource.Table(table_name)
        self._table = table

        logger.info(f"Using DynamoDB metadata store [table={table_name}] [region={region}]")

    async def put(self, record: FragmentMetadata) -> None:
        try:
            await asyncio.to_thread(self._table.put_item, Item=record.to_dict())
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                f"Error writing fragment to DynamoDB [owner_id={record.owner_id}] [id={record.id}]: {e}"
            )
            raise StorageFailureError("unable to write fragment metadata") from e

    async def get(self, owner_id: str, fragment_id: str) -> Optional[FragmentMetadata]:
        try:
            response = await asyncio.to_thread(
                self._table.get_item,
                Key={"ownerId": owner_id, "id": fragment_id},
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(
                f"Error reading fragment from DynamoDB [owner_id={owner_id}] [id={fragment_id}]: {e}"
            )
            raise StorageFailureError("unable to read fragment metadata") from e

        item = response.get("Item")
        if item is None:
            return None
        return FragmentMetadata.from_dict(item)

    async def query(
        self,
        owner_id: str,
        expand: bool = False,
    ) -> Union[List[str], List[FragmentMetadata]]:
        params: Dict[str, Any] = {
            "KeyConditionExpression": Key("ownerId").eq(owner_id),
        }
        # Only fetch the id attribute unless full records were asked for
        if not expand:
            params["ProjectionExpression"] = "id"

        items: List[Dict[str, Any]] = []
        try:
            while True:
                response = await asyncio.to_thread(self._table.query, **params)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                params["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error querying fragments from DynamoDB [owner_id={owner_id}]: {e}")
            raise StorageFailureError("unable to list fragments") from e

        if not expand:
            return [item["id"] for item in items]
        return [FragmentMetadata.from_dict(item) for item in items]

    async def delete(self, owner_id: str, fragment_id: str) -> None:
        try:
            await asyncio.to_thread(
                self._table.delete_item,
                Key={"ownerId": owner_id, "id": fragment_id},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"Error deleting fragment from DynamoDB [owner_id={owner_id}] [id={fragment_id}]: {e}"
            )
            raise StorageFailureError("unable to delete fragment metadata") from e
