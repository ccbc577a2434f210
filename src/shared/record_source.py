"""
Record sources for device event records.

The event resolver depends only on the RecordSource interface; the DynamoDB
implementation below is what the deployed Lambda function uses.
"""

import time
from abc import ABC, abstractmethod
from typing import List, Optional
import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from boto3.dynamodb.conditions import Key
import logging

from shared.errors import RecordSourceError, RecordSourceTimeoutError
from shared.models import Record

logger = logging.getLogger(__name__)


class RecordSource(ABC):
    """Returns candidate records for a device, most recent first."""

    @abstractmethod
    def get_records(self, device_id: str, limit: int, deadline: Optional[float] = None) -> List[Record]:
        """
        Get up to `limit` records for a device.

        Args:
            device_id: Device identifier
            limit: Maximum number of records to return
            deadline: Absolute Unix time after which the caller has given up

        Returns:
            Records ordered newest first

        Raises:
            RecordSourceError: If the records could not be retrieved
        """


class DynamoRecordSource(RecordSource):
    """Reads device records from a DynamoDB table keyed by device id."""

    def __init__(self, table_name: str, timeout_seconds: int = 10):
        """
        Initialize DynamoDB record source.

        Args:
            table_name: DynamoDB table name for device records
            timeout_seconds: Connect and read timeout for DynamoDB calls
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource(
            'dynamodb',
            config=BotoConfig(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={'max_attempts': 2}
            )
        )
        self.table = self.dynamodb.Table(table_name)

    def get_records(self, device_id: str, limit: int, deadline: Optional[float] = None) -> List[Record]:
        if deadline is not None and deadline <= time.time():
            raise RecordSourceTimeoutError(f"Deadline exceeded before querying records for device {device_id}")

        try:
            response = self.table.query(
                KeyConditionExpression=Key('device_id').eq(device_id),
                ScanIndexForward=False,  # Descending order (newest first)
                Limit=limit
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error retrieving records for device {device_id}: {e}")
            raise RecordSourceError(str(e)) from e

        records = [Record.from_item(item) for item in response.get('Items', [])]
        logger.debug(f"Retrieved {len(records)} records for device {device_id}")
        return records
