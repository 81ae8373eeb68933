"""DynamoDB backup sink for events about to be deleted."""
import logging
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class DynamoDBBackupSink:
    """Stores backup snapshots, one DynamoDB table per snapshot."""

    BATCH_SIZE = 25  # DynamoDB batch operation limit

    def __init__(self, region_name: Optional[str] = None):
        """
        Initialize the DynamoDB resource.

        Args:
            region_name: AWS region (defaults to the environment's region)
        """
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)

    def create_table(self, name: str) -> str:
        """
        Create an on-demand backup table and wait until it exists.

        Args:
            name: Table name

        Returns:
            ARN of the created table
        """
        logger.info(f"Creating backup table: {name}")
        try:
            table = self.dynamodb.create_table(
                TableName=name,
                KeySchema=[
                    {'AttributeName': 'row_id', 'KeyType': 'HASH'}
                ],
                AttributeDefinitions=[
                    {'AttributeName': 'row_id', 'AttributeType': 'S'}
                ],
                BillingMode='PAY_PER_REQUEST'
            )
            table.wait_until_exists()
        except ClientError as e:
            logger.error(f"Error creating backup table {name}: {e}")
            raise

        return table.table_arn

    def append_rows(self, table_id: str, rows: List[dict]) -> int:
        """
        Write backup rows in batches of 25 items.

        Args:
            table_id: ARN (or name) of a table created by create_table
            rows: Row dictionaries to store

        Returns:
            Count of successfully written rows
        """
        if not rows:
            return 0

        table = self.dynamodb.Table(self._table_name(table_id))
        logger.info(f"Writing {len(rows)} backup rows to {table.name}")
        success_count = 0

        for i in range(0, len(rows), self.BATCH_SIZE):
            batch = rows[i:i + self.BATCH_SIZE]

            try:
                with table.batch_writer() as writer:
                    for offset, row in enumerate(batch):
                        item = dict(row)
                        item['row_id'] = f"{i + offset:06d}"
                        writer.put_item(Item=item)
                        success_count += 1

            except ClientError as e:
                logger.error(
                    f"Error writing backup batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                continue

        logger.info(f"Successfully wrote {success_count} backup rows")
        return success_count

    def _table_name(self, table_id: str) -> str:
        # arn:aws:dynamodb:<region>:<account>:table/<name>
        return table_id.split(':table/', 1)[-1]
