"""Email delivery of cleanup reports through Amazon SES."""
import logging
from typing import Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class SesNotifier:
    """Sends plain-text emails from a verified SES identity."""

    def __init__(self, sender: str, region_name: Optional[str] = None):
        """
        Initialize the SES client.

        Args:
            sender: Verified sender address
            region_name: AWS region (defaults to the environment's region)
        """
        self.sender = sender
        self.ses = boto3.client('ses', region_name=region_name)

    def send(self, recipient: str, subject: str, body: str) -> str:
        """
        Send one email.

        Args:
            recipient: Destination address
            subject: Subject line
            body: Plain-text body

        Returns:
            SES message ID

        Raises:
            ClientError: If SES rejects the message
        """
        try:
            response = self.ses.send_email(
                Source=self.sender,
                Destination={'ToAddresses': [recipient]},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {'Text': {'Data': body, 'Charset': 'UTF-8'}}
                }
            )
        except ClientError as e:
            logger.error(f"Error sending email to {recipient}: {e}")
            raise

        logger.info(f"Sent email to {recipient}: {response['MessageId']}")
        return response['MessageId']
