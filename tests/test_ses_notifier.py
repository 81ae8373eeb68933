"""Unit tests for SesNotifier."""
import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from notifier.ses_notifier import SesNotifier


@pytest.fixture
def ses(aws_credentials):
    """Mocked SES with a verified sender identity."""
    with mock_aws():
        client = boto3.client('ses', region_name='us-east-1')
        client.verify_email_identity(EmailAddress='cleanup@example.com')
        yield client


class TestSesNotifier:
    """Test cases for SesNotifier class."""

    def test_send_email(self, ses):
        """Test a report email is accepted and counted."""
        notifier = SesNotifier(sender='cleanup@example.com', region_name='us-east-1')

        message_id = notifier.send('me@example.com', 'Report', 'All done\n')

        assert message_id
        assert ses.get_send_quota()['SentLast24Hours'] == 1

    def test_unverified_sender_raises(self, ses):
        """Test SES rejections propagate as ClientError."""
        notifier = SesNotifier(sender='nobody@example.com', region_name='us-east-1')

        with pytest.raises(ClientError):
            notifier.send('me@example.com', 'Report', 'body')
