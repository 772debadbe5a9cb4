import pytest
from botocore.exceptions import ClientError

from core.infrastructure.adapters.s3_adapter import S3Adapter
from core.infrastructure.adapters.ses_adapter import SESAdapter
from core.infrastructure.adapters.sqs_adapter import SQSAdapter


class TestS3Adapter:
    def test_get_object(self, s3_put_object, s3_bucket) -> None:
        s3_put_object("my photo.png", b"png-bytes")

        response = S3Adapter(region_name="us-east-1").get_object(bucket=s3_bucket, key="my photo.png")

        assert response["Body"].read() == b"png-bytes"

    def test_missing_key_bubbles_client_error(self, s3_bucket) -> None:
        with pytest.raises(ClientError) as exc_info:
            S3Adapter(region_name="us-east-1").get_object(bucket=s3_bucket, key="nope.png")

        assert exc_info.value.response["Error"]["Code"] == "NoSuchKey"


class TestSESAdapter:
    def test_send_email_returns_message_id(self, ses_client, ses_sent_count) -> None:
        adapter = SESAdapter(region_name="us-east-1")

        message_id = adapter.send_email(
            source="sender@example.com",
            to_address="operator@example.com",
            subject="New Image Upload",
            html_body="<p>hi</p>",
        )

        assert message_id
        assert ses_sent_count() == 1

    def test_unverified_sender_bubbles_client_error(self, ses_client) -> None:
        with pytest.raises(ClientError):
            SESAdapter(region_name="us-east-1").send_email(
                source="stranger@example.com",
                to_address="operator@example.com",
                subject="s",
                html_body="b",
            )


class TestSQSAdapter:
    def test_send_receive_delete(self, sqs_queues) -> None:
        adapter = SQSAdapter(queue_url=sqs_queues["rejection"], region_name="us-east-1")

        message_id = adapter.send_message(body="payload")
        [message] = adapter.receive_messages(max_messages=10, wait_seconds=0)

        assert message["MessageId"] == message_id
        assert message["Body"] == "payload"
        assert message["Attributes"]["ApproximateReceiveCount"] == "1"

        adapter.delete_message(receipt_handle=message["ReceiptHandle"])
        assert adapter.receive_messages(max_messages=10, wait_seconds=0) == []
