"""
Pytest configuration and fixtures for image-pipeline tests.
Provides AWS mocking, DynamoDB, S3, SES and SQS fixtures with proper cleanup.
"""

import json
import os
from collections.abc import Callable
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
os.environ.setdefault("SES_EMAIL_FROM", "sender@example.com")
os.environ.setdefault("SES_EMAIL_TO", "operator@example.com")
os.environ.setdefault("SES_REGION", "us-east-1")
os.environ.setdefault("IMAGES_TABLE_NAME", "ImagesTable")
os.environ.setdefault(
    "IMAGE_PROCESS_QUEUE_URL",
    "https://sqs.us-east-1.amazonaws.com/123456789012/image-process-queue",
)
os.environ.setdefault(
    "REJECTION_QUEUE_URL",
    "https://sqs.us-east-1.amazonaws.com/123456789012/rejection-queue",
)
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "1")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "image-pipeline")

IMAGE_BUCKET = "photo-album-images"
IDEMPOTENCY_TABLE = "IdempotencyTable"


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


def _create_dynamodb_table(dynamodb_resource):
    """Helper to create the images table keyed by image name."""
    return dynamodb_resource.create_table(
        TableName=os.getenv("IMAGES_TABLE_NAME"),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "ImageName", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "ImageName", "AttributeType": "S"}],
        StreamSpecification={
            "StreamEnabled": True,
            "StreamViewType": "NEW_AND_OLD_IMAGES",
        },
    )


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """
    Create the images table for testing.

    The table is dropped with the moto context at the end of each test.
    """
    table_name = os.getenv("IMAGES_TABLE_NAME")

    try:
        table = dynamodb_resource.Table(table_name)
        table.load()
    except ClientError:
        table = _create_dynamodb_table(dynamodb_resource)
        table.wait_until_exists()

    return table


@pytest.fixture
def dynamodb_put_item(dynamodb_table) -> Callable[[dict[str, Any]], dict[str, Any]]:
    """
    Helper to insert a single item into DynamoDB.

    Usage:
        item = dynamodb_put_item({"ImageName": "cat.png", "Bucket": "b"})
    """

    def _put(item: dict[str, Any]) -> dict[str, Any]:
        dynamodb_table.put_item(Item=item)
        return item

    return _put


@pytest.fixture
def dynamodb_get_item(dynamodb_table) -> Callable[[str], dict[str, Any] | None]:
    """
    Helper to get a single item from DynamoDB.

    Usage:
        item = dynamodb_get_item("cat.png")
    """

    def _get(name: str) -> dict[str, Any] | None:
        response: dict[str, Any] = dynamodb_table.get_item(Key={"ImageName": name})
        item: dict[str, Any] | None = response.get("Item")
        return item

    return _get


@pytest.fixture(scope="function")
def idempotency_table(dynamodb_resource):
    """Create the table that records which creation notices were sent."""
    table = dynamodb_resource.create_table(
        TableName=os.getenv("IDEMPOTENCY_TABLE_NAME", IDEMPOTENCY_TABLE),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
    )
    table.wait_until_exists()
    return table


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    """S3 client for bucket operations."""
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client) -> str:
    """Create the image bucket and return its name."""
    bucket_name = IMAGE_BUCKET

    try:
        s3_client.head_bucket(Bucket=bucket_name)
    except ClientError:
        s3_client.create_bucket(Bucket=bucket_name)

    return bucket_name


@pytest.fixture
def s3_put_object(s3_client, s3_bucket) -> Callable[[str, bytes], dict[str, Any]]:
    """
    Helper to upload an object to S3.

    Usage:
        response = s3_put_object("my photo.png", image_bytes)
    """

    def _put(key: str, body: bytes) -> dict[str, Any]:
        return s3_client.put_object(Bucket=s3_bucket, Key=key, Body=body)

    return _put


@pytest.fixture(scope="function")
def ses_client(aws_mock):
    """SES client with the sender identity verified."""
    client = boto3.client("ses", region_name=os.getenv("SES_REGION"))
    client.verify_email_identity(EmailAddress=os.environ["SES_EMAIL_FROM"])
    return client


@pytest.fixture
def ses_sent_count(ses_client) -> Callable[[], int]:
    """Helper returning how many emails moto has accepted."""

    def _count() -> int:
        quota = ses_client.get_send_quota()
        return int(quota["SentLast24Hours"])

    return _count


@pytest.fixture(scope="function")
def sqs_client(aws_mock):
    return boto3.client("sqs", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def sqs_queues(sqs_client) -> dict[str, str]:
    """Create the image-process and rejection queues and return their URLs."""
    image_queue = sqs_client.create_queue(
        QueueName="image-process-queue",
        Attributes={"VisibilityTimeout": "0"},
    )
    rejection_queue = sqs_client.create_queue(QueueName="rejection-queue")

    return {
        "image": image_queue["QueueUrl"],
        "rejection": rejection_queue["QueueUrl"],
    }


@pytest.fixture
def sqs_receive_bodies(sqs_client) -> Callable[[str], list[str]]:
    """Helper to drain every visible message body from a queue."""

    def _receive(queue_url: str) -> list[str]:
        response = sqs_client.receive_message(QueueUrl=queue_url, MaxNumberOfMessages=10)
        return [message["Body"] for message in response.get("Messages", [])]

    return _receive


@pytest.fixture
def sample_image_binary() -> bytes:
    """Sample binary image data (1x1 PNG)."""
    import base64

    png_base64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
    return base64.b64decode(png_base64)


# ============================================================================
# Event builders
# ============================================================================


@pytest.fixture
def storage_event() -> Callable[..., dict[str, Any]]:
    """
    Build an S3 event notification payload.

    Usage:
        payload = storage_event("ObjectCreated:Put", "my+photo.png")
    """

    def _build(
        event_name: str,
        key: str,
        bucket: str = IMAGE_BUCKET,
    ) -> dict[str, Any]:
        return {
            "Records": [
                {
                    "eventVersion": "2.1",
                    "eventSource": "aws:s3",
                    "eventName": event_name,
                    "s3": {
                        "bucket": {"name": bucket},
                        "object": {"key": key, "size": 68},
                    },
                }
            ]
        }

    return _build


@pytest.fixture
def topic_record() -> Callable[..., dict[str, Any]]:
    """Build one SNS-subscription invocation record wrapping `message`."""

    def _build(
        message: dict[str, Any] | str,
        attributes: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return {
            "EventSource": "aws:sns",
            "Sns": {
                "Type": "Notification",
                "MessageId": "sns-message-1",
                "TopicArn": "arn:aws:sns:us-east-1:123456789012:image-topic",
                "Message": message if isinstance(message, str) else json.dumps(message),
                "MessageAttributes": {
                    name: {"Type": "String", "Value": value}
                    for name, value in (attributes or {}).items()
                },
            },
        }

    return _build


@pytest.fixture
def queue_body() -> Callable[[dict[str, Any]], str]:
    """Wrap a storage payload the way an SNS-to-SQS subscription delivers it."""

    def _build(payload: dict[str, Any]) -> str:
        return json.dumps(
            {
                "Type": "Notification",
                "MessageId": "sns-message-1",
                "Message": json.dumps(payload),
            }
        )

    return _build


@pytest.fixture
def sqs_record() -> Callable[..., dict[str, Any]]:
    """Build one SQS event-source record."""

    def _build(body: str, *, message_id: str = "msg-1", receive_count: int = 1) -> dict[str, Any]:
        return {
            "messageId": message_id,
            "receiptHandle": f"receipt-{message_id}",
            "body": body,
            "attributes": {
                "ApproximateReceiveCount": str(receive_count),
                "SentTimestamp": "1700000000000",
            },
            "messageAttributes": {},
            "md5OfBody": "",
            "eventSource": "aws:sqs",
            "eventSourceARN": "arn:aws:sqs:us-east-1:123456789012:image-process-queue",
            "awsRegion": "us-east-1",
        }

    return _build


@pytest.fixture
def stream_record() -> Callable[..., dict[str, Any]]:
    """Build one DynamoDB stream record for the images table."""

    def _build(operation: str, name: str, sequence_number: str) -> dict[str, Any]:
        image = {"ImageName": {"S": name}, "Bucket": {"S": IMAGE_BUCKET}}
        change: dict[str, Any] = {
            "Keys": {"ImageName": {"S": name}},
            "SequenceNumber": sequence_number,
            "StreamViewType": "NEW_AND_OLD_IMAGES",
        }
        if operation in ("MODIFY", "REMOVE"):
            change["OldImage"] = image
        if operation in ("INSERT", "MODIFY"):
            change["NewImage"] = image

        return {
            "eventID": f"event-{sequence_number}",
            "eventName": operation,
            "eventSource": "aws:dynamodb",
            "dynamodb": change,
        }

    return _build
