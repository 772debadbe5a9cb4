"""Thin adapter for Amazon SQS queue operations."""

from typing import Any, Protocol

import boto3


class _Boto3SQSClient(Protocol):
    """Internal typing for boto3 SQS client (AWS-facing only)."""

    def send_message(self, *, QueueUrl: str, MessageBody: str) -> dict[str, Any]: ...

    def receive_message(self, **kwargs: Any) -> dict[str, Any]: ...

    def delete_message(self, *, QueueUrl: str, ReceiptHandle: str) -> Any: ...


class SQSAdapter:
    """Low-level SQS operations bound to one queue URL.

    Raises boto3 exceptions - caught by the delivery queue implementation.
    """

    def __init__(
        self,
        *,
        queue_url: str,
        region_name: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self.queue_url = queue_url
        self._client: _Boto3SQSClient = boto3.client(
            "sqs",
            endpoint_url=endpoint_url,
            region_name=region_name,
        )

    def send_message(self, *, body: str) -> str:
        response = self._client.send_message(QueueUrl=self.queue_url, MessageBody=body)
        return str(response["MessageId"])

    def receive_messages(self, *, max_messages: int, wait_seconds: int) -> list[dict[str, Any]]:
        response = self._client.receive_message(
            QueueUrl=self.queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_seconds,
            AttributeNames=["ApproximateReceiveCount"],
        )
        messages: list[dict[str, Any]] = response.get("Messages", [])
        return messages

    def delete_message(self, *, receipt_handle: str) -> None:
        self._client.delete_message(QueueUrl=self.queue_url, ReceiptHandle=receipt_handle)

