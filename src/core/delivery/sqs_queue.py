"""SQS-backed implementation of BufferedDeliveryQueue."""

import time

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from botocore.exceptions import ClientError

from core.delivery.buffered_queue import BufferedDeliveryQueue
from core.infrastructure.adapters.sqs_adapter import SQSAdapter
from core.models.delivery import DeliveryEnvelope
from core.models.errors import QueueError
from core.utils.constants import SQS_MAX_BATCH_SIZE, SQS_MAX_WAIT_SECONDS

logger = Logger(UTC=True)


class SqsDeliveryQueue(BufferedDeliveryQueue):
    """Buffered delivery over an SQS queue.

    Redelivery timing is SQS's own visibility timeout; `release` only
    leaves the message to reappear.
    """

    def __init__(self, adapter: SQSAdapter) -> None:
        self._sqs = adapter

    def enqueue(self, body: str) -> str:
        try:
            message_id = self._sqs.send_message(body=body)
        except ClientError as exc:
            logger.error("SQS send_message failed", extra={"queue_url": self._sqs.queue_url})
            raise QueueError(
                message="Unable to enqueue message",
                details={"queue_url": self._sqs.queue_url},
            ) from exc

        logger.debug("Message enqueued", extra={"message_id": message_id})
        return message_id

    def drain(self, batch_size: int, max_wait_seconds: float) -> list[DeliveryEnvelope]:
        deadline = time.monotonic() + max_wait_seconds
        batch: list[DeliveryEnvelope] = []

        try:
            while len(batch) < batch_size:
                remaining = int(max(0, deadline - time.monotonic()))
                messages = self._sqs.receive_messages(
                    max_messages=min(batch_size - len(batch), SQS_MAX_BATCH_SIZE),
                    wait_seconds=min(remaining, SQS_MAX_WAIT_SECONDS),
                )
                batch.extend(self._to_envelope(message) for message in messages)

                if remaining <= 0:
                    break

        except ClientError as exc:
            logger.error("SQS receive_message failed", extra={"queue_url": self._sqs.queue_url})
            raise QueueError(
                message="Unable to receive messages",
                details={"queue_url": self._sqs.queue_url},
            ) from exc

        return batch

    @staticmethod
    def _to_envelope(message: dict) -> DeliveryEnvelope:
        attributes = message.get("Attributes") or {}
        return DeliveryEnvelope(
            message_id=message["MessageId"],
            body=message["Body"],
            receive_count=int(attributes.get("ApproximateReceiveCount", 1)),
            receipt_handle=message["ReceiptHandle"],
        )

    def acknowledge(self, envelope: DeliveryEnvelope) -> None:
        if envelope.receipt_handle is None:
            raise QueueError(
                message="Cannot acknowledge an envelope without a receipt handle",
                details={"message_id": envelope.message_id},
            )

        try:
            self._sqs.delete_message(receipt_handle=envelope.receipt_handle)
        except ClientError as exc:
            logger.error("SQS delete_message failed", extra={"message_id": envelope.message_id})
            raise QueueError(
                message="Unable to acknowledge message",
                details={"message_id": envelope.message_id},
            ) from exc

    def release(self, envelope: DeliveryEnvelope) -> None:
        logger.debug(
            "Message left for redelivery",
            extra={"message_id": envelope.message_id, "receive_count": envelope.receive_count},
        )


def envelope_from_record(record: SQSRecord) -> DeliveryEnvelope:
    """Build an envelope from an SQS event-source record."""
    return DeliveryEnvelope(
        message_id=record.message_id,
        body=record.body,
        receive_count=int(record.attributes.approximate_receive_count or 1),
        receipt_handle=record.receipt_handle,
    )
