"""Composition of collaborators, services and the topic router.

Collaborators are constructed explicitly, once per process, and passed
into each service. `build_*` functions wire the AWS-backed pipeline;
`LocalPipeline` wires the same services and routing around in-process
stores for local runs and end-to-end tests.
"""

from collections.abc import Callable
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.idempotency import DynamoDBPersistenceLayer

from core.config import PipelineSettings
from core.delivery.buffered_queue import InMemoryDeliveryQueue
from core.delivery.dead_letter import DeadLetterPolicy
from core.delivery.sqs_queue import SqsDeliveryQueue
from core.delivery.worker import QuarantineDrain, QueueDeliveryWorker
from core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter
from core.infrastructure.adapters.s3_adapter import S3Adapter
from core.infrastructure.adapters.ses_adapter import SESAdapter
from core.infrastructure.adapters.sqs_adapter import SQSAdapter
from core.infrastructure.aws.dynamodb_metadata import DynamoDBImageMetadata
from core.infrastructure.aws.s3_image_storage import S3ImageStorage
from core.infrastructure.aws.ses_notification_transport import SESNotificationTransport
from core.infrastructure.memory.idempotency import InMemoryPersistenceLayer
from core.infrastructure.memory.metadata import InMemoryImageMetadata
from core.infrastructure.memory.storage import InMemoryImageStorage
from core.infrastructure.memory.transport import InMemoryNotificationTransport
from core.models.delivery import DeliveryResult
from core.models.errors import ConfigurationError
from core.models.events import EventKind, NormalizedEvent
from core.notifications.dispatcher import NotificationDispatcher
from core.parsing.envelope_parser import decode_object_key
from core.routing.subscriptions import build_default_subscriptions
from core.routing.topic_router import TopicRouter
from core.streams.checkpoint import InMemoryCheckpointStore
from core.streams.reader import ChangeStreamReader
from core.utils.constants import (
    COMMENT_TYPE_ATTRIBUTE,
    COMMENT_TYPE_DESCRIPTION,
    EVENT_ATTRIBUTE_CHANGED,
    EVENT_OBJECT_CREATED_PUT,
    EVENT_OBJECT_REMOVED_DELETE,
)
from handlers.creation_mailer.service import CreationNotifier
from handlers.deletion_mailer.service import DeletionConfirmationNotifier
from handlers.process_delete.service import DeleteSyncService
from handlers.process_image.service import ImageCreateService
from handlers.process_update.service import MetadataUpdateService
from handlers.rejection_mailer.service import QuarantineNotifier

logger = Logger(UTC=True)


# ============================================================================
# AWS wiring
# ============================================================================


def build_metadata_repository(settings: PipelineSettings) -> DynamoDBImageMetadata:
    return DynamoDBImageMetadata(
        DynamoDBAdapter(
            table_name=settings.table_name,
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
        )
    )


def build_image_storage(settings: PipelineSettings) -> S3ImageStorage:
    return S3ImageStorage(
        S3Adapter(region_name=settings.region, endpoint_url=settings.endpoint_url)
    )


def build_dispatcher(settings: PipelineSettings) -> NotificationDispatcher:
    transport = SESNotificationTransport(
        SESAdapter(region_name=settings.region, endpoint_url=settings.endpoint_url)
    )
    return NotificationDispatcher(
        transport=transport,
        from_address=settings.email_from,
        to_address=settings.email_to,
    )


def build_idempotency_store(settings: PipelineSettings) -> DynamoDBPersistenceLayer:
    return DynamoDBPersistenceLayer(
        table_name=settings.idempotency_table_name,
        boto3_client=boto3.client(
            "dynamodb",
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
        ),
    )


def build_sqs_queue(settings: PipelineSettings, queue_url: str | None) -> SqsDeliveryQueue:
    if not queue_url:
        raise ConfigurationError(message="Queue URL is not configured")

    return SqsDeliveryQueue(
        SQSAdapter(
            queue_url=queue_url,
            region_name=settings.region,
            endpoint_url=settings.endpoint_url,
        )
    )


def build_router(settings: PipelineSettings) -> TopicRouter:
    """Wire the topic router against AWS collaborators."""
    metadata = build_metadata_repository(settings)
    dispatcher = build_dispatcher(settings)

    return TopicRouter(
        build_default_subscriptions(
            image_queue=build_sqs_queue(settings, settings.image_queue_url),
            delete_sync=DeleteSyncService(metadata=metadata).delete,
            metadata_update=MetadataUpdateService(metadata=metadata).update,
            creation_notifier=CreationNotifier(
                dispatcher=dispatcher,
                persistence_store=build_idempotency_store(settings),
            ).notify,
        )
    )


# ============================================================================
# In-process wiring
# ============================================================================


class LocalPipeline:
    """The full pipeline running against in-process stores.

    Object mutations are published through the same router, queue worker,
    quarantine drain and change-stream reader the deployed pipeline uses.
    `pump()` runs the asynchronous stages until nothing is left to do.
    """

    def __init__(
        self,
        *,
        email_from: str = "pipeline@example.com",
        email_to: str = "operator@example.com",
        max_redeliveries: int = 1,
        batch_size: int = 5,
        stream_batch_size: int = 5,
        consumer_wrapper: Callable[[Callable[[NormalizedEvent], Any]], Callable[[NormalizedEvent], Any]]
        | None = None,
    ) -> None:
        self.storage = InMemoryImageStorage()
        self.metadata = InMemoryImageMetadata()
        self.transport = InMemoryNotificationTransport()
        dispatcher = NotificationDispatcher(
            transport=self.transport,
            from_address=email_from,
            to_address=email_to,
        )

        self.image_queue = InMemoryDeliveryQueue(name="image-process", visibility_timeout_seconds=0)
        self.quarantine_queue = InMemoryDeliveryQueue(name="rejection", visibility_timeout_seconds=0)

        self.create_service = ImageCreateService(metadata=self.metadata, storage=self.storage)
        self.delete_service = DeleteSyncService(metadata=self.metadata)
        self.update_service = MetadataUpdateService(metadata=self.metadata)
        self.idempotency_store = InMemoryPersistenceLayer()
        self.creation_notifier = CreationNotifier(
            dispatcher=dispatcher,
            persistence_store=self.idempotency_store,
        )
        self.quarantine_notifier = QuarantineNotifier(dispatcher=dispatcher)
        self.deletion_notifier = DeletionConfirmationNotifier(dispatcher=dispatcher)

        create_consumer: Callable[[NormalizedEvent], Any] = self.create_service.create
        if consumer_wrapper is not None:
            create_consumer = consumer_wrapper(create_consumer)

        self.router = TopicRouter(
            build_default_subscriptions(
                image_queue=self.image_queue,
                delete_sync=self.delete_service.delete,
                metadata_update=self.update_service.update,
                creation_notifier=self.creation_notifier.notify,
            )
        )
        self.worker = QueueDeliveryWorker(
            queue=self.image_queue,
            consumer=create_consumer,
            quarantine=self.quarantine_queue,
            policy=DeadLetterPolicy(max_redeliveries=max_redeliveries),
        )
        self.quarantine_drain = QuarantineDrain(
            queue=self.quarantine_queue,
            consumer=self.quarantine_notifier.notify,
        )
        self.stream_reader = ChangeStreamReader(
            consumer=self.deletion_notifier.handle,
            log=self.metadata.change_log,
            checkpoints=InMemoryCheckpointStore(),
            batch_size=stream_batch_size,
        )
        self._batch_size = batch_size

    # Object-store side ------------------------------------------------------

    def upload(self, *, bucket: str, encoded_key: str, body: bytes) -> list[DeliveryResult]:
        """Store an object and publish its creation notification.

        `encoded_key` is the key as the store's notification carries it.
        """
        key = decode_object_key(encoded_key)
        self.storage.put(bucket=bucket, key=key, body=body)
        return self.router.publish(
            NormalizedEvent(
                kind=EventKind.OBJECT_CREATED,
                event_name=EVENT_OBJECT_CREATED_PUT,
                object_key=key,
                container_id=bucket,
            )
        )

    def remove(self, *, bucket: str, encoded_key: str) -> list[DeliveryResult]:
        key = decode_object_key(encoded_key)
        self.storage.delete(bucket=bucket, key=key)
        return self.router.publish(
            NormalizedEvent(
                kind=EventKind.OBJECT_REMOVED,
                event_name=EVENT_OBJECT_REMOVED_DELETE,
                object_key=key,
                container_id=bucket,
            )
        )

    def change_description(self, *, name: str, description: str) -> list[DeliveryResult]:
        return self.router.publish(
            NormalizedEvent(
                kind=EventKind.ATTRIBUTE_CHANGED,
                event_name=EVENT_ATTRIBUTE_CHANGED,
                object_key=name,
                attributes={COMMENT_TYPE_ATTRIBUTE: COMMENT_TYPE_DESCRIPTION},
                description=description,
            )
        )

    # Asynchronous stages ----------------------------------------------------

    def pump(self, *, max_rounds: int = 10) -> None:
        """Run queue, quarantine and stream consumers until idle."""
        for _ in range(max_rounds):
            outcome = self.worker.run_once(batch_size=self._batch_size, max_wait_seconds=0)
            reported = self.quarantine_drain.run_once(
                batch_size=self._batch_size,
                max_wait_seconds=0,
            )
            streamed = self.stream_reader.drain()

            idle = (
                not (outcome.succeeded or outcome.retried or outcome.quarantined)
                and reported == 0
                and streamed.last_sequence is None
            )
            if idle and len(self.image_queue) == 0:
                return

        logger.warning("Pipeline still busy after pump", extra={"max_rounds": max_rounds})
