"""
Lambda handler consuming the buffered image-process queue.
"""

from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.batch import (
    BatchProcessor,
    EventType,
    process_partial_response,
)
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.delivery.dead_letter import DeadLetterPolicy
from core.delivery.sqs_queue import envelope_from_record
from core.delivery.worker import DeliveryOutcome, QueueDeliveryWorker
from core.utils.constants import (
    ENV_REJECTION_QUEUE_URL,
    METRIC_EVENTS_QUARANTINED,
    METRIC_IMAGES_REGISTERED,
    METRICS_NAMESPACE,
)
from core.utils.decorators import event_source_handler
from handlers.pipeline import build_image_storage, build_metadata_repository, build_sqs_queue

from .service import ImageCreateService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

settings = load_settings(required=(ENV_REJECTION_QUEUE_URL,))
processor = BatchProcessor(event_type=EventType.SQS)


@lru_cache(maxsize=1)
def _worker() -> QueueDeliveryWorker:
    service = ImageCreateService(
        metadata=build_metadata_repository(settings),
        storage=build_image_storage(settings),
    )
    return QueueDeliveryWorker(
        queue=None,
        consumer=service.create,
        quarantine=build_sqs_queue(settings, settings.rejection_queue_url),
        policy=DeadLetterPolicy(max_redeliveries=settings.max_redeliveries),
    )


@tracer.capture_method
def record_handler(record: SQSRecord) -> None:
    """Deliver one queue record; raising marks it as a batch item failure."""
    outcome = _worker().deliver(envelope_from_record(record))

    if outcome is DeliveryOutcome.QUARANTINED:
        metrics.add_metric(name=METRIC_EVENTS_QUARANTINED, unit=MetricUnit.Count, value=1)
    else:
        metrics.add_metric(name=METRIC_IMAGES_REGISTERED, unit=MetricUnit.Count, value=1)


@event_source_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Register images from a batch of queued creation notifications.

    Records that fail under the retry budget are reported back as
    `batchItemFailures` so only they are redelivered. Records that
    exhaust the budget are forwarded to the rejection queue and counted
    as handled.

    Args:
        event: SQS event whose bodies wrap topic notifications
        context: AWS Lambda execution context

    Returns:
        Partial batch response
    """
    return process_partial_response(
        event=event,
        record_handler=record_handler,
        processor=processor,
        context=context,
    )
