"""
Lambda handler reporting quarantined messages from the rejection queue.
"""

from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.data_classes import SQSEvent
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.delivery.sqs_queue import envelope_from_record
from core.utils.constants import METRIC_NOTIFICATIONS_SENT, METRICS_NAMESPACE
from core.utils.decorators import event_source_handler
from handlers.pipeline import build_dispatcher

from .service import QuarantineNotifier

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

settings = load_settings()


@lru_cache(maxsize=1)
def _notifier() -> QuarantineNotifier:
    return QuarantineNotifier(dispatcher=build_dispatcher(settings))


@event_source_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Notify the operator once per quarantined message.

    Quarantined messages are never retried, so every record is reported
    as handled whether or not its notification was sent.
    """
    notifier = _notifier()
    sent = 0

    for record in SQSEvent(event).records:
        if notifier.notify(envelope_from_record(record)):
            sent += 1

    if sent:
        metrics.add_metric(name=METRIC_NOTIFICATIONS_SENT, unit=MetricUnit.Count, value=sent)
    return {"batchItemFailures": []}
