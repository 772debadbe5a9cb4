"""
Lambda handler emailing a notice for each newly created image.
"""

from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import ParseError
from core.parsing.envelope_parser import parse_topic_record
from core.routing.subscriptions import CREATION_NOTIFIER_FILTER
from core.utils.constants import METRIC_NOTIFICATIONS_SENT, METRICS_NAMESPACE
from core.utils.decorators import event_source_handler
from handlers.pipeline import build_dispatcher, build_idempotency_store

from .service import CreationNotifier

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

settings = load_settings()


@lru_cache(maxsize=1)
def _notifier() -> CreationNotifier:
    return CreationNotifier(
        dispatcher=build_dispatcher(settings),
        persistence_store=build_idempotency_store(settings),
    )


@event_source_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Send one creation notice per `ObjectCreated:Put` event. Best-effort.

    A redelivered event is recognised in the idempotency table and does not
    send a second notice.
    """
    notifier = _notifier()
    sent = 0

    for record in event.get("Records", []):
        try:
            events = parse_topic_record(record)
        except ParseError as exc:
            logger.error(
                "Skipping unparseable topic record",
                extra={"error": exc.message, "details": exc.details},
            )
            continue

        for normalized in events:
            if CREATION_NOTIFIER_FILTER.matches(normalized) and notifier.notify(normalized):
                sent += 1

    if sent:
        metrics.add_metric(name=METRIC_NOTIFICATIONS_SENT, unit=MetricUnit.Count, value=sent)
    return {"sent": sent}
