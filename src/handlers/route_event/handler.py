"""
Lambda handler fanning storage and topic events out to subscriptions.
"""

from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import ParseError
from core.models.events import NormalizedEvent
from core.parsing.envelope_parser import parse
from core.routing.topic_router import DeliveryFailedError, TopicRouter
from core.utils.constants import ENV_IMAGE_PROCESS_QUEUE_URL, METRICS_NAMESPACE
from core.utils.decorators import event_source_handler
from handlers.pipeline import build_router

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

settings = load_settings(required=(ENV_IMAGE_PROCESS_QUEUE_URL,))


@lru_cache(maxsize=1)
def _router() -> TopicRouter:
    return build_router(settings)


def _records(event: dict[str, Any]) -> list[Any]:
    records = event.get("Records")
    return records if isinstance(records, list) else [event]


@event_source_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Publish every event in the invocation through the topic router.

    Each record is parsed on its own, so one malformed record never blocks
    its siblings. When a direct-push consumer fails, the remaining events
    are still published and the first failure is raised at the end.
    """
    router = _router()
    published = 0
    failure: DeliveryFailedError | None = None

    for record in _records(event):
        try:
            parsed = parse(record)
        except ParseError as exc:
            logger.error(
                "Skipping unparseable record",
                extra={"error": exc.message, "details": exc.details},
            )
            continue

        for item in parsed:
            if not isinstance(item, NormalizedEvent):
                logger.debug("Change records are not routed", extra={"key": item.key})
                continue

            try:
                router.publish(item)
            except DeliveryFailedError as exc:
                failure = failure or exc
                continue
            published += 1

    if failure is not None:
        raise failure
    return {"published": published}
