"""
Lambda handler removing metadata for deleted objects.
"""

from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import ParseError
from core.parsing.envelope_parser import parse_topic_record
from core.routing.subscriptions import DELETE_SYNC_FILTER
from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import event_source_handler
from handlers.pipeline import build_metadata_repository

from .service import DeleteSyncService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

settings = load_settings()


@lru_cache(maxsize=1)
def _service() -> DeleteSyncService:
    return DeleteSyncService(metadata=build_metadata_repository(settings))


@event_source_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Delete the metadata record of every removed object in a topic delivery.

    Malformed records are logged and skipped. Store failures propagate so
    the topic redelivers.
    """
    service = _service()
    deleted = 0

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
            if not DELETE_SYNC_FILTER.matches(normalized):
                logger.debug("Event filtered out", extra={"event_name": normalized.event_name})
                continue

            service.delete(normalized)
            deleted += 1

    return {"deleted": deleted}
