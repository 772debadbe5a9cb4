"""
Lambda handler applying description changes to image records.
"""

from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import ParseError
from core.parsing.envelope_parser import parse_topic_record
from core.routing.subscriptions import METADATA_UPDATE_FILTER
from core.utils.constants import METRICS_NAMESPACE
from core.utils.decorators import event_source_handler
from handlers.pipeline import build_metadata_repository

from .service import MetadataUpdateService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

settings = load_settings()


@lru_cache(maxsize=1)
def _service() -> MetadataUpdateService:
    return MetadataUpdateService(metadata=build_metadata_repository(settings))


@event_source_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Update descriptions from topic messages carrying `comment_type=Description`.

    Expected topic message:
    {
        "name": "photo.png",
        "description": "My holiday photo"
    }

    An update for an image that does not exist raises ValidationError and
    the invocation fails.
    """
    service = _service()
    updated = 0

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
            if not METADATA_UPDATE_FILTER.matches(normalized):
                logger.debug("Event filtered out", extra={"attributes": normalized.attributes})
                continue

            service.update(normalized)
            updated += 1

    return {"updated": updated}
