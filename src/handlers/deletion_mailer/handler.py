"""
Lambda handler confirming deletions from the metadata change stream.
"""

from functools import lru_cache
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from core.config import load_settings
from core.models.errors import ParseError
from core.models.events import ChangeRecord
from core.parsing.envelope_parser import parse_change_record
from core.streams.reader import ChangeStreamReader
from core.utils.constants import METRIC_EVENTS_SKIPPED, METRICS_NAMESPACE
from core.utils.decorators import event_source_handler
from handlers.pipeline import build_dispatcher

from .service import DeletionConfirmationNotifier

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics(namespace=METRICS_NAMESPACE)

settings = load_settings()


@lru_cache(maxsize=1)
def _reader() -> ChangeStreamReader:
    notifier = DeletionConfirmationNotifier(dispatcher=build_dispatcher(settings))
    return ChangeStreamReader(consumer=notifier.handle, batch_size=settings.stream_batch_size)


@event_source_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Send a confirmation for every REMOVE record in a stream batch.

    The batch is delivered in stream order. A record that cannot be decoded
    or keeps failing is skipped so the shard keeps advancing.
    """
    records: list[ChangeRecord] = []
    skipped = 0

    for raw in event.get("Records", []):
        try:
            records.append(parse_change_record(raw))
        except ParseError as exc:
            logger.error(
                "Skipping unparseable stream record",
                extra={"event_id": raw.get("eventID"), "error": exc.message},
            )
            skipped += 1

    outcome = _reader().deliver(records)
    skipped += len(outcome.skipped)

    if skipped:
        metrics.add_metric(name=METRIC_EVENTS_SKIPPED, unit=MetricUnit.Count, value=skipped)
    return {"batchItemFailures": []}
