"""
Common decorators for event-source Lambda handlers.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable
from functools import wraps
from typing import Any

from aws_lambda_powertools import Logger

from core.models.errors import DependencyError, PipelineError

logger = Logger(service="event-source-handler", UTC=True)

JsonDict = dict[str, Any]


def _record_count(event: Any) -> int | None:
    if isinstance(event, dict) and isinstance(event.get("Records"), list):
        return len(event["Records"])
    return None


def _log_error(
    message: str,
    *,
    handler_name: str,
    request_id: str | None,
    exc: Exception,
    level: str = "warning",
) -> None:
    """
    Log error with consistent structure and full context.

    Args:
        message: Log message
        handler_name: Name of the handler function
        request_id: AWS request ID
        exc: Exception that was raised
        level: Log level ('warning' or 'exception')
    """
    log_extra = {
        "handler": handler_name,
        "request_id": request_id,
        "error": str(exc),
        "error_type": type(exc).__name__,
    }

    if isinstance(exc, PipelineError):
        log_extra["error_code"] = exc.error_code
        log_extra["details"] = exc.details

    if level == "exception":
        logger.exception(message, extra=log_extra)
    else:
        log_extra["traceback"] = traceback.format_exc()
        logger.warning(message, extra=log_extra)


def event_source_handler(
    func: Callable[..., JsonDict | None],
) -> Callable[..., JsonDict | None]:
    """
    Decorator for queue, topic and stream Lambda handlers.

    Provides:
    - Request ID tracking and structured invocation logging
    - Structured error logging with the domain error code

    Errors are always re-raised: the event source owns retries, so a
    failed invocation must fail.

    Example:
        @event_source_handler
        def handler(event, context):
            return {"batchItemFailures": []}
    """

    @wraps(func)
    def wrapper(event: Any, context: Any) -> JsonDict | None:
        request_id = getattr(context, "aws_request_id", None)

        logger.info(
            "Received event",
            extra={
                "handler": func.__module__,
                "request_id": request_id,
                "function_name": getattr(context, "function_name", None),
                "record_count": _record_count(event),
            },
        )

        try:
            return func(event, context)

        except DependencyError as exc:
            _log_error(
                "Dependency failure in handler",
                handler_name=func.__module__,
                request_id=request_id,
                exc=exc,
                level="exception",
            )
            raise

        except PipelineError as exc:
            _log_error(
                "Pipeline error in handler",
                handler_name=func.__module__,
                request_id=request_id,
                exc=exc,
            )
            raise

        except Exception as exc:
            _log_error(
                "Unexpected error in handler",
                handler_name=func.__module__,
                request_id=request_id,
                exc=exc,
                level="exception",
            )
            raise

    return wrapper
