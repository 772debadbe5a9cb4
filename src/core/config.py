"""Process configuration loaded from the environment.

Missing required values are a fatal startup error: `load_settings` raises
`ConfigurationError` before any event is handled.
"""

import os
from collections.abc import Mapping

from aws_lambda_powertools import Logger
from pydantic import BaseModel, Field, ValidationError

from core.models.errors import ConfigurationError
from core.utils.constants import (
    DEFAULT_IDEMPOTENCY_TABLE_NAME,
    DEFAULT_IMAGES_TABLE_NAME,
    DEFAULT_MAX_REDELIVERIES,
    DEFAULT_QUEUE_BATCH_SIZE,
    DEFAULT_QUEUE_BATCH_WINDOW_SECONDS,
    DEFAULT_STREAM_BATCH_SIZE,
    ENV_AWS_ENDPOINT_URL,
    ENV_IDEMPOTENCY_TABLE_NAME,
    ENV_IMAGE_PROCESS_QUEUE_URL,
    ENV_IMAGES_TABLE_NAME,
    ENV_MAX_RECEIVE_COUNT,
    ENV_QUEUE_BATCH_SIZE,
    ENV_QUEUE_BATCH_WINDOW_SECONDS,
    ENV_REJECTION_QUEUE_URL,
    ENV_SES_EMAIL_FROM,
    ENV_SES_EMAIL_TO,
    ENV_SES_REGION,
    ENV_STREAM_BATCH_SIZE,
)

logger = Logger(UTC=True)

REQUIRED_VARIABLES = (ENV_SES_EMAIL_FROM, ENV_SES_EMAIL_TO, ENV_SES_REGION)


class PipelineSettings(BaseModel):
    """Validated pipeline settings."""

    email_from: str = Field(..., min_length=1)
    email_to: str = Field(..., min_length=1)
    region: str = Field(..., min_length=1)
    table_name: str = Field(DEFAULT_IMAGES_TABLE_NAME, min_length=1)
    idempotency_table_name: str = Field(DEFAULT_IDEMPOTENCY_TABLE_NAME, min_length=1)
    image_queue_url: str | None = None
    rejection_queue_url: str | None = None
    endpoint_url: str | None = None
    max_redeliveries: int = Field(DEFAULT_MAX_REDELIVERIES, ge=0)
    queue_batch_size: int = Field(DEFAULT_QUEUE_BATCH_SIZE, ge=1)
    queue_batch_window_seconds: int = Field(DEFAULT_QUEUE_BATCH_WINDOW_SECONDS, ge=0)
    stream_batch_size: int = Field(DEFAULT_STREAM_BATCH_SIZE, ge=1)


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    required: tuple[str, ...] = (),
) -> PipelineSettings:
    """Build settings from environment variables.

    Args:
        environ: Variables to read; defaults to the process environment
        required: Further variable names the calling Lambda cannot run without,
            such as the queue URLs it publishes to

    Raises:
        ConfigurationError: If a required variable is unset or a value is invalid
    """
    env = os.environ if environ is None else environ

    missing = [name for name in (*REQUIRED_VARIABLES, *required) if not env.get(name)]
    if missing:
        logger.error("Missing required configuration", extra={"missing": missing})
        raise ConfigurationError(
            message=f"Missing required environment variables: {', '.join(missing)}",
            details={"missing": missing},
        )

    raw: dict[str, str | None] = {
        "email_from": env.get(ENV_SES_EMAIL_FROM),
        "email_to": env.get(ENV_SES_EMAIL_TO),
        "region": env.get(ENV_SES_REGION),
        "table_name": env.get(ENV_IMAGES_TABLE_NAME),
        "idempotency_table_name": env.get(ENV_IDEMPOTENCY_TABLE_NAME),
        "image_queue_url": env.get(ENV_IMAGE_PROCESS_QUEUE_URL),
        "rejection_queue_url": env.get(ENV_REJECTION_QUEUE_URL),
        "endpoint_url": env.get(ENV_AWS_ENDPOINT_URL),
        "max_redeliveries": env.get(ENV_MAX_RECEIVE_COUNT),
        "queue_batch_size": env.get(ENV_QUEUE_BATCH_SIZE),
        "queue_batch_window_seconds": env.get(ENV_QUEUE_BATCH_WINDOW_SECONDS),
        "stream_batch_size": env.get(ENV_STREAM_BATCH_SIZE),
    }

    try:
        return PipelineSettings(**{k: v for k, v in raw.items() if v})
    except ValidationError as exc:
        logger.error("Invalid configuration", extra={"errors": exc.errors()})
        raise ConfigurationError(
            message="Invalid pipeline configuration",
            details={"errors": [err["loc"] for err in exc.errors()]},
        ) from exc
