"""Global constants used throughout the pipeline.

This module centralizes error codes, event type strings, filter values and
environment variable names so that handlers, the router and the
infrastructure layer agree on one spelling of each.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================

# Envelope / parsing errors
ERROR_CODE_PARSE_FAILED = "PARSE_FAILED"
ERROR_CODE_MALFORMED_JSON = "MALFORMED_JSON"
ERROR_CODE_MISSING_FIELD = "MISSING_FIELD"
ERROR_CODE_UNKNOWN_EVENT_TYPE = "UNKNOWN_EVENT_TYPE"

# Business rule errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_UNSUPPORTED_IMAGE_TYPE = "UNSUPPORTED_IMAGE_TYPE"
ERROR_CODE_RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"

# Dependency errors
ERROR_CODE_DEPENDENCY_FAILED = "DEPENDENCY_FAILED"
ERROR_CODE_S3 = "S3_ERROR"
ERROR_CODE_IMAGE_DOWNLOAD_FAILED = "IMAGE_DOWNLOAD_FAILED"
ERROR_CODE_DYNAMODB = "DYNAMODB_ERROR"
ERROR_CODE_METADATA_PUT_FAILED = "METADATA_PUT_FAILED"
ERROR_CODE_METADATA_FETCH_FAILED = "METADATA_FETCH_FAILED"
ERROR_CODE_METADATA_UPDATE_FAILED = "METADATA_UPDATE_FAILED"
ERROR_CODE_METADATA_DELETE_FAILED = "METADATA_DELETE_FAILED"
ERROR_CODE_NOTIFICATION_FAILED = "NOTIFICATION_FAILED"
ERROR_CODE_QUEUE = "QUEUE_ERROR"

# Configuration
ERROR_CODE_CONFIGURATION = "CONFIGURATION_ERROR"


# ============================================================================
# Event Types
# ============================================================================

EVENT_OBJECT_CREATED_PREFIX = "ObjectCreated:"
EVENT_OBJECT_REMOVED_PREFIX = "ObjectRemoved:"
EVENT_OBJECT_CREATED_PUT = "ObjectCreated:Put"
EVENT_OBJECT_REMOVED_DELETE = "ObjectRemoved:Delete"
EVENT_ATTRIBUTE_CHANGED = "AttributeChanged"

# Message attribute carrying the kind of metadata change
COMMENT_TYPE_ATTRIBUTE = "comment_type"
COMMENT_TYPE_DESCRIPTION = "Description"


# ============================================================================
# Image Constraints
# ============================================================================

ALLOWED_IMAGE_SUFFIXES: Final[tuple[str, ...]] = (".jpeg", ".png")


# ============================================================================
# Metadata Store
# ============================================================================

DEFAULT_IMAGES_TABLE_NAME = "ImagesTable"
ATTR_IMAGE_NAME = "ImageName"
ATTR_BUCKET = "Bucket"
ATTR_DESCRIPTION = "Description"

DEFAULT_IDEMPOTENCY_TABLE_NAME = "IdempotencyTable"
# A creation notice is sent at most once per event within this window
IDEMPOTENCY_EXPIRY_SECONDS = 3600


# ============================================================================
# Delivery
# ============================================================================

DEFAULT_MAX_REDELIVERIES = 1
DEFAULT_QUEUE_BATCH_SIZE = 5
DEFAULT_QUEUE_BATCH_WINDOW_SECONDS = 10
DEFAULT_VISIBILITY_TIMEOUT_SECONDS = 30
DEFAULT_STREAM_BATCH_SIZE = 5
DEFAULT_STREAM_MAX_ATTEMPTS = 2

# SQS caps a single receive at 10 messages and 20 seconds of long polling
SQS_MAX_BATCH_SIZE = 10
SQS_MAX_WAIT_SECONDS = 20


# ============================================================================
# Notifications
# ============================================================================

NOTIFICATION_SENDER_NAME = "The Photo Album"
NOTIFICATION_CHARSET = "UTF-8"

CREATION_EMAIL_SUBJECT = "New Image Upload"
DELETION_EMAIL_SUBJECT = "Image has been deleted"
DELETION_EMAIL_MESSAGE = "Image has been successfully deleted."
# Rejection wording is distinct from the deletion confirmation.
# Nothing from the quarantined body is rendered into the mail.
QUARANTINE_EMAIL_SUBJECT = "Image upload rejected"
QUARANTINE_EMAIL_MESSAGE = (
    "An uploaded image could not be processed and has been rejected."
)


# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_SES_EMAIL_FROM = "SES_EMAIL_FROM"
ENV_SES_EMAIL_TO = "SES_EMAIL_TO"
ENV_SES_REGION = "SES_REGION"
ENV_IMAGES_TABLE_NAME = "IMAGES_TABLE_NAME"
ENV_IDEMPOTENCY_TABLE_NAME = "IDEMPOTENCY_TABLE_NAME"
ENV_IMAGE_PROCESS_QUEUE_URL = "IMAGE_PROCESS_QUEUE_URL"
ENV_REJECTION_QUEUE_URL = "REJECTION_QUEUE_URL"
ENV_MAX_RECEIVE_COUNT = "MAX_RECEIVE_COUNT"
ENV_QUEUE_BATCH_SIZE = "QUEUE_BATCH_SIZE"
ENV_QUEUE_BATCH_WINDOW_SECONDS = "QUEUE_BATCH_WINDOW_SECONDS"
ENV_STREAM_BATCH_SIZE = "STREAM_BATCH_SIZE"

# ============================================================================
# Metrics
# ============================================================================

METRICS_NAMESPACE = "ImageProcessingPipeline"
METRIC_IMAGES_REGISTERED = "ImagesRegistered"
METRIC_EVENTS_QUARANTINED = "EventsQuarantined"
METRIC_EVENTS_SKIPPED = "EventsSkipped"
METRIC_NOTIFICATIONS_SENT = "NotificationsSent"
