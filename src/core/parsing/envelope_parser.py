"""Decoding of nested provider envelopes into normalized events.

Inbound events arrive in one of three shapes:

(a) queue message -> topic notification -> storage event list
(b) topic notification -> storage event list (or an attribute-only message)
(c) change-stream record (flat)

Each wrapper layer has its own decode stage. Every stage raises
`ParseError` for malformed JSON, a missing nested field or an unknown
event type, so callers can isolate the single offending event.
Object keys are percent-decoded (with `+` restored to a space) exactly
once, here, before any filter or handler sees them.
"""

import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any
from urllib.parse import unquote_plus

from aws_lambda_powertools import Logger
from boto3.dynamodb.types import TypeDeserializer
from pydantic import ValidationError as PydanticValidationError

from core.models.errors import ParseError
from core.models.events import ChangeOperation, ChangeRecord, EventKind, NormalizedEvent
from core.utils.constants import (
    ERROR_CODE_MALFORMED_JSON,
    ERROR_CODE_MISSING_FIELD,
    ERROR_CODE_UNKNOWN_EVENT_TYPE,
    EVENT_ATTRIBUTE_CHANGED,
    EVENT_OBJECT_CREATED_PREFIX,
    EVENT_OBJECT_REMOVED_PREFIX,
)

logger = Logger(UTC=True)

ParsedEvent = NormalizedEvent | ChangeRecord

_deserializer = TypeDeserializer()


# ----------------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------------


def _load_json(raw: bytes | str | Mapping[str, Any], *, layer: str) -> dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)

    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        raise ParseError(
            message=f"Malformed JSON in {layer}",
            error_code=ERROR_CODE_MALFORMED_JSON,
            details={"layer": layer},
        ) from exc

    if not isinstance(decoded, dict):
        raise ParseError(
            message=f"Expected a JSON object in {layer}",
            error_code=ERROR_CODE_MALFORMED_JSON,
            details={"layer": layer, "type": type(decoded).__name__},
        )
    return decoded


def _require(container: Any, field: str, *, layer: str) -> Any:
    if not isinstance(container, Mapping) or field not in container or container[field] is None:
        raise ParseError(
            message=f"Missing required field '{field}' in {layer}",
            error_code=ERROR_CODE_MISSING_FIELD,
            details={"layer": layer, "field": field},
        )
    return container[field]


def decode_object_key(encoded: str) -> str:
    """Decode a storage notification key: `+` is a space, then percent escapes.

    Raises:
        ParseError: If the escapes do not form valid UTF-8
    """
    try:
        return unquote_plus(encoded, errors="strict")
    except UnicodeDecodeError as exc:
        raise ParseError(
            message="Object key is not valid percent-encoded UTF-8",
            details={"key": encoded},
        ) from exc


def _decode_each(
    records: Sequence[Any],
    decode: Callable[[Any], list[Any]],
    *,
    layer: str,
) -> list[Any]:
    """Decode records one at a time so a malformed record never drops its siblings.

    A record that fails is logged and skipped. The first ParseError is raised
    only when every record failed.
    """
    decoded: list[Any] = []
    errors: list[ParseError] = []

    for index, record in enumerate(records):
        try:
            decoded.extend(decode(record))
        except ParseError as exc:
            logger.warning(
                "Skipping malformed record",
                extra={"layer": layer, "index": index, "error": exc.message, "details": exc.details},
            )
            errors.append(exc)

    if errors and len(errors) == len(records):
        raise errors[0]
    return decoded


def _kind_for(event_name: str) -> EventKind:
    if event_name.startswith(EVENT_OBJECT_CREATED_PREFIX):
        return EventKind.OBJECT_CREATED
    if event_name.startswith(EVENT_OBJECT_REMOVED_PREFIX):
        return EventKind.OBJECT_REMOVED

    raise ParseError(
        message=f"Unrecognized storage event type '{event_name}'",
        error_code=ERROR_CODE_UNKNOWN_EVENT_TYPE,
        details={"event_name": event_name},
    )


def _message_attributes(raw_attributes: Any) -> dict[str, str]:
    """Flatten topic message attributes to name -> string value.

    Accepts both the notification JSON form ({"Type", "Value"}) and the
    queue/SDK form ({"DataType", "StringValue"}).
    """
    if not raw_attributes:
        return {}
    if not isinstance(raw_attributes, Mapping):
        raise ParseError(
            message="Message attributes must be an object",
            details={"layer": "topic notification"},
        )

    attributes: dict[str, str] = {}
    for name, attribute in raw_attributes.items():
        if isinstance(attribute, Mapping):
            value = attribute.get("Value", attribute.get("StringValue"))
        else:
            value = attribute
        if value is not None:
            attributes[str(name)] = str(value)
    return attributes


# ----------------------------------------------------------------------------
# Decode stages
# ----------------------------------------------------------------------------


def decode_storage_records(payload: Mapping[str, Any]) -> list[NormalizedEvent]:
    """Decode a storage event payload ({"Records": [...]}) into events.

    A payload without `Records` (e.g. a storage test event) yields nothing.
    Malformed records are skipped unless none of the records decode.
    """
    records = payload.get("Records")
    if records is None:
        logger.debug("Storage payload has no records", extra={"keys": sorted(payload)})
        return []
    if not isinstance(records, list):
        raise ParseError(
            message="Storage event 'Records' must be a list",
            details={"layer": "storage event"},
        )

    return _decode_each(
        records,
        lambda record: [decode_storage_record(record)],
        layer="storage event",
    )


def decode_storage_record(record: Mapping[str, Any]) -> NormalizedEvent:
    """Decode one storage event record."""
    layer = "storage event"
    event_name = _require(record, "eventName", layer=layer)
    if not isinstance(event_name, str):
        raise ParseError(
            message="Storage event name must be a string",
            error_code=ERROR_CODE_UNKNOWN_EVENT_TYPE,
            details={"layer": layer},
        )

    kind = _kind_for(event_name)
    s3 = _require(record, "s3", layer=layer)
    bucket = _require(_require(s3, "bucket", layer=layer), "name", layer=layer)
    encoded_key = _require(_require(s3, "object", layer=layer), "key", layer=layer)

    try:
        return NormalizedEvent(
            kind=kind,
            event_name=event_name,
            object_key=decode_object_key(str(encoded_key)),
            container_id=str(bucket),
        )
    except PydanticValidationError as exc:
        raise ParseError(
            message="Storage event has an invalid object key",
            details={"layer": layer, "event_name": event_name},
        ) from exc


def decode_topic_notification(notification: Mapping[str, Any]) -> list[NormalizedEvent]:
    """Decode a topic notification into events.

    The notification `Message` is either a storage event payload or, for
    metadata changes, a JSON object with `name` and `description` that is
    routed by its message attributes.
    """
    layer = "topic notification"
    raw_message = _require(notification, "Message", layer=layer)
    message = _load_json(raw_message, layer="topic message")
    attributes = _message_attributes(notification.get("MessageAttributes"))

    if "Records" in message:
        return decode_storage_records(message)

    if not attributes:
        logger.debug("Topic message carries no records or attributes")
        return []

    name = _require(message, "name", layer="attribute message")
    description = message.get("description")

    try:
        return [
            NormalizedEvent(
                kind=EventKind.ATTRIBUTE_CHANGED,
                event_name=EVENT_ATTRIBUTE_CHANGED,
                object_key=str(name),
                attributes=attributes,
                description=None if description is None else str(description),
            )
        ]
    except PydanticValidationError as exc:
        raise ParseError(
            message="Attribute message has an invalid image name",
            details={"layer": "attribute message"},
        ) from exc


def decode_queue_body(body: bytes | str) -> list[NormalizedEvent]:
    """Decode a queue message body that wraps a topic notification."""
    notification = _load_json(body, layer="queue message")
    return decode_topic_notification(notification)


def decode_change_record(record: Mapping[str, Any]) -> ChangeRecord:
    """Decode one change-stream record into a ChangeRecord."""
    layer = "change record"
    event_name = _require(record, "eventName", layer=layer)

    try:
        operation = ChangeOperation(event_name)
    except ValueError as exc:
        raise ParseError(
            message=f"Unrecognized change operation '{event_name}'",
            error_code=ERROR_CODE_UNKNOWN_EVENT_TYPE,
            details={"event_name": event_name},
        ) from exc

    change = _require(record, "dynamodb", layer=layer)
    keys = _require(change, "Keys", layer=layer)
    sequence_number = change.get("SequenceNumber") or record.get("eventID")
    if sequence_number is None:
        raise ParseError(
            message="Change record has no sequence number",
            error_code=ERROR_CODE_MISSING_FIELD,
            details={"layer": layer},
        )

    try:
        key_values = [_deserializer.deserialize(value) for value in keys.values()]
        old_image = _deserialize_image(change.get("OldImage"))
        new_image = _deserialize_image(change.get("NewImage"))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ParseError(
            message="Change record contains malformed attribute values",
            details={"layer": layer},
        ) from exc

    if len(key_values) != 1:
        raise ParseError(
            message="Change record must have exactly one key attribute",
            details={"layer": layer, "key_count": len(key_values)},
        )

    return ChangeRecord(
        sequence_number=str(sequence_number),
        operation=operation,
        key=str(key_values[0]),
        old_image=old_image,
        new_image=new_image,
    )


def _deserialize_image(image: Any) -> dict[str, Any] | None:
    if image is None:
        return None
    return {name: _deserializer.deserialize(value) for name, value in image.items()}


# ----------------------------------------------------------------------------
# Entry points
# ----------------------------------------------------------------------------


def parse_queue_message(body: bytes | str) -> list[NormalizedEvent]:
    """Parse a buffered-queue message body.

    The body is either a topic notification (shape a) or an event the
    in-process router enqueued directly, already normalized.
    """
    payload = _load_json(body, layer="queue message")
    if "Message" in payload:
        return decode_topic_notification(payload)

    try:
        return [NormalizedEvent.model_validate(payload)]
    except PydanticValidationError as exc:
        raise ParseError(
            message="Queue message is neither a notification nor a normalized event",
            error_code=ERROR_CODE_UNKNOWN_EVENT_TYPE,
            details={"layer": "queue message", "keys": sorted(payload)[:10]},
        ) from exc


def parse_topic_record(record: Mapping[str, Any]) -> list[NormalizedEvent]:
    """Parse one topic-subscription invocation record (shape b)."""
    return decode_topic_notification(_require(record, "Sns", layer="topic record"))


def parse_change_record(record: Mapping[str, Any]) -> ChangeRecord:
    """Parse one change-stream record (shape c)."""
    return decode_change_record(record)


def parse(raw: bytes | str | Mapping[str, Any]) -> list[ParsedEvent]:
    """Parse any supported envelope, detecting its shape.

    Returns:
        The normalized events (or change records) the envelope contains

    Raises:
        ParseError: If the envelope is malformed or of an unknown shape
    """
    envelope = _load_json(raw, layer="envelope")

    if "dynamodb" in envelope and "eventName" in envelope:
        return [decode_change_record(envelope)]

    if "Sns" in envelope:
        return list(parse_topic_record(envelope))

    if "body" in envelope and "receiptHandle" in envelope:
        return list(decode_queue_body(envelope["body"]))

    if "Message" in envelope:
        return list(decode_topic_notification(envelope))

    if "Records" in envelope:
        records = envelope["Records"] or []
        if not isinstance(records, list):
            raise ParseError(
                message="Envelope 'Records' must be a list",
                details={"layer": "envelope"},
            )

        return _decode_each(records, parse, layer="envelope")

    if "s3" in envelope and "eventName" in envelope:
        return [decode_storage_record(envelope)]

    raise ParseError(
        message="Unrecognized envelope shape",
        error_code=ERROR_CODE_UNKNOWN_EVENT_TYPE,
        details={"keys": sorted(envelope)[:10]},
    )
