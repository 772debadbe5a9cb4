"""The pipeline's fixed subscription topology."""

from core.delivery.buffered_queue import BufferedDeliveryQueue
from core.models.delivery import DeliveryMode
from core.routing.filters import AllowListMatch, PrefixMatch
from core.routing.topic_router import EventConsumer, Subscription
from core.utils.constants import (
    COMMENT_TYPE_ATTRIBUTE,
    COMMENT_TYPE_DESCRIPTION,
    EVENT_OBJECT_CREATED_PUT,
    EVENT_OBJECT_REMOVED_DELETE,
)

IMAGE_CREATE = "image-create"
DELETE_SYNC = "delete-sync"
METADATA_UPDATE = "metadata-update"
CREATION_NOTIFIER = "creation-notifier"

IMAGE_CREATE_FILTER = PrefixMatch([EVENT_OBJECT_CREATED_PUT])
DELETE_SYNC_FILTER = AllowListMatch([EVENT_OBJECT_REMOVED_DELETE])
METADATA_UPDATE_FILTER = AllowListMatch([COMMENT_TYPE_DESCRIPTION], attribute=COMMENT_TYPE_ATTRIBUTE)
CREATION_NOTIFIER_FILTER = AllowListMatch([EVENT_OBJECT_CREATED_PUT])


def build_default_subscriptions(
    *,
    image_queue: BufferedDeliveryQueue,
    delete_sync: EventConsumer,
    metadata_update: EventConsumer,
    creation_notifier: EventConsumer,
) -> list[Subscription]:
    """Build the reference topology.

    Creations are buffered for the image-create consumer; removals,
    description changes and creation notices are pushed directly.
    """
    return [
        Subscription(
            name=IMAGE_CREATE,
            predicate=IMAGE_CREATE_FILTER,
            mode=DeliveryMode.BUFFERED_QUEUE,
            queue=image_queue,
        ),
        Subscription(
            name=DELETE_SYNC,
            predicate=DELETE_SYNC_FILTER,
            mode=DeliveryMode.DIRECT_PUSH,
            consumer=delete_sync,
        ),
        Subscription(
            name=METADATA_UPDATE,
            predicate=METADATA_UPDATE_FILTER,
            mode=DeliveryMode.DIRECT_PUSH,
            consumer=metadata_update,
        ),
        Subscription(
            name=CREATION_NOTIFIER,
            predicate=CREATION_NOTIFIER_FILTER,
            mode=DeliveryMode.DIRECT_PUSH,
            consumer=creation_notifier,
        ),
    ]
