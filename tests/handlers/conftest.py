from types import SimpleNamespace

import pytest

from core.infrastructure.memory.metadata import InMemoryImageMetadata
from core.infrastructure.memory.storage import InMemoryImageStorage
from core.infrastructure.memory.transport import InMemoryNotificationTransport
from core.models.errors import NotificationError
from core.notifications.dispatcher import NotificationDispatcher


@pytest.fixture
def lambda_context():
    return SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:123456789012:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )


@pytest.fixture
def metadata() -> InMemoryImageMetadata:
    return InMemoryImageMetadata()


@pytest.fixture
def storage() -> InMemoryImageStorage:
    return InMemoryImageStorage()


@pytest.fixture
def transport() -> InMemoryNotificationTransport:
    return InMemoryNotificationTransport()


@pytest.fixture
def dispatcher(transport) -> NotificationDispatcher:
    return NotificationDispatcher(
        transport=transport,
        from_address="sender@example.com",
        to_address="operator@example.com",
    )


class _BrokenTransport:
    def send(self, **_) -> str:
        raise NotificationError(message="SES unavailable")


@pytest.fixture
def broken_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(
        transport=_BrokenTransport(),
        from_address="sender@example.com",
        to_address="operator@example.com",
    )
