"""In-process notification transport that keeps an outbox."""

import uuid
from dataclasses import dataclass

from core.repositories.notification_transport import NotificationTransport


@dataclass(frozen=True)
class SentMessage:
    message_id: str
    from_address: str
    to_address: str
    subject: str
    html_body: str


class InMemoryNotificationTransport(NotificationTransport):
    """Records every message instead of sending it."""

    def __init__(self) -> None:
        self.outbox: list[SentMessage] = []

    def send(
        self,
        *,
        from_address: str,
        to_address: str,
        subject: str,
        html_body: str,
    ) -> str:
        message = SentMessage(
            message_id=uuid.uuid4().hex,
            from_address=from_address,
            to_address=to_address,
            subject=subject,
            html_body=html_body,
        )
        self.outbox.append(message)
        return message.message_id
