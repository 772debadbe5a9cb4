"""Abstract contract for outbound notification delivery."""

from abc import ABC, abstractmethod


class NotificationTransport(ABC):
    """Sends a single formatted message to one recipient."""

    @abstractmethod
    def send(
        self,
        *,
        from_address: str,
        to_address: str,
        subject: str,
        html_body: str,
    ) -> str:
        """Send a message and return a transport message id.

        Raises:
            NotificationError: If the transport rejects the message
        """
