"""Formats and sends notification emails."""

from html import escape

from aws_lambda_powertools import Logger

from core.models.notification import NotificationPayload
from core.repositories.notification_transport import NotificationTransport

logger = Logger(UTC=True)


def render_html(payload: NotificationPayload) -> str:
    """Render the notification body. All payload values are HTML-escaped."""
    return (
        "<html>\n"
        "  <body>\n"
        "    <h2>Sent from: </h2>\n"
        "    <ul>\n"
        f'      <li style="font-size:18px">👤 <b>{escape(payload.name)}</b></li>\n'
        f'      <li style="font-size:18px">✉️ <b>{escape(payload.email)}</b></li>\n'
        "    </ul>\n"
        f'    <p style="font-size:18px">{escape(payload.message)}</p>\n'
        "  </body>\n"
        "</html>\n"
    )


class NotificationDispatcher:
    """Sends formatted notifications from one configured sender to one recipient.

    Transport failures propagate as NotificationError; it is up to the
    calling notifier to treat delivery as best-effort.
    """

    def __init__(
        self,
        *,
        transport: NotificationTransport,
        from_address: str,
        to_address: str,
    ) -> None:
        self._transport = transport
        self.from_address = from_address
        self.to_address = to_address

    def dispatch(self, *, subject: str, payload: NotificationPayload) -> str:
        """Render and send one notification, returning the transport message id."""
        logger.debug("Dispatching notification", extra={"subject": subject})
        return self._transport.send(
            from_address=self.from_address,
            to_address=self.to_address,
            subject=subject,
            html_body=render_html(payload),
        )
