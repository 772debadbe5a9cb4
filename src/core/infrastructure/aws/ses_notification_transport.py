"""SES-backed implementation of NotificationTransport."""

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from core.infrastructure.adapters.ses_adapter import SESAdapterProtocol
from core.models.errors import NotificationError
from core.repositories.notification_transport import NotificationTransport

logger = Logger(UTC=True)


class SESNotificationTransport(NotificationTransport):
    """Sends notification emails through Amazon SES."""

    def __init__(self, adapter: SESAdapterProtocol) -> None:
        self._ses = adapter

    def send(
        self,
        *,
        from_address: str,
        to_address: str,
        subject: str,
        html_body: str,
    ) -> str:
        """Send an HTML email.

        Raises:
            NotificationError: If SES rejects the message or is unreachable
        """
        try:
            message_id = self._ses.send_email(
                source=from_address,
                to_address=to_address,
                subject=subject,
                html_body=html_body,
            )
            logger.info(
                "Notification sent",
                extra={"subject": subject, "to": to_address, "message_id": message_id},
            )
            return message_id

        except ClientError as exc:
            logger.error(
                "SES send_email failed",
                extra={
                    "subject": subject,
                    "error_code": exc.response.get("Error", {}).get("Code"),
                },
            )
            raise NotificationError(
                message=f"Unable to send notification '{subject}'",
                details={"subject": subject},
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error sending notification")
            raise NotificationError(
                message=f"Unable to send notification '{subject}'",
                details={"subject": subject},
            ) from exc
