"""Thin adapter for sending email through Amazon SES."""

from typing import Any, Protocol

import boto3

from core.utils.constants import NOTIFICATION_CHARSET


class _Boto3SESClient(Protocol):
    """Internal typing for boto3 SES client (AWS-facing only)."""

    def send_email(
        self,
        *,
        Source: str,
        Destination: dict[str, Any],
        Message: dict[str, Any],
    ) -> dict[str, Any]: ...


class SESAdapterProtocol(Protocol):
    """Minimal SES adapter protocol (transport-facing)."""

    def send_email(
        self,
        *,
        source: str,
        to_address: str,
        subject: str,
        html_body: str,
    ) -> str: ...


class SESAdapter:
    """Low-level SES operations (mechanical, no error handling)."""

    def __init__(
        self,
        *,
        region_name: str,
        endpoint_url: str | None = None,
    ) -> None:
        """Create the SES client for the configured region."""
        self._client: _Boto3SESClient = boto3.client(
            "ses",
            endpoint_url=endpoint_url,
            region_name=region_name,
        )

    def send_email(
        self,
        *,
        source: str,
        to_address: str,
        subject: str,
        html_body: str,
    ) -> str:
        """Send a single HTML email and return the SES message id.

        Raises boto3 exceptions - caught by domain implementation.
        """
        response = self._client.send_email(
            Source=source,
            Destination={"ToAddresses": [to_address]},
            Message={
                "Subject": {"Charset": NOTIFICATION_CHARSET, "Data": subject},
                "Body": {
                    "Html": {"Charset": NOTIFICATION_CHARSET, "Data": html_body},
                },
            },
        )
        return str(response.get("MessageId", ""))
