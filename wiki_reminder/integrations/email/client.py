"""
MailerSend email delivery.

Documentation: https://developers.mailersend.com/
"""

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """An email could not be handed to the provider."""
    pass


@dataclass
class EmailConfig:
    """Email delivery configuration."""
    api_token: str | None = None
    api_url: str = "https://api.mailersend.com/v1/email"
    from_email: str = "noreply@example.com"
    from_name: str = "Wiki Reminder"
    timeout_seconds: float = 15.0


class EmailClient:
    """Sends HTML mail through the MailerSend HTTP API."""

    def __init__(
        self,
        config: EmailConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = config
        self._client = httpx.AsyncClient(timeout=config.timeout_seconds, transport=transport)

    @property
    def configured(self) -> bool:
        return bool(self._config.api_token)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        cc: str | None = None,
    ) -> None:
        """Send one message. Raises EmailDeliveryError on any failure."""
        if not self._config.api_token:
            raise EmailDeliveryError("MAILERSEND_API_TOKEN is not configured")

        payload: dict = {
            "from": {"email": self._config.from_email, "name": self._config.from_name},
            "to": [{"email": to}],
            "subject": subject,
            "html": html,
        }
        if cc:
            payload["cc"] = [{"email": cc}]

        try:
            response = await self._client.post(
                self._config.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._config.api_token}"},
            )
        except httpx.TimeoutException as e:
            raise EmailDeliveryError(f"MailerSend timeout sending to {to}") from e
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"MailerSend request failed: {e}") from e

        if response.is_error:
            raise EmailDeliveryError(
                f"MailerSend Error: {response.status_code} - {response.text[:200]}"
            )

        logger.info(f"[EMAIL] To: {to}, Cc: {cc or '-'}, Subject: {subject}")

    async def test_connection(self) -> tuple[bool, str | None]:
        if not self._config.api_token:
            return False, "MAILERSEND_API_TOKEN is not configured"
        return True, None
