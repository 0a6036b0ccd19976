"""
Google Chat incoming-webhook client.

Documentation: https://developers.google.com/chat/how-tos/webhooks
"""

import logging

import httpx

logger = logging.getLogger(__name__)


class ChatDeliveryError(Exception):
    """A chat message could not be posted to the webhook."""
    pass


class GoogleChatClient:
    """Posts card messages to a single Google Chat space webhook."""

    def __init__(
        self,
        webhook_url: str | None,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._webhook_url = webhook_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def configured(self) -> bool:
        return bool(self._webhook_url)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post(self, message: dict) -> bool:
        """
        Post one message.

        Returns False without sending when no webhook is configured.
        Raises ChatDeliveryError when the webhook rejects the message.
        """
        if not self._webhook_url:
            logger.warning("Google Chat webhook URL not configured, message skipped")
            return False

        try:
            response = await self._client.post(self._webhook_url, json=message)
        except httpx.TimeoutException as e:
            raise ChatDeliveryError("Google Chat webhook timeout") from e
        except httpx.HTTPError as e:
            raise ChatDeliveryError(f"Google Chat webhook request failed: {e}") from e

        if response.is_error:
            raise ChatDeliveryError(
                f"Google Chat Webhook Error: {response.status_code} - {response.text[:200]}"
            )
        return True
