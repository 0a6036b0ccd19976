"""Google Chat integration."""

from .cards import GoogleChatCards
from .client import ChatDeliveryError, GoogleChatClient

__all__ = ["ChatDeliveryError", "GoogleChatCards", "GoogleChatClient"]
