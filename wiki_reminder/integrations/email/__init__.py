"""Email delivery integration (MailerSend)."""

from .client import EmailClient, EmailConfig, EmailDeliveryError

__all__ = ["EmailClient", "EmailConfig", "EmailDeliveryError"]
