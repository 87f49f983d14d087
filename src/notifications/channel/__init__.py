"""Sender registry: pluggable customer messaging providers.

Uses the fake WhatsApp sender by default; the WhatsApp Cloud API sender is
selected with DISPATCHLINE_SENDER_ADAPTER=whatsapp.
"""

from protean.exceptions import ConfigurationError

from notifications.channel.port import NotificationSender
from shared.config import get_settings

_sender_instance: NotificationSender | None = None


def get_sender() -> NotificationSender:
    """Return the configured notification sender (singleton)."""
    global _sender_instance
    if _sender_instance is None:
        settings = get_settings()
        if settings.sender_adapter == "fake":
            from notifications.channel.fake_whatsapp import FakeWhatsAppSender

            _sender_instance = FakeWhatsAppSender()
        elif settings.sender_adapter == "whatsapp":
            from notifications.channel.whatsapp_cloud import WhatsAppCloudSender

            if not settings.whatsapp_api_url or not settings.whatsapp_api_token:
                raise ConfigurationError("whatsapp_api_url and whatsapp_api_token are required")
            _sender_instance = WhatsAppCloudSender(
                settings.whatsapp_api_url,
                settings.whatsapp_api_token,
                timeout=settings.sender_timeout_seconds,
            )
        else:
            raise ConfigurationError(f"Unknown sender adapter: {settings.sender_adapter}")
    return _sender_instance


def set_sender(sender: NotificationSender) -> None:
    """Replace the notification sender (useful for testing)."""
    global _sender_instance
    _sender_instance = sender


def reset_sender():
    """Reset the sender singleton (useful for testing)."""
    global _sender_instance
    _sender_instance = None
