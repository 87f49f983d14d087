"""Notification sender port: abstract interface for customer messaging providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SendResult:
    """Result of a message send attempt."""

    succeeded: bool
    provider_message_id: str | None = None
    provider_response: str | None = None
    error: str | None = None


class NotificationSender(ABC):
    """Abstract interface for message dispatch adapters."""

    @abstractmethod
    def send(self, phone_number: str, text: str) -> SendResult:
        """Send a text message to an already-normalized phone number.

        Returns:
            SendResult; transport failures are reported, not raised.
        """
        ...
