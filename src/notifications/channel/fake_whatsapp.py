"""Fake WhatsApp sender: records sent messages for testing."""

from uuid import uuid4

from notifications.channel.port import NotificationSender, SendResult


class FakeWhatsAppSender(NotificationSender):
    """Sender that records messages in memory for test assertions."""

    def __init__(self):
        self.sent_messages: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "WhatsApp delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "WhatsApp delivery failed"):
        """Configure the fake sender behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, phone_number: str, text: str) -> SendResult:
        if not self.should_succeed:
            return SendResult(succeeded=False, error=self.failure_reason)

        message_id = f"wamid-{uuid4().hex[:12]}"
        self.sent_messages.append(
            {
                "message_id": message_id,
                "to": phone_number,
                "text": text,
            }
        )
        return SendResult(succeeded=True, provider_message_id=message_id, provider_response="accepted")

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent_messages.clear()
        self.should_succeed = True
        self.failure_reason = "WhatsApp delivery failed"
