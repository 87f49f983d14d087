"""WhatsApp Cloud API sender.

POSTs a text message to ``{api_url}/messages`` with a bearer token. HTTP
and transport errors are turned into a failed SendResult carrying the
provider's error text.
"""

import httpx
import structlog

from notifications.channel.port import NotificationSender, SendResult

logger = structlog.get_logger(__name__)


class WhatsAppCloudSender(NotificationSender):
    def __init__(self, api_url: str, token: str, timeout: float = 10.0, client: httpx.Client | None = None):
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.client = client or httpx.Client(timeout=timeout)

    def send(self, phone_number: str, text: str) -> SendResult:
        payload = {
            "messaging_product": "whatsapp",
            "to": phone_number,
            "type": "text",
            "text": {"body": text},
        }
        try:
            response = self.client.post(
                f"{self.api_url}/messages",
                json=payload,
                headers={"Authorization": f"Bearer {self.token}"},
            )
        except httpx.HTTPError as exc:
            logger.warning("WhatsApp request failed", to=phone_number, error=str(exc))
            return SendResult(succeeded=False, error=f"Transport error: {exc}")

        if response.is_error:
            error = _error_text(response)
            logger.warning("WhatsApp API rejected message", to=phone_number, status_code=response.status_code)
            return SendResult(succeeded=False, provider_response=response.text, error=error)

        try:
            body = response.json()
        except ValueError:
            body = {}
        messages = body.get("messages") if isinstance(body, dict) else None
        message_id = messages[0].get("id") if messages else None
        return SendResult(succeeded=True, provider_message_id=message_id, provider_response=response.text)

    def close(self) -> None:
        self.client.close()


def _error_text(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}: {response.text[:200]}"
