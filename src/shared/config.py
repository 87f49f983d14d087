"""Runtime settings, read from ``DISPATCHLINE_*`` environment variables or ``.env``.

The core only reads settings. Tests swap them with ``set_settings()`` and
restore the environment-derived defaults with ``reset_settings()``.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DISPATCHLINE_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    environment: str = "development"

    # Logging
    log_level: str | None = None  # defaults by environment
    log_dir: str = "logs"
    log_json: bool | None = None  # defaults to JSON in production and staging

    # Customer confirmation
    confirmation_delay_hours: float = 2  # reminder becomes due this long after the first message
    reminder_scan_interval_seconds: int = 3600

    # Advance payment offer
    advance_discount_percentage: float = 10
    payment_account_number: str = "0312-3456789"
    payment_account_name: str = "ApnaStore Online"

    # Courier
    courier_adapter: str = "fake"  # "fake" or "http"
    courier_api_url: str | None = None
    courier_timeout_seconds: float = 10
    tracking_url_prefix: str = "https://www.tcsexpress.com/track/"
    polling_interval_seconds: int = 30
    poll_concurrency: int = 10  # max orders reconciled at once (semaphore limit)
    auto_send_courier_notifications: bool = True
    # Extra keywords per classification rule name, e.g. {"address_issue": ["refused"]}
    courier_status_keywords: dict[str, list[str]] = Field(default_factory=dict)

    # Messaging
    sender_adapter: str = "fake"  # "fake" or "whatsapp"
    sender_timeout_seconds: float = 10
    whatsapp_api_url: str | None = None
    whatsapp_api_token: str | None = None
    default_country_code: str = "92"
    in_flight_ttl_seconds: int = 300


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings (loaded once from the environment)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Replace the active settings (useful for testing)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Drop cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None
