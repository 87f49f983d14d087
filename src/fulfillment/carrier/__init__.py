"""Courier status source registry: pluggable courier tracking integration."""

from protean.exceptions import ConfigurationError

from fulfillment.carrier.port import CourierStatusSource
from shared.config import get_settings

_source_instance: CourierStatusSource | None = None


def get_courier_source() -> CourierStatusSource:
    """Return the configured courier status source (singleton).

    Uses FakeCourierSource (seeded with demo shipments) by default. In
    production, set DISPATCHLINE_COURIER_ADAPTER=http and
    DISPATCHLINE_COURIER_API_URL.
    """
    global _source_instance
    if _source_instance is None:
        settings = get_settings()
        if settings.courier_adapter == "fake":
            from fulfillment.carrier.fake_adapter import DEMO_SEQUENCES, FakeCourierSource

            _source_instance = FakeCourierSource(DEMO_SEQUENCES)
        elif settings.courier_adapter == "http":
            from fulfillment.carrier.http_adapter import HttpCourierSource

            if not settings.courier_api_url:
                raise ConfigurationError("courier_api_url is required when courier_adapter is 'http'")
            _source_instance = HttpCourierSource(settings.courier_api_url, timeout=settings.courier_timeout_seconds)
        else:
            raise ConfigurationError(f"Unknown courier adapter: {settings.courier_adapter}")
    return _source_instance


def set_courier_source(source: CourierStatusSource) -> None:
    """Replace the courier status source (useful for testing)."""
    global _source_instance
    _source_instance = source


def reset_courier_source():
    """Reset the courier source singleton (useful for testing)."""
    global _source_instance
    _source_instance = None
