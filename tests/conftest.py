import os
from pathlib import Path

import pytest
from fulfillment.carrier import reset_courier_source, set_courier_source
from fulfillment.carrier.fake_adapter import FakeCourierSource
from notifications.channel import reset_sender, set_sender
from notifications.channel.fake_whatsapp import FakeWhatsAppSender
from notifications.templates import reset_template_store
from ordering.order.locks import reset_locks
from ordering.order.repository import get_repository
from protean.utils.globals import current_domain
from shared.config import Settings, reset_settings, set_settings


def pytest_sessionstart(session):
    """Activate the ordering domain before collection.

    The pushed domain context is what ``current_domain`` resolves to in tests
    that call application services directly.
    """
    os.environ["DISPATCHLINE_ENVIRONMENT"] = "test"

    from ordering.domain import init_ordering

    init_ordering().domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fresh settings before, and clean registries after, every test."""
    set_settings(Settings(environment="test", _env_file=None))

    yield

    # Clear stored orders
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    reset_sender()
    reset_courier_source()
    reset_template_store()
    reset_locks()
    reset_settings()


@pytest.fixture
def configure_settings():
    """Swap in settings with the given overrides for the current test."""

    def _configure(**overrides):
        settings = Settings(environment="test", _env_file=None, **overrides)
        set_settings(settings)
        return settings

    return _configure


@pytest.fixture
def sender():
    fake = FakeWhatsAppSender()
    set_sender(fake)
    return fake


@pytest.fixture
def courier():
    fake = FakeCourierSource()
    set_courier_source(fake)
    return fake


@pytest.fixture
def repo():
    return get_repository()
