import importlib
import logging

import pytest
import structlog
from shared.config import Settings
from shared.logging import configure_logging, log_level, wants_json


def _settings(**overrides):
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestLevelAndFormat:
    @pytest.mark.parametrize(
        "environment, expected",
        [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("qa", "INFO")],
    )
    def test_level_by_environment(self, environment, expected):
        assert log_level(_settings(environment=environment)) == expected

    def test_explicit_level_wins(self):
        assert log_level(_settings(environment="production", log_level="debug")) == "DEBUG"

    def test_json_in_production_only(self):
        assert wants_json(_settings(environment="staging"))
        assert not wants_json(_settings(environment="development"))
        assert wants_json(_settings(environment="development", log_json=True))


class TestConfigureLogging:
    def test_production_writes_json_to_rotating_files(self, tmp_path, restore_logging):
        log_dir = tmp_path / "logs"
        configure_logging(_settings(environment="production", log_dir=str(log_dir)))

        assert (log_dir / "dispatchline.log").exists()
        assert (log_dir / "dispatchline_error.log").exists()
        assert logging.getLogger().level == logging.INFO
        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)

    def test_development_uses_console_renderer(self, tmp_path, restore_logging):
        configure_logging(_settings(environment="development", log_dir=str(tmp_path)))

        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger("httpx").level == logging.WARNING


class TestApplicationStartup:
    def test_app_import_configures_logging(self, monkeypatch):
        calls = []
        monkeypatch.setattr("shared.logging.configure_logging", lambda settings=None: calls.append(settings))

        import app

        importlib.reload(app)

        assert calls == [None]
