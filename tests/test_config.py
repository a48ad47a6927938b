"""Tests for AppConfig construction."""

import logging
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from switchyard.config import AppConfig
from switchyard.errors import ConfigurationError
from switchyard.server.logs import configure_logging


class TestDefaults:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.debug is False
        assert dict(config.global_middleware) == {}
        assert config.log_level == "info"

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(FrozenInstanceError):
            config.debug = True  # type: ignore[misc]

    def test_global_middleware_is_read_only_copy(self) -> None:
        source = {"rate_limit": 10}
        config = AppConfig(global_middleware=source)
        source["auth"] = None
        assert list(config.global_middleware) == ["rate_limit"]
        with pytest.raises(TypeError):
            config.global_middleware["auth"] = None  # type: ignore[index]


class TestFromEnv:
    def test_development_enables_debug(self) -> None:
        assert AppConfig.from_env({"APP_ENV": "development"}).debug is True

    @pytest.mark.parametrize("value", ["production", "staging", "", "dev"])
    def test_anything_else_is_not_debug(self, value: str) -> None:
        assert AppConfig.from_env({"APP_ENV": value}).debug is False

    def test_missing_app_env(self) -> None:
        assert AppConfig.from_env({}).debug is False

    def test_server_and_logging_vars(self) -> None:
        config = AppConfig.from_env(
            {
                "SWITCHYARD_HOST": "0.0.0.0",
                "SWITCHYARD_PORT": "9000",
                "SWITCHYARD_LOG_LEVEL": "DEBUG",
            }
        )
        assert (config.host, config.port, config.log_level) == ("0.0.0.0", 9000, "debug")

    def test_bad_port(self) -> None:
        with pytest.raises(ConfigurationError, match="SWITCHYARD_PORT"):
            AppConfig.from_env({"SWITCHYARD_PORT": "eighty"})

    def test_overrides_win(self) -> None:
        config = AppConfig.from_env({"APP_ENV": "development"}, debug=False, port=1)
        assert config.debug is False
        assert config.port == 1

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "development")
        assert AppConfig.from_env().debug is True


class TestFromToml:
    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "switchyard.toml"
        path.write_text(
            "[switchyard]\n"
            "debug = true\n"
            "port = 8080\n"
            "\n"
            "[switchyard.middleware]\n"
            "rate_limit = { limit = 10, window_seconds = 60 }\n"
            "auth = {}\n"
        )
        config = AppConfig.from_toml(path)
        assert config.debug is True
        assert config.port == 8080
        assert list(config.global_middleware) == ["rate_limit", "auth"]
        assert config.global_middleware["rate_limit"] == {"limit": 10, "window_seconds": 60}

    def test_missing_table_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.toml"
        path.write_text("[other]\nx = 1\n")
        assert AppConfig.from_toml(path) == AppConfig()

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[switchyard]\ndebgu = true\n")
        with pytest.raises(ConfigurationError, match="debgu"):
            AppConfig.from_toml(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot load"):
            AppConfig.from_toml(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.toml"
        path.write_text("[switchyard\n")
        with pytest.raises(ConfigurationError, match="Cannot load"):
            AppConfig.from_toml(path)

    def test_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "switchyard.toml"
        path.write_text("[switchyard]\ndebug = true\n")
        assert AppConfig.from_toml(path, debug=False).debug is False


class TestConfigureLogging:
    def test_sets_level_and_adds_one_handler(self) -> None:
        logger = logging.getLogger("switchyard")
        before = list(logger.handlers)
        try:
            configure_logging(AppConfig(log_level="debug"))
            configure_logging(AppConfig(log_level="warning"))
            added = [h for h in logger.handlers if h not in before]
            assert len(added) == 1
            assert logger.level == logging.WARNING
        finally:
            for handler in logger.handlers[:]:
                if handler not in before:
                    logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)

    def test_unknown_level(self) -> None:
        with pytest.raises(ConfigurationError, match="log level"):
            configure_logging(AppConfig(log_level="chatty"))
