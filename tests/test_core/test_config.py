"""Tests for waymark.config."""

import pytest

from waymark.config import MIN_SECRET_KEY_LENGTH, AppConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.mount_prefix == ""
        assert config.secret_key is None

    def test_short_secret_raises(self) -> None:
        with pytest.raises(ValueError, match="at least"):
            AppConfig(secret_key="short")

    def test_valid_secret(self) -> None:
        assert AppConfig(secret_key="a" * MIN_SECRET_KEY_LENGTH).secret_key is not None

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValueError, match="log_level"):
            AppConfig(log_level="chatty")

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            AppConfig().debug = True  # type: ignore[misc]

    def test_from_env(self) -> None:
        config = AppConfig.from_env(environ={
            "WAYMARK_DEBUG": "true",
            "WAYMARK_PORT": "9000",
            "WAYMARK_MOUNT_PREFIX": "/api",
            "OTHER_PORT": "1",
        })
        assert config.debug is True
        assert config.port == 9000
        assert config.mount_prefix == "/api"

    def test_from_env_overrides_win(self) -> None:
        config = AppConfig.from_env(environ={"WAYMARK_PORT": "9000"}, port=7000)
        assert config.port == 7000

    def test_from_env_bad_int(self) -> None:
        with pytest.raises(ValueError, match="WAYMARK_PORT"):
            AppConfig.from_env(environ={"WAYMARK_PORT": "eighty"})

    def test_with_overrides(self) -> None:
        config = AppConfig().with_overrides(title="Blog")
        assert config.title == "Blog"
