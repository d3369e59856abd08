"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError

from zulip_buildkite_bot.config import (
    CONFIG_ENV_VAR,
    ConfigurationError,
    Settings,
    load_settings,
)

ENV = {
    "ZULIP_BOT_EMAIL": "bot@example.com",
    "ZULIP_BOT_API_KEY": "secret-key",
    "ZULIP_SERVER_URL": "https://chat.example.com/",
    "ZULIP_STREAM": "buildkite",
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        *ENV, "PORT", "BIND", "WEBHOOK_PATH", "DELIVERY_TIMEOUT",
        "SKIP_PASSED_JOBS", "LOG_LEVEL", "LOG_JSON", CONFIG_ENV_VAR,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def full_env(monkeypatch):
    for name, value in ENV.items():
        monkeypatch.setenv(name, value)


class TestDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.port == 3000
        assert settings.bind == "127.0.0.1"
        assert settings.webhook_path == "/webhook"
        assert settings.delivery_timeout == 10.0
        assert settings.skip_passed_jobs is False
        assert settings.log_level == "INFO"

    def test_frozen(self):
        settings = Settings(zulip_stream="buildkite")
        with pytest.raises(ValidationError):
            settings.zulip_stream = "other"

    def test_webhook_path_gets_leading_slash(self):
        assert Settings(webhook_path="hooks/buildkite").webhook_path == "/hooks/buildkite"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(delivery_timeout=0)


class TestLoadSettings:
    def test_from_env(self, full_env):
        settings = load_settings()
        assert settings.zulip_bot_email == "bot@example.com"
        assert settings.zulip_bot_api_key == "secret-key"
        assert settings.zulip_stream == "buildkite"

    def test_server_url_trailing_slash_stripped(self, full_env):
        assert load_settings().zulip_server_url == "https://chat.example.com"

    def test_port_from_env(self, full_env, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert load_settings().port == 8080

    def test_flag_overrides_env(self, full_env):
        settings = load_settings(zulip_stream="ci", port=4000)
        assert settings.zulip_stream == "ci"
        assert settings.port == 4000

    def test_none_override_ignored(self, full_env):
        assert load_settings(zulip_stream=None).zulip_stream == "buildkite"

    def test_all_from_flags(self):
        settings = load_settings(
            zulip_bot_email="a@b.c",
            zulip_bot_api_key="k",
            zulip_server_url="https://z",
            zulip_stream="s",
        )
        assert settings.missing_fields() == []

    def test_missing_required_lists_all(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(zulip_stream="buildkite")
        message = str(exc_info.value)
        assert "ZULIP_BOT_EMAIL" in message
        assert "ZULIP_BOT_API_KEY" in message
        assert "ZULIP_SERVER_URL" in message
        assert "ZULIP_STREAM" not in message

    def test_blank_counts_as_missing(self, full_env, monkeypatch):
        monkeypatch.setenv("ZULIP_STREAM", "  ")
        with pytest.raises(ConfigurationError, match="ZULIP_STREAM"):
            load_settings()

    def test_require_false_allows_missing(self):
        settings = load_settings(require=False)
        assert settings.missing_fields() == [
            "zulip_bot_email",
            "zulip_bot_api_key",
            "zulip_server_url",
            "zulip_stream",
        ]

    def test_invalid_value_is_configuration_error(self, full_env):
        with pytest.raises(ConfigurationError):
            load_settings(port="not-a-port")


class TestYamlConfig:
    def test_yaml_values(self, tmp_path, full_env):
        path = tmp_path / "config.yaml"
        path.write_text("zulip_stream: from-yaml\nskip_passed_jobs: true\n")
        settings = load_settings(path)
        assert settings.zulip_stream == "from-yaml"
        assert settings.skip_passed_jobs is True

    def test_flag_overrides_yaml(self, tmp_path, full_env):
        path = tmp_path / "config.yaml"
        path.write_text("zulip_stream: from-yaml\n")
        assert load_settings(path, zulip_stream="from-flag").zulip_stream == "from-flag"

    def test_path_from_env(self, tmp_path, full_env, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("port: 9000\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_settings().port == 9000

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "nope.yaml")

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_settings(path)

    def test_empty_file(self, tmp_path, full_env):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_settings(path).zulip_stream == "buildkite"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("zulip_stream: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Cannot read config file"):
            load_settings(path)

    def test_directory_path(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read config file"):
            load_settings(tmp_path)
