"""Tests for client configuration and setting resolution."""

import pytest

from namaste_client.config import DEFAULT_BASE_URL, ClientConfig, SettingResolver
from namaste_client.errors.exceptions import ConfigurationError


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig()

        assert config.base_url == DEFAULT_BASE_URL
        assert config.timeout_ms == 30000
        assert config.max_retries == 3
        assert config.retry_base_delay_ms == 1000
        assert config.auth_enabled is True
        assert config.logging_enabled is False
        assert config.refresh_path == "auth/refresh"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"base_url": ""},
            {"timeout_ms": 0},
            {"max_retries": -1},
            {"retry_base_delay_ms": -5},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            ClientConfig(**kwargs)

    def test_is_immutable(self):
        config = ClientConfig()
        with pytest.raises(AttributeError):
            config.max_retries = 10

    def test_with_updates_returns_copy(self):
        config = ClientConfig()

        updated = config.with_updates(max_retries=0, logging_enabled=True)

        assert updated.max_retries == 0
        assert updated.logging_enabled is True
        assert config.max_retries == 3

    def test_with_updates_validates(self):
        with pytest.raises(ConfigurationError):
            ClientConfig().with_updates(timeout_ms=-1)

    @pytest.mark.parametrize(
        "changes",
        [
            {"timeout_ms": "5"},
            {"max_retries": 1.5},
            {"retry_base_delay_ms": None},
            {"max_retries": True},
        ],
    )
    def test_with_updates_rejects_non_integer_numbers(self, changes):
        with pytest.raises(ConfigurationError, match="must be an integer"):
            ClientConfig().with_updates(**changes)

    def test_with_updates_rejects_unknown_fields(self):
        with pytest.raises(ConfigurationError, match="retries"):
            ClientConfig().with_updates(retries=2)


class TestFromEnv:
    def test_defaults_without_environment(self):
        config = ClientConfig.from_env(SettingResolver(load_dotenv=False))
        assert config == ClientConfig()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("NAMASTE_API_BASE_URL", "https://terminology.example.org/api/v1")
        monkeypatch.setenv("NAMASTE_API_TIMEOUT_MS", "5000")
        monkeypatch.setenv("NAMASTE_API_MAX_RETRIES", "1")
        monkeypatch.setenv("NAMASTE_API_RETRY_DELAY_MS", "250")
        monkeypatch.setenv("NAMASTE_ENABLE_AUTH", "false")
        monkeypatch.setenv("NAMASTE_DEBUG_MODE", "true")

        config = ClientConfig.from_env(SettingResolver(load_dotenv=False))

        assert config == ClientConfig(
            base_url="https://terminology.example.org/api/v1",
            timeout_ms=5000,
            max_retries=1,
            retry_base_delay_ms=250,
            auth_enabled=False,
            logging_enabled=True,
        )

    def test_overrides_take_precedence(self, monkeypatch):
        monkeypatch.setenv("NAMASTE_API_MAX_RETRIES", "7")

        config = ClientConfig.from_env(SettingResolver(load_dotenv=False), max_retries=0, base_url="http://x")

        assert config.max_retries == 0
        assert config.base_url == "http://x"

    def test_reads_dotenv_file(self, tmp_path):
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text("NAMASTE_API_BASE_URL=http://from-dotenv/api\nNAMASTE_API_TIMEOUT_MS=1234\n")

        config = ClientConfig.from_env(SettingResolver(dotenv_path=str(dotenv_file)))

        assert config.base_url == "http://from-dotenv/api"
        assert config.timeout_ms == 1234

    def test_bad_integer_names_variable(self, monkeypatch):
        monkeypatch.setenv("NAMASTE_API_TIMEOUT_MS", "thirty")

        with pytest.raises(ConfigurationError, match="NAMASTE_API_TIMEOUT_MS"):
            ClientConfig.from_env(SettingResolver(load_dotenv=False))

    def test_bad_boolean_names_variable(self, monkeypatch):
        monkeypatch.setenv("NAMASTE_ENABLE_AUTH", "maybe")

        with pytest.raises(ConfigurationError, match="NAMASTE_ENABLE_AUTH"):
            ClientConfig.from_env(SettingResolver(load_dotenv=False))


class TestSettingResolver:
    def test_init_skip_dotenv(self):
        resolver = SettingResolver(load_dotenv=False)
        assert not resolver._dotenv_loaded

    def test_init_loads_dotenv(self, tmp_path):
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text("NAMASTE_TEST_VAR=value\n")

        resolver = SettingResolver(dotenv_path=str(dotenv_file))

        assert resolver._dotenv_loaded

    def test_resolution_order(self, monkeypatch):
        resolver = SettingResolver(load_dotenv=False)
        monkeypatch.setenv("NAMASTE_TEST_VAR", "env")

        assert resolver.resolve(value="explicit", env_var_name="NAMASTE_TEST_VAR", default="d") == "explicit"
        assert resolver.resolve(env_var_name="NAMASTE_TEST_VAR", default="d") == "env"
        assert resolver.resolve(env_var_name="NAMASTE_MISSING_VAR", default="d") == "d"
        assert resolver.resolve(env_var_name="NAMASTE_MISSING_VAR") is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("1", True), ("YES", True), ("on", True), ("false", False), ("0", False), ("", False)],
    )
    def test_resolve_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("NAMASTE_FLAG", raw)
        assert SettingResolver(load_dotenv=False).resolve_bool(env_var_name="NAMASTE_FLAG", default=not expected) is expected

    def test_resolve_int_blank_uses_default(self, monkeypatch):
        monkeypatch.setenv("NAMASTE_NUM", "  ")
        assert SettingResolver(load_dotenv=False).resolve_int(env_var_name="NAMASTE_NUM", default=9) == 9
