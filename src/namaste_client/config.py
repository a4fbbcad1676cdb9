"""Client configuration.

`ClientConfig` is an immutable value. The client snapshots it at the start
of every call, so `update_config()` only affects calls issued afterwards.

Settings can be resolved from multiple sources with priority ordering:
1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv)
4. Default value

Example:
    ```python
    from namaste_client.config import ClientConfig

    # Explicit
    config = ClientConfig(base_url="https://terminology.example.org/api/v1")

    # From NAMASTE_* environment variables and .env
    config = ClientConfig.from_env()

    # Derived copy
    debug_config = config.with_updates(logging_enabled=True, max_retries=0)
    ```
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from threading import Lock

from dotenv import load_dotenv

from namaste_client.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api/v1"

_TRUE_VALUES = frozenset(["1", "true", "yes", "on"])
_FALSE_VALUES = frozenset(["0", "false", "no", "off", ""])
_INT_FIELDS = ("timeout_ms", "max_retries", "retry_base_delay_ms")


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared read-only by every call issued while they are current.

    Attributes:
        base_url: Root URL that request paths are joined to.
        timeout_ms: Per-attempt timeout in milliseconds.
        max_retries: Retries after the first attempt for retryable failures.
        retry_base_delay_ms: Delay before the first retry, in milliseconds.
        auth_enabled: Attach bearer credentials to requests.
        logging_enabled: Log every attempt and its outcome.
        refresh_path: Path of the token refresh endpoint.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = 30000
    max_retries: int = 3
    retry_base_delay_ms: int = 1000
    auth_enabled: bool = True
    logging_enabled: bool = False
    refresh_path: str = "auth/refresh"

    def __post_init__(self) -> None:
        if not isinstance(self.base_url, str) or not self.base_url:
            raise ConfigurationError("base_url must be a non-empty string")
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.timeout_ms <= 0:
            raise ConfigurationError(f"timeout_ms must be positive, got {self.timeout_ms}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must not be negative, got {self.max_retries}")
        if self.retry_base_delay_ms < 0:
            raise ConfigurationError(f"retry_base_delay_ms must not be negative, got {self.retry_base_delay_ms}")

    def with_updates(self, **changes) -> "ClientConfig":
        """Return a copy with some fields replaced.

        Raises:
            ConfigurationError: On an unknown field or an invalid value.
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration field(s): {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    @classmethod
    def from_env(cls, resolver: "SettingResolver | None" = None, **overrides) -> "ClientConfig":
        """Build a configuration from NAMASTE_* environment variables.

        Variables:
            NAMASTE_API_BASE_URL, NAMASTE_API_TIMEOUT_MS, NAMASTE_API_MAX_RETRIES,
            NAMASTE_API_RETRY_DELAY_MS, NAMASTE_ENABLE_AUTH, NAMASTE_DEBUG_MODE

        Args:
            resolver: Resolver to use (default: one that loads .env).
            **overrides: Explicit values, taking precedence over the environment.

        Raises:
            ConfigurationError: If a variable holds an unparseable value.
        """
        resolver = resolver or SettingResolver()
        return cls(
            base_url=resolver.resolve(
                value=overrides.get("base_url"),
                env_var_name="NAMASTE_API_BASE_URL",
                default=DEFAULT_BASE_URL,
            ),
            timeout_ms=resolver.resolve_int(
                value=overrides.get("timeout_ms"), env_var_name="NAMASTE_API_TIMEOUT_MS", default=30000
            ),
            max_retries=resolver.resolve_int(
                value=overrides.get("max_retries"), env_var_name="NAMASTE_API_MAX_RETRIES", default=3
            ),
            retry_base_delay_ms=resolver.resolve_int(
                value=overrides.get("retry_base_delay_ms"), env_var_name="NAMASTE_API_RETRY_DELAY_MS", default=1000
            ),
            auth_enabled=resolver.resolve_bool(
                value=overrides.get("auth_enabled"), env_var_name="NAMASTE_ENABLE_AUTH", default=True
            ),
            logging_enabled=resolver.resolve_bool(
                value=overrides.get("logging_enabled"), env_var_name="NAMASTE_DEBUG_MODE", default=False
            ),
            refresh_path=overrides.get("refresh_path", "auth/refresh"),
        )


class SettingResolver:
    """Resolve settings from multiple sources with priority ordering.

    Explicitly provided values take precedence over environment variables,
    which take precedence over .env file values, which finally take
    precedence over defaults.

    Attributes:
        _dotenv_loaded: Whether .env file has been loaded.
        _dotenv_lock: Thread lock for safe dotenv loading.
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        """Initialize setting resolver.

        Args:
            dotenv_path: Path to .env file. If None, searches parent directories
                for .env file (default behavior of python-dotenv).
            load_dotenv: Whether to load .env file. Set to False to skip
                .env file loading (useful for testing).
        """
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        """Ensure .env file is loaded (thread-safe, once)."""
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for client configuration")
            except Exception as e:
                logger.warning(f"Failed to load .env file: {e}")
            # Mark as attempted either way
            self._dotenv_loaded = True

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
    ) -> str | None:
        """Resolve a raw string setting.

        Resolution order (first match wins): `value`, environment variable
        (including values loaded from .env), `default`.
        """
        if value is not None:
            logger.debug(f"Resolved {env_var_name or 'setting'} from explicit parameter")
            return value
        if env_var_name and env_var_name in os.environ:
            logger.debug(f"Resolved setting from environment variable '{env_var_name}'")
            return os.environ[env_var_name]
        return default

    def resolve_int(self, *, value: int | None = None, env_var_name: str, default: int) -> int:
        """Resolve an integer setting.

        Raises:
            ConfigurationError: If the environment holds a non-integer.
        """
        if value is not None:
            return int(value)
        raw = self.resolve(env_var_name=env_var_name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw.strip())
        except ValueError:
            raise ConfigurationError(f"{env_var_name} must be an integer, got {raw!r}") from None

    def resolve_bool(self, *, value: bool | None = None, env_var_name: str, default: bool) -> bool:
        """Resolve a boolean setting (`true/1/yes/on`, `false/0/no/off`).

        Raises:
            ConfigurationError: If the environment holds anything else.
        """
        if value is not None:
            return bool(value)
        raw = self.resolve(env_var_name=env_var_name)
        if raw is None:
            return default
        normalized = raw.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"{env_var_name} must be a boolean, got {raw!r}")
