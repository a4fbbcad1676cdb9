"""Process-wide client.

Applications that want one shared client configure it once at startup and
fetch it wherever they issue calls. Tests call `reset_client()` between
cases for isolation.

Example:
    ```python
    from namaste_client import ClientConfig, FileStorage, configure, get_client

    configure(ClientConfig.from_env(), storage=FileStorage("~/.config/namaste/auth.json"))

    outcome = await get_client().get("dashboard/health")
    ```
"""

import logging

from namaste_client.client import APIClient
from namaste_client.config import ClientConfig
from namaste_client.errors.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_client: APIClient | None = None


def configure(config: ClientConfig, **client_kwargs) -> APIClient:
    """Create the process-wide client.

    Args:
        config: Client configuration.
        **client_kwargs: Forwarded to `APIClient` (storage, transport, ...).

    Raises:
        ConfigurationError: If a client is already configured.
    """
    global _client
    if _client is not None:
        raise ConfigurationError("Client already configured; call reset_client() first")
    _client = APIClient(config, **client_kwargs)
    logger.debug(f"Configured process-wide client for {config.base_url}")
    return _client


def get_client() -> APIClient:
    """Return the process-wide client.

    Raises:
        ConfigurationError: If `configure()` has not been called.
    """
    if _client is None:
        raise ConfigurationError("Client not configured; call configure() first")
    return _client


def is_configured() -> bool:
    return _client is not None


async def reset_client() -> None:
    """Close and forget the process-wide client. Stored credentials are kept."""
    global _client
    client, _client = _client, None
    if client is not None:
        await client.aclose()
