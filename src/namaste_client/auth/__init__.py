"""Authentication components for the NAMASTE API client.

This module provides:
- Credential model and store with durable persistence
- Pluggable key-value storage (memory, JSON file)
- Single-flight token refresh coordination

Example:
    ```python
    from namaste_client.auth import CredentialStore, FileStorage

    store = CredentialStore(FileStorage("~/.config/namaste/auth.json"))
    store.load()
    store.is_authenticated()
    ```
"""

from namaste_client.auth.credentials import (
    DEFAULT_SKEW_MARGIN_MS,
    DEFAULT_STORAGE_KEY,
    Credential,
    CredentialStore,
)
from namaste_client.auth.exceptions import (
    CredentialError,
    InvalidCredentialError,
    NoRefreshTokenError,
    TokenRefreshError,
)
from namaste_client.auth.refresh import RefreshCoordinator, RefreshState
from namaste_client.auth.storage import FileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "DEFAULT_SKEW_MARGIN_MS",
    "DEFAULT_STORAGE_KEY",
    "Credential",
    "CredentialError",
    "CredentialStore",
    "FileStorage",
    "InvalidCredentialError",
    "KeyValueStorage",
    "MemoryStorage",
    "NoRefreshTokenError",
    "RefreshCoordinator",
    "RefreshState",
    "TokenRefreshError",
]
