"""NAMASTE Client - resilient API client for the NAMASTE/ICD-11 terminology service.

This library provides the networking layer of the clinical coding dashboard:
- Credential lifecycle with durable persistence and single-flight refresh
- Bounded retries with exponential backoff for network and server failures
- Typed outcomes (`Success` / `Failure`) instead of exceptions for HTTP errors
- Testing utilities (`namaste_client.testing`)

Example:
    ```python
    from namaste_client import APIClient, ClientConfig, FileStorage

    config = ClientConfig.from_env()

    async with APIClient(config, storage=FileStorage("~/.config/namaste/auth.json")) as client:
        outcome = await client.get("fhir/CodeSystem", params={"status": "active"})
        rows = outcome.unwrap()  # raises an APIError subclass on failure
    ```
"""

from namaste_client.auth import Credential, CredentialStore, FileStorage, KeyValueStorage, MemoryStorage
from namaste_client.client import APIClient, RequestDescriptor
from namaste_client.config import ClientConfig, SettingResolver
from namaste_client.default import configure, get_client, reset_client
from namaste_client.errors import APIError, ConfigurationError, Failure, FailureKind, Outcome, Success
from namaste_client.transport import RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "APIClient",
    "APIError",
    "ClientConfig",
    "ConfigurationError",
    "Credential",
    "CredentialStore",
    "Failure",
    "FailureKind",
    "FileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "Outcome",
    "RequestDescriptor",
    "RetryPolicy",
    "SettingResolver",
    "Success",
    "__version__",
    "configure",
    "get_client",
    "reset_client",
]
