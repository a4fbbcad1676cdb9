"""Service helpers built on `APIClient`."""

from namaste_client.services.auth import AuthService

__all__ = ["AuthService"]
