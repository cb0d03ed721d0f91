"""Helpers for API consumers: credential storage and form submission."""

from .api import (
    ApiClient,
    ApiError,
    AuthenticationRequired,
    ClientError,
    FormValidationError,
    legacy_signup,
)
from .credentials import Credential, TokenStore
from .storage import FileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthenticationRequired",
    "ClientError",
    "Credential",
    "FileStorage",
    "FormValidationError",
    "KeyValueStorage",
    "MemoryStorage",
    "TokenStore",
    "legacy_signup",
]
