"""Exception hierarchy shared by the otptray core and its front ends."""

from __future__ import annotations

from typing import Optional


class OtpTrayError(Exception):
    """Base class for every error otptray reports to a user."""


class ValidationError(OtpTrayError, ValueError):
    """Raised when user input cannot become an entry or a setting."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidSecretFormat(ValidationError):
    """Raised when a secret contains characters outside its encoding."""

    def __init__(self, message: str) -> None:
        super().__init__(message, field="secret")


class EmptySecret(ValidationError):
    """Raised when a secret decodes to zero bytes."""

    def __init__(self, message: str = "Secret may not be empty.") -> None:
        super().__init__(message, field="secret")


class EntryNotFound(OtpTrayError, LookupError):
    """Raised when an entry id or name no longer refers to a live entry."""


class LoadError(OtpTrayError):
    """Raised when the persisted entry list cannot be read."""


class SaveError(OtpTrayError):
    """Raised when the entry list cannot be written back."""


class ClipboardError(OtpTrayError):
    """Raised when a code cannot be placed on the clipboard."""
