"""Decoding and validation of OTP secrets as users type them.

Authenticator setup pages usually show the key as base32, often lower-cased,
split into groups, or with the trailing ``=`` padding removed. ``decode``
accepts all of those forms. The ``raw`` encoding uses the typed text itself
as the key and exists for services that hand out plain ASCII secrets.
"""

from __future__ import annotations

import base64
import binascii
import enum
import re

from ..errors import EmptySecret, InvalidSecretFormat, ValidationError

_BASE32_ALPHABET = re.compile(r"^[A-Z2-7]*$")
_SEPARATORS = re.compile(r"[\s-]+")


class SecretEncoding(str, enum.Enum):
    """How the ``secret_hash`` text of an entry maps to key bytes."""

    BASE32 = "base32"
    RAW = "raw"

    @classmethod
    def parse(cls, value: str) -> "SecretEncoding":
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(item.value for item in cls)
            raise ValidationError(
                f"Unknown secret encoding {value!r} (expected one of {choices}).",
                field="secret_encoding",
            ) from None


def _normalize_base32(raw: str) -> str:
    return _SEPARATORS.sub("", raw).upper().rstrip("=")


def decode(raw: str, encoding: SecretEncoding = SecretEncoding.BASE32) -> bytes:
    """Return the key bytes for ``raw`` or raise a ``ValidationError``."""

    if encoding is SecretEncoding.RAW:
        secret = raw.encode("utf-8")
        if not secret:
            raise EmptySecret()
        return secret

    text = _normalize_base32(raw)
    if not _BASE32_ALPHABET.match(text):
        raise InvalidSecretFormat("Secret must only contain base32 characters A-Z and 2-7.")
    if not text:
        raise EmptySecret()

    padded = text + "=" * (-len(text) % 8)
    try:
        secret = base64.b32decode(padded)
    except binascii.Error as exc:
        raise InvalidSecretFormat(f"Secret is not valid base32: {exc}.") from exc
    if not secret:
        raise EmptySecret()
    return secret


def encode(secret: bytes) -> str:
    """Canonical unpadded base32 text for ``secret``."""

    return base64.b32encode(secret).decode("ascii").rstrip("=")
