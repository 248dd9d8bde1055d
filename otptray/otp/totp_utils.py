"""Time-based One-Time Password generation for otptray.

Codes follow RFC 6238: the Unix time is divided into steps, the step number
is the HOTP counter, and the HOTP value itself is computed by the pyotp
library.
"""

from __future__ import annotations

import datetime
import enum
import hashlib
from typing import Tuple, Union

import pyotp

from ..errors import ValidationError
from . import secret_codec

MIN_DIGITS: int = 6
MAX_DIGITS: int = 10

Instant = Union[int, float, datetime.datetime]


class HashKind(str, enum.Enum):
    """HMAC hash functions an entry may use."""

    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"

    @property
    def digest(self):
        return getattr(hashlib, self.value)


def unix_seconds(time: Instant) -> float:
    if isinstance(time, datetime.datetime):
        return time.timestamp()
    return float(time)


def counter_at(time: Instant, step_seconds: int) -> int:
    """HOTP counter for ``time``: the number of whole steps since the epoch."""

    return int(unix_seconds(time) // step_seconds)


def window_at(time: Instant, step_seconds: int) -> Tuple[int, int]:
    """Half-open ``[valid_from, valid_until)`` window containing ``time``."""

    counter = counter_at(time, step_seconds)
    return counter * step_seconds, (counter + 1) * step_seconds


def seconds_remaining(time: Instant, step_seconds: int) -> float:
    _, valid_until = window_at(time, step_seconds)
    return valid_until - unix_seconds(time)


def generate(
    secret: bytes,
    time: Instant,
    step_seconds: int,
    hash_fn: HashKind,
    digit_count: int,
) -> str:
    """Return the passcode valid at ``time``.

    Callers validate ``step_seconds`` and ``digit_count`` beforehand; entries
    do so when they are created. Instants before the epoch raise
    ``ValidationError``. The result only depends on the arguments.
    """

    counter = counter_at(time, step_seconds)
    if counter < 0:
        raise ValidationError("Times before the Unix epoch have no TOTP code.", field="time")
    hotp = pyotp.HOTP(secret_codec.encode(secret), digits=digit_count, digest=hash_fn.digest)
    return hotp.at(counter)
