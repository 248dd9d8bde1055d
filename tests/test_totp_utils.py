import datetime

import pytest

from otptray.errors import ValidationError
from otptray.otp import totp_utils
from otptray.otp.totp_utils import HashKind

SEED_SHA1 = b"12345678901234567890"
SEED_SHA256 = b"12345678901234567890123456789012"
SEED_SHA512 = b"1234567890123456789012345678901234567890123456789012345678901234"


@pytest.mark.parametrize(
    "seed, hash_fn, when, expected",
    [
        (SEED_SHA1, HashKind.SHA1, 59, "94287082"),
        (SEED_SHA256, HashKind.SHA256, 59, "46119246"),
        (SEED_SHA512, HashKind.SHA512, 59, "90693936"),
        (SEED_SHA1, HashKind.SHA1, 1111111109, "07081804"),
        (SEED_SHA256, HashKind.SHA256, 1111111109, "68084774"),
        (SEED_SHA512, HashKind.SHA512, 1111111109, "25091201"),
        (SEED_SHA1, HashKind.SHA1, 1234567890, "89005924"),
        (SEED_SHA1, HashKind.SHA1, 20000000000, "65353130"),
    ],
)
def test_rfc6238_vectors(seed, hash_fn, when, expected):
    assert totp_utils.generate(seed, when, 30, hash_fn, 8) == expected


def test_generate_is_deterministic():
    first = totp_utils.generate(SEED_SHA1, 1_700_000_000, 30, HashKind.SHA1, 6)
    for _ in range(5):
        assert totp_utils.generate(SEED_SHA1, 1_700_000_000, 30, HashKind.SHA1, 6) == first


def test_generate_accepts_aware_datetime():
    when = datetime.datetime(2005, 3, 18, 1, 58, 29, tzinfo=datetime.timezone.utc)
    assert totp_utils.generate(SEED_SHA1, when, 30, HashKind.SHA1, 8) == "07081804"


def test_code_is_constant_within_a_step():
    k = 56_666_666
    start = totp_utils.generate(SEED_SHA1, k * 30, 30, HashKind.SHA1, 6)
    end = totp_utils.generate(SEED_SHA1, k * 30 + 29, 30, HashKind.SHA1, 6)
    fractional = totp_utils.generate(SEED_SHA1, k * 30 + 29.999, 30, HashKind.SHA1, 6)
    assert start == end == fractional


def test_code_changes_at_the_boundary():
    # RFC 6238 appendix B: t=1111111109 and t=1111111111 fall on either side of a boundary
    before = totp_utils.generate(SEED_SHA1, 1111111109, 30, HashKind.SHA1, 8)
    after = totp_utils.generate(SEED_SHA1, 1111111111, 30, HashKind.SHA1, 8)
    assert before == "07081804"
    assert after == "14050471"


@pytest.mark.parametrize("digits", [6, 7, 8, 9, 10])
def test_code_length_matches_digit_count(digits):
    code = totp_utils.generate(SEED_SHA1, 59, 30, HashKind.SHA1, digits)
    assert len(code) == digits
    assert code.isdigit()


def test_shorter_codes_are_suffixes():
    assert totp_utils.generate(SEED_SHA1, 59, 30, HashKind.SHA1, 6) == "287082"


def test_step_changes_the_counter():
    assert totp_utils.counter_at(59, 30) == 1
    assert totp_utils.counter_at(59, 60) == 0
    assert totp_utils.generate(SEED_SHA1, 59, 60, HashKind.SHA1, 8) == totp_utils.generate(SEED_SHA1, 0, 30, HashKind.SHA1, 8)


def test_window_is_half_open():
    assert totp_utils.window_at(59, 30) == (30, 60)
    assert totp_utils.window_at(60, 30) == (60, 90)
    assert totp_utils.seconds_remaining(59.5, 30) == pytest.approx(0.5)


def test_times_before_the_epoch_are_rejected():
    with pytest.raises(ValidationError):
        totp_utils.generate(SEED_SHA1, -100, 30, HashKind.SHA1, 6)
    assert totp_utils.generate(SEED_SHA1, 0, 30, HashKind.SHA1, 8) == totp_utils.generate(SEED_SHA1, 29, 30, HashKind.SHA1, 8)
