"""
HOTP / TOTP code generation (RFC 4226 / RFC 6238) and countdown helpers.

Everything here is a pure function of its arguments: no caching, no I/O, no
shared state. The presentation layer calls ``snapshot`` once per second.
"""
import time
from typing import Optional, Union

import pyotp

from constants import AppConstants
from models import Account, CodeSnapshot, HashAlgorithm, ProgressTier
from services import base32
from services.errors import InvalidAccount, InvalidEncoding, InvalidSecretEncoding

Number = Union[int, float]

_MAX_COUNTER = 2 ** 64


def _check_digits(digits: int) -> None:
    if isinstance(digits, bool) or not isinstance(digits, int) or digits not in AppConstants.ALLOWED_DIGITS:
        raise InvalidAccount(f"Digits must be 6 or 8, got {digits!r}.", context={"digits": digits})


def _check_period(period: int) -> None:
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise InvalidAccount(f"Period must be a positive integer, got {period!r}.", context={"period": period})


def _secret_key(secret: str) -> bytes:
    try:
        key = base32.decode(secret)
    except InvalidEncoding as e:
        raise InvalidSecretEncoding("Secret must be a valid Base32 string.") from e
    if not key:
        raise InvalidSecretEncoding("Secret is empty.")
    return key


def hotp(secret: str, counter: int, algorithm: HashAlgorithm = HashAlgorithm.SHA1,
         digits: int = AppConstants.DEFAULT_DIGITS) -> str:
    """
    HOTP code for an explicit counter.

    Raises:
        InvalidSecretEncoding: secret is not Base32
        InvalidAccount: unknown algorithm, digits not 6/8, counter outside 0..2**64-1
    """
    _check_digits(digits)
    if not 0 <= counter < _MAX_COUNTER:
        raise InvalidAccount(f"Counter out of range: {counter}", context={"counter": counter})
    if not isinstance(algorithm, HashAlgorithm):
        algorithm = HashAlgorithm.from_name(algorithm)
    key = _secret_key(secret)
    return pyotp.HOTP(base32.encode(key), digits=digits, digest=algorithm.digestmod).at(counter)


def compute_code(secret: str, algorithm: HashAlgorithm, digits: int, period: int, timestamp: Number) -> str:
    """TOTP code at ``timestamp`` (epoch seconds): HOTP with counter floor(timestamp / period)."""
    _check_period(period)
    return hotp(secret, int(timestamp // period), algorithm, digits)


def account_code(account: Account, timestamp: Optional[Number] = None) -> str:
    if timestamp is None:
        timestamp = time.time()
    return compute_code(account.secret, account.algorithm, account.digits, account.period, timestamp)


def time_remaining(period: int, now: Number) -> Number:
    """Seconds until the current time step ends, in (0, period]."""
    _check_period(period)
    return period - (now % period)


def progress_fraction(period: int, now: Number) -> float:
    return time_remaining(period, now) / period


def progress_tier(fraction: float) -> ProgressTier:
    if fraction > AppConstants.PROGRESS_AMPLE_THRESHOLD:
        return ProgressTier.AMPLE
    if fraction > AppConstants.PROGRESS_WARNING_THRESHOLD:
        return ProgressTier.WARNING
    return ProgressTier.CRITICAL


def snapshot(account: Account, now: Optional[Number] = None) -> CodeSnapshot:
    """Code plus countdown state for one account at ``now`` (defaults to the wall clock)."""
    if now is None:
        now = time.time()
    fraction = progress_fraction(account.period, now)
    return CodeSnapshot(
        code=account_code(account, now),
        remaining=time_remaining(account.period, now),
        fraction=fraction,
        tier=progress_tier(fraction),
    )
