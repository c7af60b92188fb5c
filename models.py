import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from constants import AppConstants
from services.errors import InvalidAccount, InvalidSecretEncoding
from utils import is_canonical_secret


class HashAlgorithm(str, Enum):
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def digestmod(self) -> Callable:
        return {
            HashAlgorithm.SHA1: hashlib.sha1,
            HashAlgorithm.SHA256: hashlib.sha256,
            HashAlgorithm.SHA512: hashlib.sha512,
        }[self]

    @classmethod
    def from_name(cls, name: str) -> "HashAlgorithm":
        try:
            return cls(name.strip().upper())
        except ValueError:
            raise InvalidAccount(f"Unsupported algorithm: {name}", context={"algorithm": name}) from None


class OtpType(str, Enum):
    TOTP = "TOTP"
    HOTP = "HOTP"
    UNKNOWN = "UNKNOWN"


class ProgressTier(str, Enum):
    AMPLE = "ample"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Account:
    """A single authenticator entry.

    Immutable: use ``dataclasses.replace`` to derive an edited copy, which is
    validated again on construction.
    """

    issuer: str
    label: str
    secret: str
    algorithm: HashAlgorithm = HashAlgorithm.SHA1
    digits: int = AppConstants.DEFAULT_DIGITS
    period: int = AppConstants.DEFAULT_PERIOD

    def __post_init__(self) -> None:
        if not isinstance(self.algorithm, HashAlgorithm):
            object.__setattr__(self, "algorithm", HashAlgorithm.from_name(str(self.algorithm)))
        if not self.issuer:
            raise InvalidAccount("Issuer is required.")
        if not self.secret:
            raise InvalidAccount("Secret is required.")
        if not is_canonical_secret(self.secret):
            raise InvalidSecretEncoding("Secret must be upper-case Base32 without padding.")
        if isinstance(self.digits, bool) or not isinstance(self.digits, int) or self.digits not in AppConstants.ALLOWED_DIGITS:
            raise InvalidAccount(f"Digits must be 6 or 8, got {self.digits!r}.", context={"digits": self.digits})
        if not isinstance(self.period, int) or isinstance(self.period, bool) or self.period <= 0:
            raise InvalidAccount(f"Period must be a positive integer, got {self.period!r}.", context={"period": self.period})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issuer": self.issuer,
            "account": self.label,
            "secret": self.secret,
            "algorithm": self.algorithm.value,
            "digits": self.digits,
            "period": self.period,
        }


@dataclass(frozen=True)
class MigrationRecord:
    secret: bytes
    name: Optional[str] = None
    issuer: Optional[str] = None
    algorithm: HashAlgorithm = HashAlgorithm.SHA1
    digits: int = AppConstants.DEFAULT_DIGITS
    otp_type: OtpType = OtpType.TOTP
    counter: Optional[int] = None


@dataclass(frozen=True)
class MigrationPayload:
    records: Tuple[MigrationRecord, ...] = field(default_factory=tuple)
    version: Optional[int] = None
    batch_id: Optional[int] = None
    batch_index: Optional[int] = None
    batch_size: Optional[int] = None


@dataclass(frozen=True)
class CodeSnapshot:
    code: str
    remaining: float
    fraction: float
    tier: ProgressTier

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "remaining": self.remaining,
            "fraction": self.fraction,
            "tier": self.tier.value,
        }
