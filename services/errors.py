from typing import Any, Optional


class OtpError(ValueError):
    """Base error for OTP parsing, decoding and code generation."""

    def __init__(self, message: str, *, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}


# "Not this format": callers may fall through to another codec.

class InvalidURI(OtpError):
    """Wrong scheme or authority for the codec that was asked to parse."""


class MissingPayload(InvalidURI):
    """Migration envelope without a ``data`` parameter."""


class UnsupportedType(InvalidURI):
    """otpauth URI for an OTP type other than TOTP."""


# "This format, but corrupt data".

class MissingSecret(OtpError):
    """otpauth URI without a ``secret`` parameter."""


class InvalidEncoding(OtpError):
    """Base32/Base64/UTF-8 content that cannot be decoded."""


class InvalidSecretEncoding(InvalidEncoding):
    """Shared secret is not valid Base32."""


class TruncatedPayload(OtpError):
    """A varint or length-delimited field runs past the end of the buffer."""


class EmptyMigrationPayload(OtpError):
    """Well-formed migration envelope that yields no importable accounts."""


class InvalidAccount(OtpError):
    """Account parameters outside the supported ranges."""
