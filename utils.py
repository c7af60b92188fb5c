import re
from typing import Optional

_base32_pattern = re.compile(r"[A-Z2-7]+=*", re.IGNORECASE)
_canonical_secret_pattern = re.compile(r"[A-Z2-7]+")


def is_valid_base32(secret: str) -> bool:
    """Check if string is valid Base32"""
    secret_clean = secret.strip().replace(" ", "")
    if not secret_clean.isascii():
        return False
    return bool(_base32_pattern.fullmatch(secret_clean))


def is_canonical_secret(secret: str) -> bool:
    """Upper-case Base32 with no whitespace and no padding."""
    return bool(_canonical_secret_pattern.fullmatch(secret))


def normalize_secret(secret: str) -> str:
    """Bring a user- or URI-supplied secret into canonical form.

    Upper-cases, drops whitespace and trailing ``=`` padding. The alphabet is
    not checked here, but non-ASCII input is left un-cased so it cannot
    pass as Base32.
    """
    secret = "".join(secret.split())
    if secret.isascii():
        secret = secret.upper()
    return secret.rstrip("=")


def sanitize_input(text: str, max_length: Optional[int] = None) -> str:
    """Sanitize user input"""
    if not text:
        return ""

    # Remove leading/trailing whitespace
    text = text.strip()

    # Limit length if specified
    if max_length:
        text = text[:max_length]

    return text
