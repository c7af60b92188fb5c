from typing import Optional
from constants import AppConstants
from models import HashAlgorithm
from services import base32
from services.errors import InvalidEncoding
from utils import is_valid_base32, normalize_secret, sanitize_input

def validate_totp(account: str, issuer: str, secret: str, algorithm: str = AppConstants.DEFAULT_ALGORITHM,
                  digits: int = AppConstants.DEFAULT_DIGITS,
                  period: int = AppConstants.DEFAULT_PERIOD) -> Optional[str]:
    account = sanitize_input(account)
    issuer = sanitize_input(issuer)
    secret = sanitize_input(secret)

    if not account:
        return "Account is required."
    if len(account) > AppConstants.MAX_ACCOUNT_LENGTH:
        return f"Account is too long (max {AppConstants.MAX_ACCOUNT_LENGTH} characters)."

    if not issuer:
        return "Issuer is required."
    if len(issuer) > AppConstants.MAX_ISSUER_LENGTH:
        return f"Issuer is too long (max {AppConstants.MAX_ISSUER_LENGTH} characters)."

    if not secret:
        return "Secret is required."

    if not is_valid_base32(secret) or not normalize_secret(secret):
        return "Secret must be a valid Base32 string."
    try:
        base32.decode(normalize_secret(secret))
    except InvalidEncoding:
        return "Secret must be a valid Base32 string."

    if (algorithm or "").strip().upper() not in HashAlgorithm.__members__:
        return "Algorithm must be SHA1, SHA256 or SHA512."

    if isinstance(digits, bool) or not isinstance(digits, int) or digits not in AppConstants.ALLOWED_DIGITS:
        return "Digits must be 6 or 8."

    if period <= 0:
        return "Period must be a positive number of seconds."

    return None
