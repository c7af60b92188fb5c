import logging
from typing import Optional, Tuple
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

from constants import AppConstants
from models import Account, HashAlgorithm
from services.errors import InvalidAccount, InvalidSecretEncoding, InvalidURI, MissingSecret, UnsupportedType
from utils import is_canonical_secret, normalize_secret

logger = logging.getLogger(__name__)

SCHEME = "otpauth"
TOTP_AUTHORITY = "totp"


def _split_label(path: str) -> Tuple[Optional[str], str]:
    """
    Split ``Issuer:account`` into (issuer, account).

    A literal colon is the separator when present, so an encoded colon inside
    the issuer survives; otherwise the decoded path is split instead.
    """
    raw = path[1:] if path.startswith("/") else path
    if ":" in raw:
        issuer, label = raw.split(":", 1)
        return unquote(issuer), unquote(label)
    decoded = unquote(raw)
    if ":" in decoded:
        issuer, label = decoded.split(":", 1)
        return issuer, label
    return None, decoded


def _int_param(qs: dict, name: str, default: int) -> int:
    value = qs.get(name, [None])[0]
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise InvalidURI(f"Invalid {name}: {value}", context={name: value}) from None


def parse(uri: str) -> Account:
    """
    Parse ``otpauth://totp/Issuer:account?secret=...`` into an Account.

    Raises:
        InvalidURI: not an otpauth URI, or a parameter cannot be used
        UnsupportedType: otpauth URI for hotp or another non-TOTP type
        MissingSecret: no ``secret`` parameter
        InvalidSecretEncoding: secret outside the Base32 alphabet
    """
    try:
        p = urlsplit(uri.strip())
    except ValueError as e:
        raise InvalidURI(f"Malformed URI: {e}") from e
    if p.scheme.lower() != SCHEME:
        raise InvalidURI("Not an otpauth URI.", context={"scheme": p.scheme})
    authority = p.netloc.lower()
    if not authority:
        raise InvalidURI("otpauth URI has no type.")
    if authority != TOTP_AUTHORITY:
        raise UnsupportedType(f"Unsupported OTP type: {authority}", context={"type": authority})

    path_issuer, label = _split_label(p.path)
    qs = parse_qs(p.query)

    issuer = qs.get("issuer", [None])[0] or path_issuer or AppConstants.UNKNOWN_ISSUER

    secret = qs.get("secret", [None])[0]
    if not secret:
        raise MissingSecret("Secret not found in URI.")
    secret = normalize_secret(secret)
    if not is_canonical_secret(secret):
        raise InvalidSecretEncoding("Secret must be a valid Base32 string.")

    algorithm = (qs.get("algorithm", [None])[0] or AppConstants.DEFAULT_ALGORITHM).upper()
    digits = _int_param(qs, "digits", AppConstants.DEFAULT_DIGITS)
    period = _int_param(qs, "period", AppConstants.DEFAULT_PERIOD)

    try:
        account = Account(
            issuer=issuer,
            label=label,
            secret=secret,
            algorithm=HashAlgorithm.from_name(algorithm),
            digits=digits,
            period=period,
        )
    except InvalidSecretEncoding:
        raise
    except InvalidAccount as e:
        raise InvalidURI(e.message, context=e.context) from e

    logger.debug("Parsed otpauth URI for issuer %r", account.issuer)
    return account


def generate(account: Account) -> str:
    """Inverse of ``parse``: ``parse(generate(a)) == a``."""
    query = urlencode(
        {
            "secret": account.secret,
            "issuer": account.issuer,
            "algorithm": account.algorithm.value,
            "digits": account.digits,
            "period": account.period,
        },
        quote_via=quote,
    )
    return (
        f"{SCHEME}://{TOTP_AUTHORITY}/"
        f"{quote(account.issuer, safe='')}:{quote(account.label, safe='')}"
        f"?{query}"
    )
