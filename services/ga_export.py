import base64
import io
import logging
import qrcode
from typing import Sequence
from urllib.parse import quote

from config import settings
from constants import AppConstants
from models import Account, HashAlgorithm
from services import base32, otpauth_uri
from services.errors import EmptyMigrationPayload

logger = logging.getLogger(__name__)

def _varint(n: int) -> bytes:
    out = bytearray()
    while True:
        to_write = n & 0x7F
        n >>= 7
        if n:
            out.append(to_write | 0x80)
        else:
            out.append(to_write)
            break
    return bytes(out)

def _field(tag: int, wire_type: int) -> bytes:
    return _varint((tag << 3) | wire_type)

def _len_delimited(tag: int, payload: bytes) -> bytes:
    return _field(tag, 2) + _varint(len(payload)) + payload

def _varint_field(tag: int, value: int) -> bytes:
    return _field(tag, 0) + _varint(value)

ALGO_MAP = {HashAlgorithm.SHA1: 1, HashAlgorithm.SHA256: 2, HashAlgorithm.SHA512: 3}
DIGITS_MAP = {6: 1, 8: 2}
TYPE_TOTP = 2

def encode_otp_parameters(account: Account) -> bytes:
    parts = []
    # 1: secret (bytes)
    parts.append(_len_delimited(1, base32.decode(account.secret)))
    # 2: name (string)
    parts.append(_len_delimited(2, account.label.encode()))
    # 3: issuer (string)
    parts.append(_len_delimited(3, account.issuer.encode()))
    # 4: algorithm (varint)
    parts.append(_varint_field(4, ALGO_MAP[account.algorithm]))
    # 5: digits (varint)
    parts.append(_varint_field(5, DIGITS_MAP[account.digits]))
    # 6: type (varint)
    parts.append(_varint_field(6, TYPE_TOTP))
    return b"".join(parts)

def encode_migration_payload(accounts: Sequence[Account], batch_id: int = 0) -> bytes:
    parts = []
    for account in accounts:
        if account.period != AppConstants.DEFAULT_PERIOD:
            logger.warning("Migration export drops the %ds period of %r", account.period, account.issuer)
        parts.append(_len_delimited(1, encode_otp_parameters(account)))
    parts.append(_varint_field(2, AppConstants.MIGRATION_VERSION))
    parts.append(_varint_field(3, batch_id))
    parts.append(_varint_field(4, 0))
    parts.append(_varint_field(5, 1))
    return b"".join(parts)

def build_ga_link(accounts: Sequence[Account], batch_id: int = 0) -> str:
    payload = encode_migration_payload(accounts, batch_id)
    data_b64 = base64.b64encode(payload).decode()
    return f"otpauth-migration://offline?data={quote(data_b64, safe='')}"

def build_export_uri(accounts: Sequence[Account]) -> str:
    """otpauth URI for a single account, migration link for several."""
    if not accounts:
        raise EmptyMigrationPayload("No accounts to export.")
    if len(accounts) == 1:
        return otpauth_uri.generate(accounts[0])
    return build_ga_link(accounts)

def build_qr_png(uri: str) -> bytes:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
