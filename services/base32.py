import base64
import binascii
import re

from services.errors import InvalidEncoding

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_body_re = re.compile(r"[A-Z2-7]*")


def encode(data: bytes) -> str:
    """RFC 4648 Base32, ``=``-padded to a multiple of 8 characters."""
    return base64.b32encode(bytes(data)).decode("ascii")


def decode(text: str) -> bytes:
    """Decode Base32 text, case-insensitively, ignoring trailing padding.

    Raises InvalidEncoding for characters outside the alphabet and for
    lengths no byte sequence encodes to.
    """
    # str.upper maps some non-ASCII letters (dotless i, long s) into the alphabet.
    if not text.isascii():
        raise InvalidEncoding("Not a valid Base32 string.", context={"length": len(text)})
    body = text.upper().rstrip("=")
    if not _body_re.fullmatch(body):
        raise InvalidEncoding("Not a valid Base32 string.", context={"length": len(text)})
    body += "=" * (-len(body) % 8)
    try:
        return base64.b32decode(body)
    except binascii.Error as e:
        raise InvalidEncoding(f"Not a valid Base32 string: {e}", context={"length": len(text)}) from e
