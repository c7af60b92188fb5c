"""
Decoder for Google Authenticator batch exports
(``otpauth-migration://offline?data=...``).

The payload is a protobuf message, read here with a small hand-written
reader that understands only the two wire types the format uses: varint (0)
and length-delimited (2).

    MigrationPayload:  1 otp_parameters (repeated, message)
                       2 version  3 batch_id  4 batch_index  5 batch_size
    OtpParameters:     1 secret (bytes)  2 name  3 issuer
                       4 algorithm  5 digits  6 type  7 counter
"""
import base64
import binascii
import logging
from typing import Iterator, List, NamedTuple, Optional, Union
from urllib.parse import parse_qs, urlsplit

from constants import AppConstants
from models import Account, HashAlgorithm, MigrationPayload, MigrationRecord, OtpType
from services import base32
from services.errors import (
    EmptyMigrationPayload,
    InvalidEncoding,
    InvalidURI,
    MissingPayload,
    TruncatedPayload,
)

logger = logging.getLogger(__name__)

SCHEME = "otpauth-migration"
AUTHORITY = "offline"

WIRE_VARINT = 0
WIRE_LENGTH_DELIMITED = 2

_MAX_VARINT_BYTES = 10

# Top-level varint fields, by field number. Field 1 is the account record.
_HEADER_FIELDS = {
    2: "version",
    3: "batch_id",
    4: "batch_index",
    5: "batch_size",
}

_RECORD = 1

_SECRET = 1
_NAME = 2
_ISSUER = 3
_ALGORITHM = 4
_DIGITS = 5
_TYPE = 6
_COUNTER = 7


class _Field(NamedTuple):
    number: int
    wire_type: int
    value: Union[int, memoryview, None]


class _Cursor:
    """Read position over a read-only view of a buffer.

    Length-delimited values come back as sub-views of the same buffer, so
    nested records are parsed without copying and the source is never written.
    """

    def __init__(self, buffer: Union[bytes, bytearray, memoryview]) -> None:
        self._view = memoryview(buffer).toreadonly()
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self._view)

    def read_varint(self) -> int:
        result = 0
        shift = 0
        for _ in range(_MAX_VARINT_BYTES):
            if self.at_end():
                raise TruncatedPayload("Varint extends beyond buffer.", context={"position": self.pos})
            byte = self._view[self.pos]
            self.pos += 1
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
            shift += 7
        raise InvalidEncoding("Varint longer than 10 bytes.", context={"position": self.pos})

    def read_bytes(self, length: int) -> memoryview:
        end = self.pos + length
        if end > len(self._view):
            raise TruncatedPayload(
                "Length-delimited field extends beyond buffer.",
                context={"position": self.pos, "length": length, "size": len(self._view)},
            )
        chunk = self._view[self.pos:end]
        self.pos = end
        return chunk

    def fields(self) -> Iterator[_Field]:
        while not self.at_end():
            tag = self.read_varint()
            wire_type = tag & 0x7
            number = tag >> 3
            if wire_type == WIRE_VARINT:
                yield _Field(number, wire_type, self.read_varint())
            elif wire_type == WIRE_LENGTH_DELIMITED:
                yield _Field(number, wire_type, self.read_bytes(self.read_varint()))
            else:
                # fixed32/fixed64 are not used by the format; step over one byte only.
                logger.debug("Skipping field %d with unsupported wire type %d", number, wire_type)
                self.read_bytes(1)
                yield _Field(number, wire_type, None)


def _algorithm_from_wire(value: int) -> HashAlgorithm:
    if value in (0, 1):
        return HashAlgorithm.SHA1
    if value == 2:
        return HashAlgorithm.SHA256
    if value == 3:
        return HashAlgorithm.SHA512
    logger.debug("Unrecognized algorithm value %d, using SHA1", value)
    return HashAlgorithm.SHA1


def _digits_from_wire(value: int) -> int:
    if value in (0, 1):
        return 6
    if value == 2:
        return 8
    logger.debug("Unrecognized digit count value %d, using 6", value)
    return 6


def _type_from_wire(value: int) -> OtpType:
    # No value is mapped to HOTP: exporters disagree on which one denotes it,
    # so counter-based entries cannot be told apart yet.
    if value in (0, 1, 2):
        return OtpType.TOTP
    logger.debug("Unrecognized OTP type value %d", value)
    return OtpType.UNKNOWN


def _text(value: memoryview, what: str) -> str:
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidEncoding(f"Account {what} is not valid UTF-8.") from e


def _parse_record(view: memoryview) -> Optional[MigrationRecord]:
    secret = b""
    name = issuer = None
    algorithm = HashAlgorithm.SHA1
    digits = AppConstants.DEFAULT_DIGITS
    otp_type = OtpType.TOTP
    counter = None

    for field in _Cursor(view).fields():
        if field.wire_type == WIRE_LENGTH_DELIMITED:
            if field.number == _SECRET:
                secret = bytes(field.value)
            elif field.number == _NAME:
                name = _text(field.value, "name")
            elif field.number == _ISSUER:
                issuer = _text(field.value, "issuer")
        elif field.wire_type == WIRE_VARINT:
            if field.number == _ALGORITHM:
                algorithm = _algorithm_from_wire(field.value)
            elif field.number == _DIGITS:
                digits = _digits_from_wire(field.value)
            elif field.number == _TYPE:
                otp_type = _type_from_wire(field.value)
            elif field.number == _COUNTER:
                counter = field.value

    if not secret:
        return None
    return MigrationRecord(
        secret=secret,
        name=name,
        issuer=issuer,
        algorithm=algorithm,
        digits=digits,
        otp_type=otp_type,
        counter=counter,
    )


def parse_payload(buffer: Union[bytes, bytearray, memoryview]) -> MigrationPayload:
    """
    Parse the binary payload into records (in buffer order) and batch metadata.

    Raises:
        TruncatedPayload: a field runs past the end of the buffer
        InvalidEncoding: over-long varint or non UTF-8 text
    """
    records: List[MigrationRecord] = []
    header = {}
    for field in _Cursor(buffer).fields():
        if field.number == _RECORD and field.wire_type == WIRE_LENGTH_DELIMITED:
            record = _parse_record(field.value)
            if record is None:
                logger.warning("Skipping migration entry without a secret")
                continue
            records.append(record)
        elif field.number in _HEADER_FIELDS and field.wire_type == WIRE_VARINT:
            header[_HEADER_FIELDS[field.number]] = field.value
    return MigrationPayload(records=tuple(records), **header)


def decode_payload_data(data: str) -> bytes:
    """URL-safe or standard Base64, padding optional."""
    # Query decoding turns '+' into ' '; Base64 never contains spaces.
    normalized = data.replace(" ", "+").strip().replace("-", "+").replace("_", "/").rstrip("=")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncoding(f"Migration data is not valid Base64: {e}") from e


def parse_migration_uri(uri: str) -> MigrationPayload:
    """
    Parse an ``otpauth-migration://offline?data=...`` URI.

    Raises:
        InvalidURI: not a migration URI
        MissingPayload: no ``data`` parameter
        InvalidEncoding, TruncatedPayload: corrupt data
    """
    try:
        p = urlsplit(uri.strip())
    except ValueError as e:
        raise InvalidURI(f"Malformed URI: {e}") from e
    if p.scheme.lower() != SCHEME or p.netloc.lower() != AUTHORITY:
        raise InvalidURI("Not an otpauth-migration URI.", context={"scheme": p.scheme})

    qs = parse_qs(p.query, keep_blank_values=True)
    data = qs.get("data", [None])[0]
    if data is None:
        raise MissingPayload("No migration data in URI.")

    payload = parse_payload(decode_payload_data(data))
    logger.debug(
        "Decoded migration payload: %d record(s), batch %s/%s",
        len(payload.records), payload.batch_index, payload.batch_size,
    )
    return payload


def convert_to_accounts(payload: MigrationPayload) -> List[Account]:
    """TOTP records as Accounts, in payload order; other types are skipped."""
    accounts = []
    for record in payload.records:
        if record.otp_type != OtpType.TOTP:
            logger.warning("Skipping %s migration entry for issuer %r", record.otp_type.value, record.issuer)
            continue
        accounts.append(Account(
            issuer=record.issuer or AppConstants.UNKNOWN_ISSUER,
            label=record.name or AppConstants.UNKNOWN_ACCOUNT,
            secret=base32.encode(record.secret).rstrip("="),
            algorithm=record.algorithm,
            digits=record.digits,
            # The format carries no period.
            period=AppConstants.DEFAULT_PERIOD,
        ))
    return accounts


def decode_migration_uri(uri: str) -> List[Account]:
    """
    Parse a migration URI straight into Accounts.

    Raises:
        EmptyMigrationPayload: the payload holds no importable accounts
        (plus everything ``parse_migration_uri`` raises)
    """
    accounts = convert_to_accounts(parse_migration_uri(uri))
    if not accounts:
        raise EmptyMigrationPayload("Migration data contains no TOTP accounts.")
    return accounts
