import logging
from typing import List, Optional, Sequence, Tuple

from models import Account
from services import ga_export, migration, otpauth_uri
from services.errors import InvalidURI, OtpError

logger = logging.getLogger(__name__)


class ImportExportService:
    @staticmethod
    def parse_import(text: str) -> Tuple[List[Account], Optional[str]]:
        """
        Parse a scanned or pasted string with whichever codec accepts it.
        Returns: (accounts, error_message)
        """
        try:
            return ImportExportService.decode(text), None
        except OtpError as e:
            logger.info("Import rejected: %s", e.message)
            return [], e.message

    @staticmethod
    def decode(text: str) -> List[Account]:
        """
        Try the otpauth codec, then the migration decoder.
        Raises the first error that is not "not this format".
        """
        text = (text or "").strip()
        try:
            return [otpauth_uri.parse(text)]
        except InvalidURI as e:
            if text.lower().startswith("otpauth://"):
                raise
            logger.debug("Not an otpauth URI (%s), trying migration format", e.message)
        try:
            return migration.decode_migration_uri(text)
        except InvalidURI as e:
            if text.lower().startswith("otpauth-migration://"):
                raise
            raise InvalidURI("Unsupported URI format.") from e

    @staticmethod
    def export(accounts: Sequence[Account]) -> Tuple[Optional[str], Optional[str]]:
        """
        Returns: (uri, error_message)
        """
        try:
            return ga_export.build_export_uri(accounts), None
        except OtpError as e:
            return None, e.message
