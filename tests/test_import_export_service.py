from models import Account
from services import ga_export
from services.import_export_service import ImportExportService

ALICE = Account(issuer="Example", label="alice@example.com", secret="JBSWY3DPEHPK3PXP")
BOB = Account(issuer="Other", label="bob", secret="GEZDGNBVGY3TQOJQ")


def test_otpauth_uri():
    accounts, error = ImportExportService.parse_import(
        "  otpauth://totp/Example:alice@example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example\n"
    )
    assert error is None
    assert accounts == [ALICE]


def test_migration_uri_falls_through():
    accounts, error = ImportExportService.parse_import(ga_export.build_ga_link([ALICE, BOB]))
    assert error is None
    assert accounts == [ALICE, BOB]


def test_unrecognised_text():
    accounts, error = ImportExportService.parse_import("https://example.com")
    assert accounts == []
    assert error == "Unsupported URI format."


def test_corrupt_otpauth_uri_reports_its_own_error():
    accounts, error = ImportExportService.parse_import("otpauth://hotp/A:b?secret=JBSWY3DPEHPK3PXP")
    assert accounts == []
    assert error == "Unsupported OTP type: hotp"


def test_corrupt_migration_data_reports_its_own_error():
    accounts, error = ImportExportService.parse_import("otpauth-migration://offline?data=CgUK")
    assert accounts == []
    assert error == "Length-delimited field extends beyond buffer."


def test_missing_data_reports_missing_payload():
    accounts, error = ImportExportService.parse_import("otpauth-migration://offline")
    assert error == "No migration data in URI."


def test_export():
    uri, error = ImportExportService.export([ALICE])
    assert error is None
    assert uri.startswith("otpauth://totp/Example:")
    uri, error = ImportExportService.export([])
    assert uri is None
    assert error == "No accounts to export."
