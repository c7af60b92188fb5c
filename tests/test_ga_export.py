import pytest

from models import Account, HashAlgorithm
from services import ga_export, migration, otpauth_uri
from services.errors import EmptyMigrationPayload

ACCOUNTS = [
    Account(issuer="Example", label="alice@example.com", secret="JBSWY3DPEHPK3PXP"),
    Account(issuer="Other Co", label="bob", secret="GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ",
            algorithm=HashAlgorithm.SHA512, digits=8),
    Account(issuer="Ünïcödé", label="名前", secret="MZXW6YTBOI", algorithm=HashAlgorithm.SHA256),
]


def test_link_decodes_back_to_accounts():
    link = ga_export.build_ga_link(ACCOUNTS)
    assert link.startswith("otpauth-migration://offline?data=")
    assert migration.decode_migration_uri(link) == ACCOUNTS


def test_link_header():
    payload = migration.parse_migration_uri(ga_export.build_ga_link(ACCOUNTS, batch_id=12))
    assert payload.version == 1
    assert payload.batch_id == 12
    assert payload.batch_index == 0
    assert payload.batch_size == 1


def test_export_of_single_account_is_otpauth_uri():
    account = Account(issuer="Example", label="alice", secret="JBSWY3DPEHPK3PXP", period=60)
    uri = ga_export.build_export_uri([account])
    assert uri.startswith("otpauth://totp/")
    assert otpauth_uri.parse(uri) == account


def test_export_of_several_accounts_is_migration_link():
    uri = ga_export.build_export_uri(ACCOUNTS)
    assert uri.startswith("otpauth-migration://")


def test_export_of_nothing():
    with pytest.raises(EmptyMigrationPayload):
        ga_export.build_export_uri([])


def test_non_default_period_is_lost_in_migration_export(caplog):
    accounts = [ACCOUNTS[0], Account(issuer="Slow", label="x", secret="JBSWY3DPEHPK3PXP", period=60)]
    with caplog.at_level("WARNING"):
        decoded = migration.decode_migration_uri(ga_export.build_ga_link(accounts))
    assert decoded[1].period == 30
    assert "drops the 60s period" in caplog.text


def test_qr_png():
    png = ga_export.build_qr_png(ga_export.build_ga_link(ACCOUNTS))
    assert png.startswith(b"\x89PNG\r\n\x1a\n")
