import pytest

from models import Account, HashAlgorithm
from services import otpauth_uri
from services.errors import InvalidSecretEncoding, InvalidURI, MissingSecret, UnsupportedType


def test_parse_reference_uri():
    account = otpauth_uri.parse(
        "otpauth://totp/Example:alice@example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"
    )
    assert account == Account(
        issuer="Example",
        label="alice@example.com",
        secret="JBSWY3DPEHPK3PXP",
        algorithm=HashAlgorithm.SHA1,
        digits=6,
        period=30,
    )


def test_issuer_parameter_overrides_path_issuer():
    account = otpauth_uri.parse("otpauth://totp/Old:alice?secret=JBSWY3DPEHPK3PXP&issuer=New")
    assert account.issuer == "New"
    assert account.label == "alice"


def test_path_issuer_used_without_parameter():
    account = otpauth_uri.parse("otpauth://totp/ACME%20Corp:bob%40example.com?secret=JBSWY3DPEHPK3PXP")
    assert account.issuer == "ACME Corp"
    assert account.label == "bob@example.com"


def test_encoded_separator():
    account = otpauth_uri.parse("otpauth://totp/ACME%3Abob?secret=JBSWY3DPEHPK3PXP")
    assert account.issuer == "ACME"
    assert account.label == "bob"


def test_label_only_defaults_issuer_to_unknown():
    account = otpauth_uri.parse("otpauth://totp/bob?secret=JBSWY3DPEHPK3PXP")
    assert account.issuer == "Unknown"
    assert account.label == "bob"


def test_optional_parameters_are_read():
    account = otpauth_uri.parse(
        "OTPAUTH://TOTP/A:b?secret=jbswy3dpehpk3pxp&algorithm=sha512&digits=8&period=60"
    )
    assert account.secret == "JBSWY3DPEHPK3PXP"
    assert account.algorithm == HashAlgorithm.SHA512
    assert account.digits == 8
    assert account.period == 60


def test_secret_padding_and_spaces_are_dropped():
    account = otpauth_uri.parse("otpauth://totp/A:b?secret=JBSW%20Y3DP%20EHPK%203PXP%3D%3D")
    assert account.secret == "JBSWY3DPEHPK3PXP"


def test_missing_secret():
    with pytest.raises(MissingSecret):
        otpauth_uri.parse("otpauth://totp/A:b?issuer=A")
    with pytest.raises(MissingSecret):
        otpauth_uri.parse("otpauth://totp/A:b?secret=&issuer=A")


def test_invalid_secret():
    with pytest.raises(InvalidSecretEncoding):
        otpauth_uri.parse("otpauth://totp/A:b?secret=JBSWY3DPEHPK3PX1")


def test_hotp_is_unsupported():
    with pytest.raises(UnsupportedType):
        otpauth_uri.parse("otpauth://hotp/A:b?secret=JBSWY3DPEHPK3PXP&counter=0")


@pytest.mark.parametrize("uri", [
    "https://totp/A:b?secret=JBSWY3DPEHPK3PXP",
    "otpauth-migration://offline?data=AAAA",
    "otpauth:///A:b?secret=JBSWY3DPEHPK3PXP",
    "not a uri at all",
])
def test_not_an_otpauth_uri(uri):
    with pytest.raises(InvalidURI):
        otpauth_uri.parse(uri)


@pytest.mark.parametrize("query", [
    "digits=7", "digits=six", "period=0", "period=-30", "period=abc", "algorithm=MD5",
])
def test_bad_parameters(query):
    with pytest.raises(InvalidURI):
        otpauth_uri.parse(f"otpauth://totp/A:b?secret=JBSWY3DPEHPK3PXP&{query}")


def test_unsupported_type_and_bad_scheme_share_a_family():
    assert issubclass(UnsupportedType, InvalidURI)
    assert not issubclass(MissingSecret, InvalidURI)


def test_generate():
    account = Account(issuer="Example", label="alice@example.com", secret="JBSWY3DPEHPK3PXP")
    assert otpauth_uri.generate(account) == (
        "otpauth://totp/Example:alice%40example.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Example&algorithm=SHA1&digits=6&period=30"
    )


@pytest.mark.parametrize("account", [
    Account(issuer="Example", label="alice@example.com", secret="JBSWY3DPEHPK3PXP"),
    Account(issuer="ACME Co: Labs", label="alice+bob@example.com", secret="GEZDGNBVGY3TQOJQ",
            algorithm=HashAlgorithm.SHA512, digits=8, period=60),
    Account(issuer="Ünïcödé & Co", label="名前:with/slash;semi#hash?q", secret="MZXW6",
            algorithm=HashAlgorithm.SHA256),
    Account(issuer="100%", label="", secret="AAAAAAAA", period=15),
])
def test_round_trip(account):
    assert otpauth_uri.parse(otpauth_uri.generate(account)) == account


def test_non_ascii_secret_rejected():
    with pytest.raises(InvalidSecretEncoding):
        otpauth_uri.parse("otpauth://totp/A:b?secret=%C4%B1%C4%B1%C4%B1%C4%B1%C4%B1%C4%B1%C4%B1%C4%B1")
