import ssl

import pytest

from conftest import CA, CRT, KEY, TESTDATA
from getterlib.errors import ConfigurationError, CredentialError
from getterlib.options import Options
from getterlib.transport import build_client, default_client, server_name_for, transport_key


def test_plain_options_share_default_client():
    assert build_client(Options(url="http://example.com")) is default_client()
    assert build_client(Options()) is default_client()


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://example.com:8443/charts/index.yaml", "example.com"),
        ("https://example.com/charts", "example.com"),
        ("https://[::1]:8443/", "::1"),
        (None, None),
    ],
)
def test_server_name_strips_port(url, expected):
    assert server_name_for(url) == expected


def test_tls_client_sets_server_name_and_verification():
    opts = Options(url="https://example.com:8443/charts", cert_file=CRT, key_file=KEY, ca_file=CA)
    client = build_client(opts)
    assert client is not default_client()
    kw = client.connection_pool_kw
    assert kw["server_hostname"] == "example.com"
    assert kw["cert_reqs"] == "CERT_REQUIRED"
    assert kw["ssl_context"].verify_mode == ssl.CERT_REQUIRED
    assert kw["ssl_context"].check_hostname


def test_ca_only_builds_fresh_trust_store():
    client = build_client(Options(ca_file=CA))
    ctx = client.connection_pool_kw["ssl_context"]
    assert ctx.cert_store_stats()["x509_ca"] == 1
    assert "server_hostname" not in client.connection_pool_kw


def test_insecure_skip_verify():
    client = build_client(Options(url="https://example.com", insecure_skip_verify_tls=True))
    assert client is not default_client()
    ctx = client.connection_pool_kw["ssl_context"]
    assert ctx.verify_mode == ssl.CERT_NONE
    assert not ctx.check_hostname
    assert client.connection_pool_kw["cert_reqs"] == "CERT_NONE"


def test_missing_ca_file_is_credential_error():
    with pytest.raises(CredentialError) as err:
        build_client(Options(url="https://example.com", ca_file=str(TESTDATA / "missing.pem")))
    assert "missing.pem" in str(err.value)
    assert "https://example.com" in str(err.value)


def test_ca_file_without_certificates_is_credential_error():
    with pytest.raises(CredentialError):
        build_client(Options(ca_file=str(TESTDATA / "garbage.pem")))


def test_mismatched_key_is_credential_error():
    with pytest.raises(CredentialError):
        build_client(Options(cert_file=CRT, key_file=str(TESTDATA / "other-key.pem")))


def test_unreadable_cert_is_credential_error():
    with pytest.raises(CredentialError):
        build_client(Options(cert_file=str(TESTDATA / "missing.pem"), key_file=KEY))


def test_cert_without_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        build_client(Options(cert_file=CRT))


def test_transport_key_ignores_non_transport_fields():
    a = Options(url="https://example.com/a", ca_file=CA, user_agent="x")
    b = Options(url="https://example.com:443/b", ca_file=CA, username="u")
    assert transport_key(a) == transport_key(b)
    assert transport_key(a) != transport_key(Options(url="https://other.com", ca_file=CA))
