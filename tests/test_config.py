import pytest

from getterlib.config import DEFAULT_TIMEOUT, EnvSettings
from getterlib.errors import ConfigurationError
from getterlib.options import Options, apply_options


def test_from_env_reads_prefixed_variables():
    env = {
        "GETTERLIB_CA_FILE": "/etc/ca.pem",
        "GETTERLIB_CERT_FILE": "/etc/crt.pem",
        "GETTERLIB_KEY_FILE": "/etc/key.pem",
        "GETTERLIB_INSECURE_SKIP_TLS_VERIFY": "true",
        "GETTERLIB_USERNAME": "admin",
        "GETTERLIB_PASSWORD": "secret",
        "GETTERLIB_TIMEOUT": "7.5",
        "GETTERLIB_ENABLE_OCI": "1",
    }
    s = EnvSettings.from_env(env)
    assert s.ca_file == "/etc/ca.pem"
    assert s.cert_file == "/etc/crt.pem"
    assert s.key_file == "/etc/key.pem"
    assert s.insecure_skip_tls_verify
    assert s.username == "admin"
    assert s.password == "secret"
    assert s.timeout == 7.5
    assert s.enable_oci
    assert not s.plain_http
    assert not s.pass_credentials_all


def test_from_env_defaults():
    s = EnvSettings.from_env({})
    assert s == EnvSettings()
    assert s.timeout == DEFAULT_TIMEOUT


def test_ssl_cert_file_left_to_system_trust(tmp_path):
    bundle = tmp_path / "bundle.pem"
    bundle.write_text("")
    assert EnvSettings.from_env({"SSL_CERT_FILE": str(bundle)}).ca_file is None


@pytest.mark.parametrize("value", ["abc", "-1", "1s"])
def test_from_env_rejects_bad_timeout(value):
    with pytest.raises(ConfigurationError) as err:
        EnvSettings.from_env({"GETTERLIB_TIMEOUT": value})
    assert "GETTERLIB_TIMEOUT" in str(err.value)


def test_from_env_zero_timeout_means_transport_default():
    assert EnvSettings.from_env({"GETTERLIB_TIMEOUT": "0"}).timeout == 0


def test_default_options():
    s = EnvSettings(ca_file="/etc/ca.pem", username="admin", pass_credentials_all=True, timeout=3)
    opts = apply_options(Options(), *s.default_options())
    assert opts.ca_file == "/etc/ca.pem"
    assert opts.cert_file is None
    assert opts.username == "admin"
    assert opts.password == ""
    assert opts.pass_credentials_all
    assert opts.timeout == 3


def test_default_options_leave_username_unset():
    opts = apply_options(Options(), *EnvSettings().default_options())
    assert opts.username is None
    assert not opts.has_tls_material()
