import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .errors import ConfigurationError
from .options import (
    Option,
    with_basic_auth,
    with_insecure_skip_verify_tls,
    with_pass_credentials_all,
    with_timeout,
    with_tls_client_config,
)


ENV_PREFIX = "GETTERLIB_"
DEFAULT_TIMEOUT = 120.0

_TRUE = {"1", "true", "yes", "on"}


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(ENV_PREFIX + name, "").strip().lower() in _TRUE


def _timeout(env: Mapping[str, str]) -> float:
    name = ENV_PREFIX + "TIMEOUT"
    raw = env.get(name, "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"invalid {name} {raw!r}", cause=exc) from exc
    if timeout < 0:
        raise ConfigurationError(f"invalid {name} {raw!r}: must not be negative")
    return timeout


@dataclass(frozen=True)
class EnvSettings:
    ca_file: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    insecure_skip_tls_verify: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    pass_credentials_all: bool = False
    timeout: float = DEFAULT_TIMEOUT
    enable_oci: bool = False
    plain_http: bool = False

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EnvSettings":
        env = os.environ if env is None else env
        return cls(
            ca_file=env.get(ENV_PREFIX + "CA_FILE") or None,
            cert_file=env.get(ENV_PREFIX + "CERT_FILE") or None,
            key_file=env.get(ENV_PREFIX + "KEY_FILE") or None,
            insecure_skip_tls_verify=_flag(env, "INSECURE_SKIP_TLS_VERIFY"),
            username=env.get(ENV_PREFIX + "USERNAME"),
            password=env.get(ENV_PREFIX + "PASSWORD"),
            pass_credentials_all=_flag(env, "PASS_CREDENTIALS_ALL"),
            timeout=_timeout(env),
            enable_oci=_flag(env, "ENABLE_OCI"),
            plain_http=_flag(env, "PLAIN_HTTP"),
        )

    def default_options(self) -> List[Option]:
        """Options every Getter built from these settings starts from."""
        opts: List[Option] = [
            with_insecure_skip_verify_tls(self.insecure_skip_tls_verify),
            with_pass_credentials_all(self.pass_credentials_all),
            with_timeout(self.timeout),
        ]
        if self.ca_file or self.cert_file or self.key_file:
            opts.append(with_tls_client_config(self.cert_file or "", self.key_file or "", self.ca_file or ""))
        if self.username is not None:
            opts.append(with_basic_auth(self.username, self.password or ""))
        return opts
