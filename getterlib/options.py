from dataclasses import dataclass, replace
from typing import Callable, Optional
from urllib.parse import urlparse

from .errors import ConfigurationError


# Schemes whose locators must name a host.
NETWORK_SCHEMES = ("http", "https", "oci")


@dataclass
class Options:
    url: Optional[str] = None
    # None means "unset"; an empty string is an explicit value and still
    # causes Basic credentials to be sent.
    username: Optional[str] = None
    password: Optional[str] = None
    user_agent: Optional[str] = None
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    insecure_skip_verify_tls: bool = False
    timeout: float = 0.0
    pass_credentials_all: bool = False
    version: Optional[str] = None
    accept: Optional[str] = None

    def copy(self) -> "Options":
        return replace(self)

    def has_tls_material(self) -> bool:
        return bool(self.cert_file or self.key_file or self.ca_file)


Option = Callable[[Options], None]


def apply_options(base: Options, *option_fns: Option) -> Options:
    """Return a copy of ``base`` with ``option_fns`` applied in order.

    ``base`` is never touched, so a Getter's baseline can be shared between
    concurrent fetches.
    """
    opts = base.copy()
    for fn in option_fns:
        fn(opts)
    return opts


def parse_url(url: str):
    try:
        parsed = urlparse(url)
        # .port raises on a malformed port suffix
        parsed.port
    except ValueError as exc:
        raise ConfigurationError("invalid URL", href=url, cause=exc) from exc
    if not parsed.scheme:
        raise ConfigurationError("URL has no scheme", href=url)
    if parsed.scheme.lower() in NETWORK_SCHEMES and not parsed.hostname:
        raise ConfigurationError("URL has no host", href=url, scheme=parsed.scheme)
    return parsed


def with_url(url: str) -> Option:
    def apply(opts: Options) -> None:
        parse_url(url)
        opts.url = url

    return apply


def with_basic_auth(username: str, password: str) -> Option:
    def apply(opts: Options) -> None:
        opts.username = username
        opts.password = password

    return apply


def with_user_agent(user_agent: str) -> Option:
    def apply(opts: Options) -> None:
        opts.user_agent = user_agent

    return apply


def with_tls_client_config(cert_file: str, key_file: str, ca_file: str) -> Option:
    def apply(opts: Options) -> None:
        opts.cert_file = cert_file or None
        opts.key_file = key_file or None
        opts.ca_file = ca_file or None

    return apply


def with_insecure_skip_verify_tls(insecure: bool) -> Option:
    def apply(opts: Options) -> None:
        opts.insecure_skip_verify_tls = insecure

    return apply


def with_timeout(seconds: float) -> Option:
    def apply(opts: Options) -> None:
        if seconds < 0:
            raise ConfigurationError(f"timeout must not be negative, got {seconds}")
        opts.timeout = seconds

    return apply


def with_pass_credentials_all(pass_all: bool) -> Option:
    def apply(opts: Options) -> None:
        opts.pass_credentials_all = pass_all

    return apply


def with_tag_version(version: str) -> Option:
    def apply(opts: Options) -> None:
        opts.version = version

    return apply


def with_accept_header(accept: str) -> Option:
    def apply(opts: Options) -> None:
        opts.accept = accept

    return apply
