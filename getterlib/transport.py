import logging
import ssl
import threading
from typing import Optional, Tuple
from urllib.parse import urlparse

import urllib3

from .errors import ConfigurationError, CredentialError
from .options import Options


logger = logging.getLogger(__name__)

NUM_POOLS = 8
MAX_CONNECTIONS = 16

_default_client: Optional[urllib3.PoolManager] = None
_default_lock = threading.Lock()


def default_client() -> urllib3.PoolManager:
    """Shared pool used whenever no TLS material or insecure flag is configured."""
    global _default_client
    with _default_lock:
        if _default_client is None:
            _default_client = urllib3.PoolManager(num_pools=NUM_POOLS, maxsize=MAX_CONNECTIONS)
        return _default_client


def server_name_for(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    # hostname drops the port and any IPv6 brackets
    return urlparse(url).hostname


def transport_key(opts: Options) -> Tuple:
    """The option fields a client is built from; equal keys can share a client."""
    return (
        opts.cert_file,
        opts.key_file,
        opts.ca_file,
        opts.insecure_skip_verify_tls,
        server_name_for(opts.url),
    )


def build_ssl_context(opts: Options) -> ssl.SSLContext:
    href = opts.url or ""
    if bool(opts.cert_file) != bool(opts.key_file):
        raise ConfigurationError("client certificate and key must be configured together", href=href)

    if opts.ca_file:
        try:
            ctx = ssl.create_default_context(cafile=opts.ca_file)
        except OSError as exc:
            raise CredentialError(f"can't load CA bundle {opts.ca_file}", href=href, cause=exc) from exc
        if ctx.cert_store_stats()["x509"] == 0:
            raise CredentialError(f"CA bundle {opts.ca_file} holds no certificates", href=href)
    else:
        ctx = ssl.create_default_context()

    if opts.cert_file:
        try:
            ctx.load_cert_chain(certfile=opts.cert_file, keyfile=opts.key_file)
        except OSError as exc:
            raise CredentialError(
                f"can't load client key pair {opts.cert_file}/{opts.key_file}", href=href, cause=exc
            ) from exc

    if opts.insecure_skip_verify_tls:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


def build_client(opts: Options) -> urllib3.PoolManager:
    if not opts.has_tls_material() and not opts.insecure_skip_verify_tls:
        return default_client()

    ctx = build_ssl_context(opts)
    pool_kw = {
        "ssl_context": ctx,
        "cert_reqs": "CERT_NONE" if opts.insecure_skip_verify_tls else "CERT_REQUIRED",
    }
    server_name = server_name_for(opts.url)
    if server_name:
        pool_kw["server_hostname"] = server_name
    logger.info(
        "Built TLS client: server_name=%s client_cert=%s ca=%s insecure=%s",
        server_name,
        opts.cert_file,
        opts.ca_file,
        opts.insecure_skip_verify_tls,
    )
    return urllib3.PoolManager(num_pools=NUM_POOLS, maxsize=MAX_CONNECTIONS, **pool_kw)
