import io
import logging
from typing import Dict, Optional

import urllib3
from urllib3 import exceptions as urllib3_exc
from urllib3.util.retry import Retry

from .errors import ConfigurationError, FetchError, NetworkError
from .metrics import FetchTimer, Metrics
from .options import Option, Options, apply_options, parse_url
from .transport import build_client, default_client, transport_key
from .version import default_user_agent


logger = logging.getLogger(__name__)

MAX_REDIRECTS = 10


def redirect_policy(pass_credentials_all: bool) -> Retry:
    # Follow redirects but never retry a failed request.
    return Retry(
        total=None,
        connect=0,
        read=0,
        status=0,
        other=0,
        redirect=MAX_REDIRECTS,
        raise_on_redirect=True,
        raise_on_status=False,
        remove_headers_on_redirect=() if pass_credentials_all else Retry.DEFAULT_REMOVE_HEADERS_ON_REDIRECT,
    )


def request_headers(opts: Options) -> Dict[str, str]:
    headers = {"User-Agent": opts.user_agent or default_user_agent()}
    # An empty username is still a username; only None means unset.
    if opts.username is not None:
        auth = urllib3.make_headers(basic_auth=f"{opts.username}:{opts.password or ''}")
        headers["Authorization"] = auth["authorization"]
    return headers


def raise_for_status(response: urllib3.BaseHTTPResponse, href: str, scheme: str) -> None:
    if 200 <= response.status < 300:
        return
    raise FetchError(
        f"failed to fetch: {response.status} {response.reason or ''}".rstrip(),
        href=href,
        scheme=scheme,
        status=response.status,
        body=response.data or b"",
    )


class HTTPGetter:
    """Fetches http:// and https:// locators into memory."""

    def __init__(self, *options: Option, metrics: Optional[Metrics] = None):
        self.opts = apply_options(Options(), *options)
        self.client = build_client(self.opts)
        self.metrics = metrics
        self._client_key = transport_key(self.opts)

    def get(self, href: str, *options: Option) -> io.BytesIO:
        opts = apply_options(self.opts, *options)
        with FetchTimer(self.metrics) as timer:
            body = self._get(href, opts)
            timer.bytes_read = len(body)
        return io.BytesIO(body)

    def _get(self, href: str, opts: Options) -> bytes:
        response = self.request(href, opts, request_headers(opts))
        raise_for_status(response, href, parse_url(href).scheme)
        return response.data or b""

    def _client_for(self, opts: Options) -> urllib3.PoolManager:
        if transport_key(opts) == self._client_key:
            return self.client
        return build_client(opts)

    def request(self, href: str, opts: Options, headers: Dict[str, str]) -> urllib3.BaseHTTPResponse:
        """Send a GET for ``href`` and return the response whatever its status."""
        scheme = parse_url(href).scheme
        client = self._client_for(opts)
        kwargs = {}
        if opts.timeout > 0:
            kwargs["timeout"] = urllib3.Timeout(total=opts.timeout)
        logger.debug("GET %s", href)
        try:
            return client.request(
                "GET",
                href,
                headers=headers,
                retries=redirect_policy(opts.pass_credentials_all),
                preload_content=True,
                **kwargs,
            )
        except urllib3_exc.LocationValueError as exc:
            raise ConfigurationError("invalid URL", href=href, scheme=scheme, cause=exc) from exc
        except urllib3_exc.MaxRetryError as exc:
            if isinstance(exc.reason, urllib3_exc.ResponseError):
                raise FetchError("too many redirects", href=href, scheme=scheme, cause=exc.reason) from exc
            raise NetworkError("request failed", href=href, scheme=scheme, cause=exc.reason) from exc
        except urllib3_exc.HTTPError as exc:
            raise NetworkError("request failed", href=href, scheme=scheme, cause=exc) from exc
        finally:
            if client is not self.client and client is not default_client():
                client.clear()
