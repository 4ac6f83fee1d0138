import json
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlencode

from .errors import ConfigurationError, CredentialError, FetchError
from .metrics import Metrics
from .net import HTTPGetter, raise_for_status, request_headers
from .options import Option, Options, parse_url


logger = logging.getLogger(__name__)

OCI_SCHEME = "oci"
MANIFEST_MEDIA_TYPE = "application/vnd.oci.image.manifest.v1+json"
CHART_LAYER_MEDIA_TYPE = "application/vnd.cncf.helm.chart.content.v1.tar+gzip"
DEFAULT_TAG = "latest"

_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


@dataclass(frozen=True)
class Reference:
    registry: str
    repository: str
    reference: str


def parse_reference(href: str, version: Optional[str] = None) -> Reference:
    """Split ``oci://host[:port]/repo[:tag|@digest]`` into its parts.

    A tag in the locator wins over ``version``; ``+`` is not valid in OCI tags
    and is stored as ``_``.
    """
    parsed = parse_url(href)
    if parsed.scheme.lower() != OCI_SCHEME:
        raise ConfigurationError("not an OCI reference", href=href, scheme=parsed.scheme)
    path = parsed.path.lstrip("/")
    if not path:
        raise ConfigurationError("OCI reference has no repository", href=href, scheme=OCI_SCHEME)
    if "@" in path:
        repository, ref = path.split("@", 1)
        return Reference(parsed.netloc, repository, ref)
    name = path.rsplit("/", 1)[-1]
    if ":" in name:
        repository, tag = path.rsplit(":", 1)
    else:
        repository, tag = path, version or DEFAULT_TAG
    return Reference(parsed.netloc, repository, tag.replace("+", "_"))


def parse_bearer_challenge(header: Optional[str]) -> Optional[Dict[str, str]]:
    if not header or not header.lower().startswith("bearer "):
        return None
    return dict(_CHALLENGE_PARAM.findall(header[len("bearer "):]))


class OCIGetter(HTTPGetter):
    """Pulls the artifact layer of an OCI manifest from a registry."""

    def __init__(
        self,
        *options: Option,
        plain_http: bool = False,
        layer_media_type: str = CHART_LAYER_MEDIA_TYPE,
        metrics: Optional[Metrics] = None,
    ):
        super().__init__(*options, metrics=metrics)
        self.plain_http = plain_http
        self.layer_media_type = layer_media_type

    def _get(self, href: str, opts: Options) -> bytes:
        ref = parse_reference(href, opts.version)
        scheme = "http" if self.plain_http else "https"
        base = f"{scheme}://{ref.registry}/v2/{ref.repository}"
        tokens: Dict[str, str] = {}

        raw = self._registry_get(
            href, f"{base}/manifests/{ref.reference}", opts, tokens, accept=opts.accept or MANIFEST_MEDIA_TYPE
        )
        try:
            manifest = json.loads(raw)
        except ValueError as exc:
            raise FetchError("manifest is not valid JSON", href=href, scheme=OCI_SCHEME, cause=exc) from exc

        layers = (manifest.get("layers") or []) if isinstance(manifest, dict) else []
        if not layers:
            raise FetchError("manifest has no layers", href=href, scheme=OCI_SCHEME)
        layer = next((l for l in layers if l.get("mediaType") == self.layer_media_type), layers[0])
        digest = layer.get("digest")
        if not digest:
            raise FetchError("manifest layer has no digest", href=href, scheme=OCI_SCHEME)
        logger.debug("Pulling layer %s (%s) for %s", digest, layer.get("mediaType"), href)
        return self._registry_get(href, f"{base}/blobs/{digest}", opts, tokens)

    def _registry_get(
        self,
        href: str,
        url: str,
        opts: Options,
        tokens: Dict[str, str],
        accept: Optional[str] = None,
    ) -> bytes:
        headers = request_headers(opts)
        if accept:
            headers["Accept"] = accept
        if "bearer" in tokens:
            headers["Authorization"] = f"Bearer {tokens['bearer']}"
        response = self.request(url, opts, headers)

        if response.status == 401 and "bearer" not in tokens:
            challenge = parse_bearer_challenge(response.headers.get("WWW-Authenticate"))
            if challenge:
                tokens["bearer"] = self._fetch_token(href, challenge, opts)
                headers["Authorization"] = f"Bearer {tokens['bearer']}"
                response = self.request(url, opts, headers)

        raise_for_status(response, href, OCI_SCHEME)
        return response.data or b""

    def _fetch_token(self, href: str, challenge: Dict[str, str], opts: Options) -> str:
        realm = challenge.get("realm")
        if not realm:
            raise CredentialError("bearer challenge has no realm", href=href, scheme=OCI_SCHEME)
        params = {k: v for k, v in challenge.items() if k in ("service", "scope")}
        token_url = f"{realm}?{urlencode(params)}" if params else realm
        logger.debug("Requesting registry token from %s", realm)

        response = self.request(token_url, opts, request_headers(opts))
        if response.status in (401, 403):
            raise CredentialError(
                f"registry refused credentials: {response.status}", href=href, scheme=OCI_SCHEME
            )
        raise_for_status(response, href, OCI_SCHEME)
        try:
            payload = json.loads(response.data or b"{}")
        except ValueError as exc:
            raise CredentialError("token response is not valid JSON", href=href, scheme=OCI_SCHEME, cause=exc) from exc
        token = payload.get("token") or payload.get("access_token")
        if not token:
            raise CredentialError("token response has no token", href=href, scheme=OCI_SCHEME)
        return token

