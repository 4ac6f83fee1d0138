import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from .config import EnvSettings
from .errors import UnsupportedSchemeError
from .file import FileGetter
from .metrics import Metrics
from .net import HTTPGetter
from .oci import OCI_SCHEME, OCIGetter
from .types import Getter, GetterConstructor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Provider:
    schemes: Tuple[str, ...]
    new: GetterConstructor

    def provides(self, scheme: str) -> bool:
        return scheme.lower() in self.schemes


class Providers:
    """Read-only scheme table. Build it once with :func:`all_providers` and pass it around."""

    def __init__(self, providers: Iterable[Provider], defaults: Optional[Callable[[], list]] = None):
        self._providers: Tuple[Provider, ...] = tuple(providers)
        self._defaults = defaults or list

    def __iter__(self):
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def schemes(self) -> List[str]:
        return [s for p in self._providers for s in p.schemes]

    def by_scheme(self, scheme: str) -> Getter:
        for p in self._providers:
            if p.provides(scheme):
                logger.debug("Constructing getter for scheme %s", scheme)
                return p.new(*self._defaults())
        raise UnsupportedSchemeError(
            f"scheme {scheme!r} not supported, registered: {', '.join(self.schemes()) or '(none)'}",
            scheme=scheme,
        )

    def for_url(self, href: str) -> Getter:
        scheme = urlparse(href).scheme
        try:
            return self.by_scheme(scheme)
        except UnsupportedSchemeError as exc:
            raise UnsupportedSchemeError(exc.message, href=href, scheme=scheme) from exc


def all_providers(settings: EnvSettings, metrics: Optional[Metrics] = None) -> Providers:
    providers = [
        Provider(("http", "https"), partial(HTTPGetter, metrics=metrics)),
        Provider(("file",), partial(FileGetter, metrics=metrics)),
    ]
    if settings.enable_oci:
        providers.append(
            Provider((OCI_SCHEME,), partial(OCIGetter, plain_http=settings.plain_http, metrics=metrics))
        )
    logger.debug("Registered schemes: %s", ", ".join(s for p in providers for s in p.schemes))
    return Providers(providers, defaults=settings.default_options)
