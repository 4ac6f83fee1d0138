import io
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from .errors import ConfigurationError, FetchError
from .metrics import FetchTimer, Metrics
from .options import Option, Options, apply_options, parse_url


logger = logging.getLogger(__name__)


def path_from_url(href: str) -> Path:
    parsed = parse_url(href)
    if parsed.scheme.lower() != "file":
        raise ConfigurationError("not a file URL", href=href, scheme=parsed.scheme)
    if parsed.netloc and parsed.netloc != "localhost":
        raise ConfigurationError("file URLs must not name a remote host", href=href, scheme=parsed.scheme)
    return Path(unquote(parsed.path))


class FileGetter:
    """Reads file:// locators from the local filesystem."""

    def __init__(self, *options: Option, metrics: Optional[Metrics] = None):
        self.opts = apply_options(Options(), *options)
        self.metrics = metrics

    def get(self, href: str, *options: Option) -> io.BytesIO:
        # Applied only so malformed options fail here as they do for network getters.
        apply_options(self.opts, *options)
        path = path_from_url(href)
        logger.debug("Reading %s", path)
        with FetchTimer(self.metrics) as timer:
            try:
                data = path.read_bytes()
            except OSError as exc:
                raise FetchError(f"can't read {path}", href=href, scheme="file", cause=exc) from exc
            timer.bytes_read = len(data)
        return io.BytesIO(data)
