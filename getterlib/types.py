import io
from typing import Callable, Protocol

from .options import Option


class Getter(Protocol):
    def get(self, href: str, *options: Option) -> io.BytesIO: ...


GetterConstructor = Callable[..., Getter]
