from typing import Optional


class GetterError(Exception):
    """Base class for every failure raised while resolving or fetching a locator.

    The rendered message always carries the locator, its scheme and the
    underlying cause when known, so a bad certificate path reads differently
    from a refused connection.
    """

    def __init__(
        self,
        message: str,
        href: str = "",
        scheme: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        self.message = message
        self.href = href
        self.scheme = scheme
        self.cause = cause
        super().__init__(self._format())

    def _format(self) -> str:
        context = []
        if self.href:
            context.append(f"href={self.href}")
        if self.scheme:
            context.append(f"scheme={self.scheme}")
        if self.cause is not None:
            context.append(f"cause={self.cause}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(GetterError):
    pass


class CredentialError(GetterError):
    pass


class UnsupportedSchemeError(GetterError):
    pass


class NetworkError(GetterError):
    pass


class FetchError(GetterError):
    def __init__(
        self,
        message: str,
        href: str = "",
        scheme: str = "",
        cause: Optional[BaseException] = None,
        status: Optional[int] = None,
        body: bytes = b"",
    ) -> None:
        self.status = status
        self.body = body
        super().__init__(message, href=href, scheme=scheme, cause=cause)
