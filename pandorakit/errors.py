class PandoraError(Exception):
    """Base class for pandorakit errors."""


class TransportError(PandoraError):
    """The request never produced a response (DNS, refused connection, timeout)."""

    def __init__(self, method: str, url: str, cause: Exception | None = None):
        self.method = method
        self.url = url
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{method} {url} failed{detail}")


class CookieParseError(PandoraError, ValueError):
    """A single Set-Cookie header could not be parsed."""

    def __init__(self, header: str, reason: str = "malformed"):
        # The raw header stays on the attribute only; it may carry a session value.
        self.header = header
        self.reason = reason
        super().__init__(f"Set-Cookie 解析失败: {reason}")
