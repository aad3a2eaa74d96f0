from .cookies import Cookie, CookieJar, parse_set_cookie
from .errors import CookieParseError, PandoraError, TransportError
from .http import (
    AUTH_TOKEN_HEADER,
    BASE_URL,
    CSRF_COOKIE,
    CSRF_HEADER,
    NETWORK_EXCEPTIONS,
    TIMEOUT,
    ApiGateway,
    ApiResponse,
    AsyncApiGateway,
    RequestOptions,
)
from .session import LOGIN_ENDPOINT, AsyncSession, Session, SessionState

__version__ = "0.1.0"

__all__ = [
    "AUTH_TOKEN_HEADER",
    "BASE_URL",
    "CSRF_COOKIE",
    "CSRF_HEADER",
    "LOGIN_ENDPOINT",
    "NETWORK_EXCEPTIONS",
    "TIMEOUT",
    "ApiGateway",
    "ApiResponse",
    "AsyncApiGateway",
    "AsyncSession",
    "Cookie",
    "CookieJar",
    "CookieParseError",
    "PandoraError",
    "RequestOptions",
    "Session",
    "SessionState",
    "TransportError",
    "parse_set_cookie",
]
