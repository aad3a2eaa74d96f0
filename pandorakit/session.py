"""
Session bootstrap: anti-forgery cookie first, then credentialed login.

    with Session() as s:
        res = s.login("user@example.com", "secret")
        print(res.json())

The login body is returned as-is; callers decide whether it means success.
"""

import enum
import logging

from .cookies import CookieJar
from .http import CSRF_COOKIE, ApiGateway, ApiResponse, AsyncApiGateway, RequestOptions

logger = logging.getLogger("pandorakit")

LOGIN_ENDPOINT = "auth/login"


class SessionState(enum.Enum):
    """ESTABLISHED means the login exchange completed, not that the credentials were accepted.

    Inspect the login response body to tell the two apart.
    """

    UNAUTHENTICATED = "unauthenticated"
    ESTABLISHED = "established"


def _login_content(username: str, password: str) -> dict:
    return {"username": username, "password": password}


class Session:
    """Owns a gateway (and through it the cookie jar) for one logged-in user."""

    def __init__(self, gateway: ApiGateway | None = None, **gateway_kwargs):
        self.gateway = gateway if gateway is not None else ApiGateway(**gateway_kwargs)
        self.state = SessionState.UNAUTHENTICATED

    @property
    def jar(self) -> CookieJar:
        return self.gateway.jar

    @property
    def is_established(self) -> bool:
        return self.state is SessionState.ESTABLISHED

    def fetch_csrf_token(self) -> str | None:
        """HEAD the service root and return the anti-forgery cookie, if one was set."""
        self.gateway.head_root()
        token = self.jar.get(CSRF_COOKIE)
        if token is None:
            logger.warning("未获取到 csrftoken，登录请求将携带空的 X-CsrfToken")
        return token

    def login(self, username: str, password: str) -> ApiResponse:
        # Step 2 needs the cookie from step 1; a TransportError here aborts before login.
        self.fetch_csrf_token()
        logger.debug(f"登录中: {LOGIN_ENDPOINT}")
        res = self.gateway.call(LOGIN_ENDPOINT, content=_login_content(username, password))
        self.state = SessionState.ESTABLISHED
        return res

    def call(self, endpoint: str, options: RequestOptions | None = None, **overrides) -> ApiResponse:
        return self.gateway.call(endpoint, options, **overrides)

    def close(self) -> None:
        self.gateway.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class AsyncSession:
    """Awaitable counterpart of :class:`Session`."""

    def __init__(self, gateway: AsyncApiGateway | None = None, **gateway_kwargs):
        self.gateway = gateway if gateway is not None else AsyncApiGateway(**gateway_kwargs)
        self.state = SessionState.UNAUTHENTICATED

    @property
    def jar(self) -> CookieJar:
        return self.gateway.jar

    @property
    def is_established(self) -> bool:
        return self.state is SessionState.ESTABLISHED

    async def fetch_csrf_token(self) -> str | None:
        await self.gateway.head_root()
        token = self.jar.get(CSRF_COOKIE)
        if token is None:
            logger.warning("未获取到 csrftoken，登录请求将携带空的 X-CsrfToken")
        return token

    async def login(self, username: str, password: str) -> ApiResponse:
        await self.fetch_csrf_token()
        logger.debug(f"登录中: {LOGIN_ENDPOINT}")
        res = await self.gateway.call(LOGIN_ENDPOINT, content=_login_content(username, password))
        self.state = SessionState.ESTABLISHED
        return res

    async def call(self, endpoint: str, options: RequestOptions | None = None, **overrides) -> ApiResponse:
        return await self.gateway.call(endpoint, options, **overrides)

    async def aclose(self) -> None:
        await self.gateway.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False
