"""
HTTP gateway for the service's private JSON API.

Every call builds ``<base>/api/<version>/<endpoint>[?query]``, attaches the
JSON content type, the anti-forgery header and the session cookies, and folds
the response's ``Set-Cookie`` headers back into the shared :class:`CookieJar`
before handing the result to the caller. Non-2xx statuses are returned, not
raised.
"""

import json
import logging
import os
from dataclasses import dataclass, replace
from http.cookiejar import CookieJar as _StdCookieJar, DefaultCookiePolicy
from typing import Any
from urllib.parse import urlencode

import httpx

from .cookies import CookieJar
from .errors import TransportError

logger = logging.getLogger("pandorakit")

BASE_URL = os.getenv("PANDORAKIT_BASE_URL", "https://www.pandora.com")
TIMEOUT = float(os.getenv("PANDORAKIT_TIMEOUT", "15.0"))

DESKTOP_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)

CSRF_COOKIE = "csrftoken"
CSRF_HEADER = "X-CsrfToken"
AUTH_TOKEN_HEADER = "X-AuthToken"
DEFAULT_VERSION = "v1"
DEFAULT_METHOD = "POST"

# HTTPStatusError never reaches here: statuses are returned, not raised.
NETWORK_EXCEPTIONS = (
    httpx.HTTPError,
    httpx.TimeoutException,
)


@dataclass
class RequestOptions:
    version: str = DEFAULT_VERSION
    method: str = DEFAULT_METHOD
    query: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    content: Any = None
    attach_cookies: bool = True
    attach_auth_token: bool = True


@dataclass
class ApiResponse:
    response: httpx.Response
    body: str = ""

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def ok(self) -> bool:
        return 200 <= self.response.status_code < 300

    def json(self) -> Any:
        if not self.body.strip():
            raise ValueError(f"空响应体 (HTTP {self.status_code})")
        return json.loads(self.body)


class _RefuseCookies(DefaultCookiePolicy):
    """Keeps httpx's built-in jar empty; CookieJar owns session cookies."""

    def set_ok(self, cookie, request):
        return False

    def return_ok(self, cookie, request):
        return False


def _isolated_cookies() -> _StdCookieJar:
    return _StdCookieJar(policy=_RefuseCookies())


def _headers() -> dict[str, str]:
    return {
        "User-Agent": DESKTOP_UA,
        "Accept": "application/json, text/plain, */*",
    }


class _BaseGateway:
    def __init__(self, jar: CookieJar | None = None, base_url: str = BASE_URL, timeout: float = TIMEOUT):
        self.jar = jar if jar is not None else CookieJar()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Reserved: nothing populates this yet, callers may set it.
        self.auth_token: str | None = None

    @property
    def root_url(self) -> str:
        return f"{self.base_url}/"

    def build_url(self, endpoint: str, version: str = DEFAULT_VERSION, query: dict | None = None) -> str:
        endpoint = (endpoint or "").lstrip("/")
        if not endpoint:
            raise ValueError("endpoint 不能为空")
        url = f"{self.base_url}/api/{version or DEFAULT_VERSION}/{endpoint}"
        if query:
            url = f"{url}?{urlencode(query, doseq=True)}"
        return url

    def build_headers(self, options: RequestOptions) -> httpx.Headers:
        # Empty until the first csrftoken cookie arrives.
        headers = httpx.Headers({
            "Content-Type": "application/json",
            CSRF_HEADER: self.jar.get(CSRF_COOKIE) or "",
        })
        if options.attach_auth_token and self.auth_token:
            headers[AUTH_TOKEN_HEADER] = self.auth_token
        if options.attach_cookies:
            cookie_string = self.jar.get_cookie_string()
            if cookie_string:
                headers["Cookie"] = cookie_string
        for key, value in (options.headers or {}).items():
            headers[key] = value
        return headers

    def _prepare(self, endpoint: str, options: RequestOptions | None, overrides: dict):
        options = replace(options or RequestOptions(), **overrides)
        method = (options.method or DEFAULT_METHOD).upper()
        url = self.build_url(endpoint, options.version, options.query)
        headers = self.build_headers(options)
        body = json.dumps(options.content) if options.content is not None else None
        return method, url, headers, body

    def _prepare_root(self):
        return "HEAD", self.root_url, self.build_headers(RequestOptions())

    def _ingest(self, method: str, url: str, response: httpx.Response) -> None:
        # Headers are in hand; cookies are kept even if reading the body fails.
        applied = self.jar.ingest(response.headers.get_list("set-cookie"))
        logger.debug(f"{method} {url} -> {response.status_code} ({applied} cookies)")

    def _transport_failed(self, method: str, url: str, e: Exception) -> TransportError:
        logger.warning(f"请求失败 {method} {url}: {e}")
        return TransportError(method, url, e)


class ApiGateway(_BaseGateway):
    """Blocking gateway backed by ``httpx.Client``."""

    def __init__(
        self,
        jar: CookieJar | None = None,
        base_url: str = BASE_URL,
        timeout: float = TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        super().__init__(jar=jar, base_url=base_url, timeout=timeout)
        self._client = httpx.Client(
            timeout=timeout,
            headers=_headers(),
            cookies=_isolated_cookies(),
            transport=transport,
        )

    def _send(self, method: str, url: str, headers: httpx.Headers, body: str | None = None) -> ApiResponse:
        logger.debug(f"{method} {url}")
        request = self._client.build_request(method, url, headers=headers, content=body)
        try:
            response = self._client.send(request, stream=True)
        except NETWORK_EXCEPTIONS as e:
            raise self._transport_failed(method, url, e) from e
        self._ingest(method, url, response)
        try:
            response.read()
        except NETWORK_EXCEPTIONS as e:
            raise self._transport_failed(method, url, e) from e
        finally:
            response.close()
        return ApiResponse(response=response, body=response.text)

    def call(self, endpoint: str, options: RequestOptions | None = None, **overrides) -> ApiResponse:
        return self._send(*self._prepare(endpoint, options, overrides))

    def head_root(self) -> ApiResponse:
        """HEAD the service root (outside ``/api/``) to pick up the anti-forgery cookie."""
        return self._send(*self._prepare_root())

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class AsyncApiGateway(_BaseGateway):
    """Awaitable gateway backed by ``httpx.AsyncClient``; one await per call."""

    def __init__(
        self,
        jar: CookieJar | None = None,
        base_url: str = BASE_URL,
        timeout: float = TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(jar=jar, base_url=base_url, timeout=timeout)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers=_headers(),
            cookies=_isolated_cookies(),
            transport=transport,
        )

    async def _send(self, method: str, url: str, headers: httpx.Headers, body: str | None = None) -> ApiResponse:
        logger.debug(f"{method} {url}")
        request = self._client.build_request(method, url, headers=headers, content=body)
        try:
            response = await self._client.send(request, stream=True)
        except NETWORK_EXCEPTIONS as e:
            raise self._transport_failed(method, url, e) from e
        self._ingest(method, url, response)
        try:
            await response.aread()
        except NETWORK_EXCEPTIONS as e:
            raise self._transport_failed(method, url, e) from e
        finally:
            await response.aclose()
        return ApiResponse(response=response, body=response.text)

    async def call(self, endpoint: str, options: RequestOptions | None = None, **overrides) -> ApiResponse:
        return await self._send(*self._prepare(endpoint, options, overrides))

    async def head_root(self) -> ApiResponse:
        return await self._send(*self._prepare_root())

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False
