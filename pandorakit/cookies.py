"""
Session cookie jar.

Holds one value per cookie name for the service's domain, serialises the
``Cookie`` request header and folds ``Set-Cookie`` response headers back in.

Example Set-Cookie headers seen from the service:

    v2regbstage=;Version=1;Path=/;Domain=.pandora.com;Expires=Thu, 01-Jan-1970 00:00:00 GMT;Max-Age=0
    csrftoken=3c9d209bafb5729b;Path=/;Domain=.pandora.com;Secure
"""

import logging
import re
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from http.cookiejar import http2time

from .errors import CookieParseError

logger = logging.getLogger("pandorakit")

# RFC 6265 token characters.
_NAME_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

_ATTRIBUTES = {
    "domain": "domain",
    "path": "path",
    "expires": "expires",
    "max-age": "max_age",
    "samesite": "samesite",
    "version": "version",
}
_FLAGS = {"secure": "secure", "httponly": "httponly"}


@dataclass
class Cookie:
    name: str
    value: str = ""
    domain: str = ""
    path: str = ""
    expires: str = ""
    max_age: str = ""
    samesite: str = ""
    version: str = ""
    secure: bool = False
    httponly: bool = False
    extra: dict[str, str] = field(default_factory=dict)

    def is_expired(self, now: float | None = None) -> bool:
        """Max-Age wins over Expires; unparseable values never expire the cookie."""
        if self.max_age:
            try:
                return int(self.max_age) <= 0
            except ValueError:
                pass
        if self.expires:
            ts = http2time(self.expires)
            if ts is not None:
                return ts <= (time.time() if now is None else now)
        return False


def parse_set_cookie(header: str) -> Cookie:
    """Parse one raw ``Set-Cookie`` header value into a :class:`Cookie`."""
    if not isinstance(header, str) or not header.strip():
        raise CookieParseError(str(header), "empty")

    first, *attrs = header.split(";")
    if "=" not in first:
        raise CookieParseError(header, "missing '='")
    name, value = first.split("=", 1)
    name = name.strip()
    value = value.strip()
    if not _NAME_RE.match(name):
        raise CookieParseError(header, "invalid name")
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]

    cookie = Cookie(name=name, value=value)
    for attr in attrs:
        attr = attr.strip()
        if not attr:
            continue
        key, _, val = attr.partition("=")
        key_l = key.strip().lower()
        if key_l in _FLAGS:
            setattr(cookie, _FLAGS[key_l], True)
        elif key_l in _ATTRIBUTES:
            setattr(cookie, _ATTRIBUTES[key_l], val.strip())
        else:
            cookie.extra[key.strip()] = val.strip()
    return cookie


class CookieJar:
    """Name-keyed cookie store shared by a gateway and its session."""

    def __init__(self) -> None:
        self._cookies: dict[str, Cookie] = {}
        self._lock = threading.Lock()

    def set_cookie(self, name: str, value: str, attributes: dict | None = None) -> None:
        """Insert or overwrite ``name``. An expired cookie removes the entry instead."""
        cookie = Cookie(name=name, value=value)
        for key, val in (attributes or {}).items():
            attr = str(key).lower().replace("-", "_")
            if attr in ("secure", "httponly"):
                setattr(cookie, attr, bool(val))
            elif attr in ("domain", "path", "expires", "max_age", "samesite", "version"):
                setattr(cookie, attr, str(val))
            else:
                cookie.extra[str(key)] = str(val)
        self._store(cookie)

    def _store(self, cookie: Cookie) -> None:
        with self._lock:
            # Re-inserting moves the name to the end of the serialisation order.
            self._cookies.pop(cookie.name, None)
            if cookie.is_expired():
                logger.debug(f"cookie 已过期，移除: {cookie.name}")
                return
            self._cookies[cookie.name] = cookie
        logger.debug(f"cookie 已更新: {cookie.name}")

    def ingest(self, headers: Iterable[str]) -> int:
        """Apply each raw Set-Cookie header; malformed ones are skipped.

        Returns the number of headers applied.
        """
        applied = 0
        for header in headers or ():
            try:
                cookie = parse_set_cookie(header)
            except CookieParseError as e:
                logger.warning(f"跳过无效 cookie: {e}")
                continue
            self._store(cookie)
            applied += 1
        return applied

    def get_cookie_string(self) -> str:
        with self._lock:
            return "; ".join(f"{c.name}={c.value}" for c in self._cookies.values())

    def get(self, name: str, default: str | None = None) -> str | None:
        with self._lock:
            cookie = self._cookies.get(name)
        return cookie.value if cookie else default

    def get_cookie(self, name: str) -> Cookie | None:
        with self._lock:
            return self._cookies.get(name)

    def as_dict(self) -> dict[str, str]:
        with self._lock:
            return {name: c.value for name, c in self._cookies.items()}

    def clear(self) -> None:
        with self._lock:
            self._cookies.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._cookies

    def __len__(self) -> int:
        with self._lock:
            return len(self._cookies)

    def __repr__(self) -> str:
        return f"<CookieJar {sorted(self.as_dict())}>"
