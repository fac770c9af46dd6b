"""Cookie manager contract and an in-memory implementation."""

from __future__ import annotations

import asyncio
from http.client import HTTPMessage
from typing import Protocol, Sequence

import requests
import structlog
from requests.cookies import (
    MockRequest,
    MockResponse,
    RequestsCookieJar,
    get_cookie_header,
)

logger = structlog.get_logger(__name__)


class CookieManager(Protocol):
    """Cookie storage used by Plug before and after each request."""

    async def get_cookie_string(self, url: str) -> str:
        """Return the ``Cookie`` header value for ``url`` or ``""``."""
        ...

    async def store_cookies(
        self, url: str, set_cookie_values: Sequence[str]
    ) -> None:
        """Persist the ``Set-Cookie`` header values received from ``url``."""
        ...


class MemoryCookieManager:
    """CookieManager backed by a ``requests`` cookie jar.

    Set-Cookie values go through the jar's cookie policy, so foreign
    ``Domain`` attributes are rejected and cookies with a past ``Expires``
    or a zero ``Max-Age`` are removed. Access to the jar is serialized so
    concurrent requests sharing one manager see consistent state.
    """

    def __init__(self, jar: RequestsCookieJar | None = None) -> None:
        self.jar = jar if jar is not None else RequestsCookieJar()
        self._lock = asyncio.Lock()

    async def get_cookie_string(self, url: str) -> str:
        prepared = requests.Request("GET", url).prepare()
        async with self._lock:
            return get_cookie_header(self.jar, prepared) or ""

    async def store_cookies(
        self, url: str, set_cookie_values: Sequence[str]
    ) -> None:
        if not set_cookie_values:
            return
        message = HTTPMessage()
        for value in set_cookie_values:
            message["Set-Cookie"] = value
        prepared = requests.Request("GET", url).prepare()
        async with self._lock:
            self.jar.extract_cookies(
                MockResponse(message), MockRequest(prepared)
            )
        logger.debug(
            "plug.cookies_stored", url=url, count=len(set_cookie_values)
        )
