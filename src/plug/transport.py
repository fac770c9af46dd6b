"""Transport primitive used by the Plug request pipeline.

A transport takes a fully composed :class:`OutgoingRequest` and returns the
response. It does not interpret status codes; the pipeline does.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from http.cookiejar import DefaultCookiePolicy
from typing import Protocol

import requests
from requests.structures import CaseInsensitiveDict

from .config import TransportConfig


@dataclass
class OutgoingRequest:
    """Request envelope built by the pipeline for one verb call."""

    url: str
    method: str
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes | str | None = None
    timeout_ms: int | None = None

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout_ms is None:
            return None
        return self.timeout_ms / 1000


class Transport(Protocol):
    """Minimal protocol for sending one HTTP request."""

    async def send(self, request: OutgoingRequest) -> requests.Response: ...


class RequestsTransport:
    """Transport backed by a ``requests.Session``.

    The blocking call runs in a worker thread so the event loop is not held.
    The session's cookie jar accepts no cookies: cookies are only sent and
    stored through a Plug's cookie manager.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Create a new RequestsTransport.

        Args:
            config: Transport defaults; read from the environment when omitted.
            session: Session to send through; a new one is created if omitted.
        """
        self._config = config or TransportConfig.from_env()
        self._session = session or requests.Session()
        self._session.cookies.clear()
        self._session.cookies.set_policy(
            DefaultCookiePolicy(allowed_domains=[])
        )
        if self._config.user_agent:
            self._session.headers["User-Agent"] = self._config.user_agent
        self._session.headers.update(self._config.default_headers)

    @property
    def session(self) -> requests.Session:
        return self._session

    def _send_blocking(self, request: OutgoingRequest) -> requests.Response:
        return self._session.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            data=request.body,
            timeout=request.timeout_seconds,
            allow_redirects=self._config.allow_redirects,
            verify=self._config.verify_tls,
        )

    async def send(self, request: OutgoingRequest) -> requests.Response:
        return await asyncio.to_thread(self._send_blocking, request)

    def close(self) -> None:
        self._session.close()
