"""Immutable request builder and the request pipeline behind its verbs.

A :class:`Plug` holds a target URL, headers, a timeout, a pre-request hook
and an optional cookie manager. Every ``at``/``with_*``/``without_*`` call
returns a new Plug; the verb coroutines (``get``, ``post``, ...) send a
request built from the current state.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping, Sequence

import requests
import structlog
from requests.structures import CaseInsensitiveDict

from .config import (
    BeforeRequest,
    RequestConfig,
    RequestParams,
    derive_with,
    identity_hook,
)
from .cookies import CookieManager
from .errors import ConfigError, HttpError
from .transport import OutgoingRequest, RequestsTransport, Transport
from .uri import QueryValue, Uri, encode_segment

logger = structlog.get_logger(__name__)

URI_PART_KEYS = frozenset({"segments", "query", "exclude_query"})


@lru_cache(maxsize=None)
def default_transport() -> Transport:
    """Shared transport used by Plugs created without one."""
    return RequestsTransport()


def _apply_uri_parts(uri: Uri, uri_parts: Mapping[str, Any]) -> Uri:
    unknown = set(uri_parts) - URI_PART_KEYS
    if unknown:
        raise ConfigError(f"unknown uri_parts keys: {sorted(unknown)}")
    # Segments first, then query additions, then the query removal.
    if "segments" in uri_parts:
        uri = uri.with_segments(uri_parts["segments"])
    if "query" in uri_parts:
        uri = uri.with_query_params(uri_parts["query"])
    if "exclude_query" in uri_parts:
        uri = uri.without_query_param(uri_parts["exclude_query"])
    return uri


def _is_accepted(status: int) -> bool:
    return 200 <= status < 300 or status == 304


def _set_cookie_values(response: requests.Response) -> list[str]:
    """Return every ``Set-Cookie`` value, unmerged when possible."""
    raw_headers = getattr(response.raw, "headers", None)
    getlist = getattr(raw_headers, "getlist", None)
    if callable(getlist):
        return list(getlist("Set-Cookie"))
    value = response.headers.get("Set-Cookie")
    return [value] if value else []


class Plug:
    """A class for building URIs and performing HTTP requests."""

    def __init__(
        self,
        url: str = "/",
        *,
        uri_parts: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: int | None = None,
        before_request: BeforeRequest | None = None,
        cookie_manager: CookieManager | None = None,
        transport: Transport | None = None,
    ) -> None:
        """Create a new Plug.

        Args:
            url: The initial URL to build from and send requests to.
            uri_parts: Optional ``segments`` (already encoded), ``query`` and
                ``exclude_query`` entries applied to ``url`` in that order.
            headers: Headers sent with every request from this Plug.
            timeout: Request timeout in milliseconds, or None for no timeout.
            before_request: Called with the RequestParams of each request;
                its return value is what gets sent.
            cookie_manager: Optional cookie storage consulted before and
                after each request.
            transport: Transport to send through; a shared
                requests-backed transport is used when omitted.
        """
        self._config = RequestConfig(
            url=_apply_uri_parts(Uri(url), uri_parts or {}),
            headers=headers or {},
            timeout_ms=timeout,
            before_request=before_request or identity_hook,
            cookie_manager=cookie_manager,
        )
        self._transport = transport

    @classmethod
    def _from_config(
        cls, config: RequestConfig, transport: Transport | None
    ) -> Plug:
        plug = cls.__new__(cls)
        plug._config = config
        plug._transport = transport
        return plug

    def _derive(self, **overrides: Any) -> Plug:
        return self._from_config(
            derive_with(self._config, **overrides), self._transport
        )

    @property
    def config(self) -> RequestConfig:
        """The immutable configuration this Plug was built from."""
        return self._config

    @property
    def url(self) -> str:
        """String form of the URL used for requests."""
        return str(self._config.url)

    @property
    def headers(self) -> CaseInsensitiveDict:
        """A fresh, case-insensitive copy of this Plug's headers."""
        return CaseInsensitiveDict(self._config.headers)

    @property
    def timeout(self) -> int | None:
        """Request timeout in milliseconds, or None."""
        return self._config.timeout_ms

    @property
    def cookie_manager(self) -> CookieManager | None:
        """The cookie manager consulted around each request, if any."""
        return self._config.cookie_manager

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.url!r})"

    def at(self, *segments: object) -> Plug:
        """Return a new Plug with ``segments`` appended to the path.

        Each segment is converted to ``str`` and percent-encoded, so a ``/``
        inside a segment does not create a new path component.
        """
        values = [encode_segment(segment) for segment in segments]
        return self._derive(url=self._config.url.with_segments(values))

    def with_param(self, key: str, value: QueryValue) -> Plug:
        return self.with_params({key: value})

    def with_params(self, values: Mapping[str, QueryValue]) -> Plug:
        return self._derive(url=self._config.url.with_query_params(values))

    def without_param(self, key: str) -> Plug:
        return self._derive(url=self._config.url.without_query_param(key))

    def with_header(self, key: str, value: str) -> Plug:
        return self.with_headers({key: value})

    def with_headers(self, values: Mapping[str, str]) -> Plug:
        headers = dict(self._config.headers)
        headers.update(values)
        return self._derive(headers=headers)

    def without_header(self, key: str) -> Plug:
        headers = dict(self._config.headers)
        headers.pop(key, None)
        return self._derive(headers=headers)

    async def get(self, method: str = "GET") -> requests.Response:
        """Perform an HTTP GET request.

        Args:
            method: The HTTP method to send with the GET logic.

        Returns:
            The response, for any 2xx status or 304.

        Raises:
            HttpError: The server answered with any other status.
        """
        params = self._config.before_request(
            RequestParams(method=method, headers=dict(self._config.headers))
        )
        return await self._send(params)

    async def post(
        self,
        body: bytes | str | None,
        mime: str | None,
        method: str = "POST",
    ) -> requests.Response:
        """Perform an HTTP POST request.

        Args:
            body: The request body.
            mime: Sent as ``Content-Type`` for this request when given. The
                Plug's own headers are left untouched.
            method: The HTTP method to send with the POST logic.

        Returns:
            The response, for any 2xx status or 304.

        Raises:
            HttpError: The server answered with any other status.
        """
        headers = dict(self._config.headers)
        if mime:
            headers["Content-Type"] = mime
        params = self._config.before_request(
            RequestParams(method=method, headers=headers, body=body)
        )
        return await self._send(params)

    async def put(
        self, body: bytes | str | None, mime: str | None
    ) -> requests.Response:
        return await self.post(body, mime, "PUT")

    async def head(self) -> requests.Response:
        return await self.get("HEAD")

    async def options(self) -> requests.Response:
        return await self.get("OPTIONS")

    async def delete(self) -> requests.Response:
        return await self.post(None, None, "DELETE")

    async def _send(self, params: RequestParams) -> requests.Response:
        request = OutgoingRequest(
            url=self.url,
            method=params.method,
            headers=CaseInsensitiveDict(params.headers),
            body=params.body,
            timeout_ms=self._config.timeout_ms,
        )
        request = await self._read_cookies(request)
        logger.debug("plug.request", method=request.method, url=request.url)
        transport = self._transport or default_transport()
        response = await transport.send(request)
        logger.debug(
            "plug.response",
            method=request.method,
            url=request.url,
            status=response.status_code,
        )
        self._raise_for_status(response, request)
        return await self._store_cookies(response, request)

    async def _read_cookies(self, request: OutgoingRequest) -> OutgoingRequest:
        manager = self._config.cookie_manager
        if manager is None:
            return request
        cookie_string = await manager.get_cookie_string(request.url)
        if cookie_string != "":
            request.headers["Cookie"] = cookie_string
        return request

    @staticmethod
    def _raise_for_status(
        response: requests.Response, request: OutgoingRequest
    ) -> None:
        if _is_accepted(response.status_code):
            return
        logger.warning(
            "plug.http_error",
            method=request.method,
            url=request.url,
            status=response.status_code,
        )
        raise HttpError(
            message=response.reason or "",
            status=response.status_code,
            response_text=response.text,
            response=response,
        )

    async def _store_cookies(
        self, response: requests.Response, request: OutgoingRequest
    ) -> requests.Response:
        manager = self._config.cookie_manager
        if manager is None:
            return response
        values: Sequence[str] = _set_cookie_values(response)
        await manager.store_cookies(response.url or request.url, values)
        return response
