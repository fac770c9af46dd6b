"""Exceptions raised by Plug.

Transport failures are not wrapped: they surface as the ``requests``
exceptions raised by the transport. Cookie manager failures surface as
whatever the manager raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import requests


class PlugError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(PlugError, ValueError):
    """Invalid Plug or transport configuration."""


class HttpError(PlugError):
    """A response whose status is neither 2xx nor 304.

    Attributes:
        message: Status reason phrase reported by the server.
        status: Numeric HTTP status code.
        response_text: Full decoded response body.
        response: The response that triggered the error, when available.
    """

    def __init__(
        self,
        message: str,
        status: int,
        response_text: str,
        response: requests.Response | None = None,
    ) -> None:
        super().__init__(f"{status} {message}".strip())
        self.message = message
        self.status = status
        self.response_text = response_text
        self.response = response
