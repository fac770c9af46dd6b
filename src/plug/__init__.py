"""Immutable HTTP request builder."""

from .client import Plug
from .config import RequestConfig, RequestParams, TransportConfig
from .cookies import CookieManager, MemoryCookieManager
from .errors import ConfigError, HttpError, PlugError
from .log import configure_logging
from .transport import OutgoingRequest, RequestsTransport, Transport
from .uri import Uri

__all__ = [
    "ConfigError",
    "CookieManager",
    "HttpError",
    "MemoryCookieManager",
    "OutgoingRequest",
    "Plug",
    "PlugError",
    "RequestConfig",
    "RequestParams",
    "RequestsTransport",
    "Transport",
    "TransportConfig",
    "Uri",
    "configure_logging",
]
