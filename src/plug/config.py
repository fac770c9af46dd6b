"""Configuration models for Plug and its default transport."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Mapping

from .errors import ConfigError
from .uri import Uri

if TYPE_CHECKING:
    from .cookies import CookieManager

DEFAULT_USER_AGENT = "plug/0.1"


def _default_headers() -> Mapping[str, str]:
    """Return immutable empty default headers mapping."""

    return MappingProxyType({})


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass
class RequestParams:
    """Per-call request parameters handed to the pre-request hook."""

    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | str | None = None


BeforeRequest = Callable[[RequestParams], RequestParams]


def identity_hook(params: RequestParams) -> RequestParams:
    return params


@dataclass(frozen=True)
class RequestConfig:
    """Immutable state behind a Plug.

    Derived configs are produced with :func:`derive_with`; an existing
    instance is never modified.
    """

    url: Uri = field(default_factory=Uri)
    headers: Mapping[str, str] = field(default_factory=_default_headers)
    timeout_ms: int | None = None
    before_request: BeforeRequest = identity_hook
    cookie_manager: CookieManager | None = None

    def __post_init__(self) -> None:
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise ConfigError("timeout must be > 0 milliseconds when provided")
        if not callable(self.before_request):
            raise ConfigError("before_request must be callable")

        # Each config owns a frozen copy so derived configs never alias.
        object.__setattr__(
            self,
            "headers",
            MappingProxyType(dict(self.headers)),
        )


def derive_with(config: RequestConfig, **overrides: Any) -> RequestConfig:
    """Return a copy of ``config`` with ``overrides`` applied."""
    return dataclasses.replace(config, **overrides)


@dataclass(frozen=True)
class TransportConfig:
    """Configuration for the requests-backed transport."""

    user_agent: str | None = DEFAULT_USER_AGENT
    default_headers: Mapping[str, str] = field(default_factory=_default_headers)
    verify_tls: bool = True
    allow_redirects: bool = True

    def __post_init__(self) -> None:
        # Freeze copied headers to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "default_headers",
            MappingProxyType(dict(self.default_headers)),
        )

    @classmethod
    def from_env(cls) -> TransportConfig:
        """Create a config from ``PLUG_*`` environment variables.

        Unset or unparsable values fall back to the class defaults.
        """
        return cls(
            user_agent=os.getenv("PLUG_USER_AGENT", DEFAULT_USER_AGENT),
            verify_tls=_bool_env("PLUG_VERIFY_TLS", True),
            allow_redirects=_bool_env("PLUG_ALLOW_REDIRECTS", True),
        )
