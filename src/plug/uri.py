"""Immutable URI value used by Plug to compose request targets."""

from __future__ import annotations

from typing import Iterable, Mapping, Union
from urllib.parse import quote, unquote_plus, urlsplit, urlunsplit

QueryValue = Union[str, int, float, bool]

# Characters encodeURIComponent leaves untouched besides alphanumerics.
SEGMENT_SAFE_CHARS = "-_.!~*'()"

# (decoded key, raw "key[=value]" text as it appears in the URL)
QueryPair = tuple[str, str]


def encode_segment(segment: object) -> str:
    """Percent-encode one path segment, including any ``/``."""
    return quote(str(segment), safe=SEGMENT_SAFE_CHARS)


def _query_value(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse_query(query: str) -> tuple[QueryPair, ...]:
    if not query:
        return ()
    return tuple(
        (unquote_plus(piece.partition("=")[0]), piece)
        for piece in query.split("&")
    )


def _encode_pair(key: str, value: QueryValue) -> QueryPair:
    raw = quote(key, safe="") + "=" + quote(_query_value(value), safe="")
    return key, raw


class Uri:
    """A parsed URL whose operations return new instances.

    Path segments handed to :meth:`with_segments` are expected to be encoded
    already. Query pairs from the original URL are rendered exactly as they
    were given; only pairs added through :meth:`with_query_params` are
    encoded here.
    """

    __slots__ = ("_scheme", "_netloc", "_path", "_query", "_fragment")

    def __init__(self, url: str = "/") -> None:
        parts = urlsplit(url)
        self._scheme = parts.scheme
        self._netloc = parts.netloc
        self._path = parts.path
        self._query = _parse_query(parts.query)
        self._fragment = parts.fragment

    def _copy(
        self,
        *,
        path: str | None = None,
        query: tuple[QueryPair, ...] | None = None,
    ) -> Uri:
        clone = Uri.__new__(Uri)
        clone._scheme = self._scheme
        clone._netloc = self._netloc
        clone._path = self._path if path is None else path
        clone._query = self._query if query is None else query
        clone._fragment = self._fragment
        return clone

    @property
    def path(self) -> str:
        return self._path

    @property
    def query(self) -> Mapping[str, str]:
        """Decoded query parameters (last value wins on repeats)."""
        return {
            key: unquote_plus(raw.partition("=")[2])
            for key, raw in self._query
        }

    def with_segments(self, segments: Iterable[str]) -> Uri:
        """Return a new Uri with ``segments`` appended to the path."""
        values = [str(segment) for segment in segments]
        if not values:
            return self
        base = self._path.rstrip("/")
        return self._copy(path=base + "/" + "/".join(values))

    def with_query_params(self, params: Mapping[str, QueryValue]) -> Uri:
        """Return a new Uri with ``params`` set.

        A key already present keeps the position of its first occurrence and
        takes the new value; any repeats of it are dropped.
        """
        query = list(self._query)
        for key, value in params.items():
            pair = _encode_pair(key, value)
            positions = [
                index
                for index, (existing, _) in enumerate(query)
                if existing == key
            ]
            if not positions:
                query.append(pair)
                continue
            query[positions[0]] = pair
            for index in reversed(positions[1:]):
                del query[index]
        return self._copy(query=tuple(query))

    def without_query_param(self, key: str) -> Uri:
        """Return a new Uri without ``key``; unchanged if it is absent."""
        if not any(existing == key for existing, _ in self._query):
            return self
        return self._copy(
            query=tuple(pair for pair in self._query if pair[0] != key)
        )

    def __str__(self) -> str:
        return urlunsplit(
            (
                self._scheme,
                self._netloc,
                self._path,
                "&".join(raw for _, raw in self._query),
                self._fragment,
            )
        )

    def __repr__(self) -> str:
        return f"Uri({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Uri):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(str(self))
