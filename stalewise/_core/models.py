from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import (
    Any,
    AsyncIterator,
    Iterator,
    Literal,
    Mapping,
    Optional,
    cast,
)

from stalewise._core._headers import Headers, parse_if_modified_since, parse_if_none_match
from stalewise._exceptions import MalformedConditionalHeader

logger = logging.getLogger("stalewise.headers")

Visibility = Literal["public", "private"]


class BytesIterable:
    """A body of zero or one chunk that can be consumed either sync or async."""

    def __init__(self, content: bytes | None = None) -> None:
        self.consumed = False
        self.content = content

    def __next__(self) -> bytes:
        if self.content and not self.consumed:
            self.consumed = True
            return self.content
        raise StopIteration()

    def __iter__(self) -> Iterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self.content and not self.consumed:
            self.consumed = True
            return self.content
        raise StopAsyncIteration()

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    def close(self) -> None:
        self.consumed = True

    async def aclose(self) -> None:
        self.consumed = True

    def __eq__(self, value: Any) -> bool:
        return isinstance(value, BytesIterable)


@dataclass(frozen=True)
class CacheDirective:
    """
    Forced-cache policy rendered into a Cache-Control header.

    Clients holding a response younger than ``max_age`` seconds reuse it without
    contacting the server, so updates made inside that window stay invisible to
    them until it elapses.

    The header is always rendered as ``<visibility>, max-age=<n>`` with a
    space after the comma. The compact ``public,max-age=30`` form is never
    produced; clients parse both the same way.

    Example:
        >>> CacheDirective(max_age=30).to_header()
        'public, max-age=30'
        >>> CacheDirective(max_age=600, visibility="private").to_header()
        'private, max-age=600'
    """

    max_age: int
    visibility: Visibility = "public"

    def __post_init__(self) -> None:
        if isinstance(self.max_age, bool) or not isinstance(self.max_age, int) or self.max_age < 0:
            raise ValueError(f"max_age must be a non-negative integer, got {self.max_age!r}")
        if self.visibility not in ("public", "private"):
            raise ValueError(f"visibility must be 'public' or 'private', got {self.visibility!r}")

    def to_header(self) -> str:
        return f"{self.visibility}, max-age={self.max_age}"


@dataclass(frozen=True)
class ConditionalRequest:
    if_modified_since: Optional[str] = None
    if_none_match: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "ConditionalRequest":
        """
        Extract the conditional fields from request headers.

        A header that is present but unparseable is treated as absent, which
        makes the validator serve the full body.
        """
        if not isinstance(headers, Headers):
            headers = Headers(dict(headers))

        if_modified_since = None
        if_none_match = None

        if "if-modified-since" in headers:
            try:
                if_modified_since = parse_if_modified_since(headers["if-modified-since"])
            except MalformedConditionalHeader as exc:
                logger.debug("Ignoring conditional header: %s", exc)

        if "if-none-match" in headers:
            try:
                if_none_match = parse_if_none_match(headers["if-none-match"])
            except MalformedConditionalHeader as exc:
                logger.debug("Ignoring conditional header: %s", exc)

        return cls(if_modified_since=if_modified_since, if_none_match=if_none_match)


@dataclass
class Request:
    method: str
    path: str
    headers: Headers = field(default_factory=lambda: Headers({}))


@dataclass
class Response:
    status_code: int
    headers: Headers = field(default_factory=lambda: Headers({}))
    stream: Iterator[bytes] | AsyncIterator[bytes] = field(default_factory=BytesIterable)

    def _iter_stream(self) -> Iterator[bytes]:
        if hasattr(self, "collected_body"):
            yield getattr(self, "collected_body")
            return
        if isinstance(self.stream, Iterator):
            yield from self.stream
            return
        raise TypeError("Response stream is not an Iterator")

    async def _aiter_stream(self) -> AsyncIterator[bytes]:
        if hasattr(self, "collected_body"):
            yield getattr(self, "collected_body")
            return
        if isinstance(self.stream, AsyncIterator):
            async for chunk in self.stream:
                yield chunk
        else:
            raise TypeError("Response stream is not an AsyncIterator")

    def read(self) -> bytes:
        """
        Synchronously reads the entire response body.
        """
        if hasattr(self, "collected_body"):
            return cast(bytes, getattr(self, "collected_body"))

        if not isinstance(self.stream, Iterator):
            raise TypeError("Response stream is not an Iterator")

        try:
            collected = b"".join([chunk for chunk in self.stream])
        finally:
            self.close()
        setattr(self, "collected_body", collected)
        return collected

    async def aread(self) -> bytes:
        """
        Asynchronously reads the entire response body.
        """
        if hasattr(self, "collected_body"):
            return cast(bytes, getattr(self, "collected_body"))

        if not isinstance(self.stream, AsyncIterator):
            raise TypeError("Response stream is not an AsyncIterator")

        try:
            collected = b"".join([chunk async for chunk in self.stream])
        finally:
            await self.aclose()
        setattr(self, "collected_body", collected)
        return collected

    def close(self) -> None:
        close = getattr(self.stream, "close", None)
        if close is not None:
            close()

    async def aclose(self) -> None:
        aclose = getattr(self.stream, "aclose", None)
        if aclose is not None:
            await aclose()


@dataclass
class StoredResource:
    content: bytes
    modified_at: float = field(default_factory=time.time)
    content_type: Optional[str] = None


def make_error_response(status_code: int, message: str, headers: Optional[Mapping[str, str]] = None) -> Response:
    body = message.encode("utf-8")
    response_headers = Headers(
        {
            "Content-Type": "text/plain; charset=utf-8",
            "Content-Length": str(len(body)),
        }
    )
    response_headers.update(headers or {})
    return Response(status_code=status_code, headers=response_headers, stream=BytesIterable(body))
