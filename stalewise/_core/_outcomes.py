from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Iterator, Optional, Union

from stalewise._core._headers import Headers


@dataclass
class Unchanged:
    """
    The client's cached copy is still valid and no body is sent.

    Attributes:
    ----------
    headers : Headers
        Headers to emit with the 304 response, such as the validator
        (Last-Modified or ETag) that proved the copy current.
    """

    headers: Headers = field(default_factory=lambda: Headers({}))


@dataclass
class Fresh:
    """
    The full resource has to be sent.

    Attributes:
    ----------
    stream : Iterator[bytes] | AsyncIterator[bytes]
        Single-pass body stream. Whoever consumes the outcome owns it and must
        close it, even when the body is never read (HEAD requests).
    content_type : str
        Media type of the resource.
    headers : Headers
        Validator and cache headers to emit with the 200 response.
    content_length : int | None
        Exact body size when known before streaming.
    """

    stream: Union[Iterator[bytes], AsyncIterator[bytes]]
    content_type: str
    headers: Headers = field(default_factory=lambda: Headers({}))
    content_length: Optional[int] = None


ValidationOutcome = Union[Unchanged, Fresh]
