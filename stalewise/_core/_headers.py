from __future__ import annotations

from typing import (
    Any,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Union,
)

from stalewise._exceptions import MalformedConditionalHeader
from stalewise._utils import parse_date


def is_char(c: str) -> bool:
    """
    Check if character is a valid ASCII character (0-127).

    Per RFC 7230: CHAR = any US-ASCII character (octets 0 - 127)
    """
    if not c:
        return False
    return ord(c) <= 127


def is_ctl(c: str) -> bool:
    """
    Check if character is a control character.

    Per RFC 7230: CTL = control characters (0-31 and 127)
    """
    if not c:
        return False
    b = ord(c)
    return b <= 31 or b == 127


def strip_ows(value: str) -> str:
    # OWS = *( SP / HTAB )
    return value.strip(" \t")


def parse_if_modified_since(value: str) -> str:
    """
    Validate an If-Modified-Since value and return it without surrounding whitespace.

    The value is not reformatted: validators compare it byte for byte against
    their own Last-Modified string, so a client echoing a differently
    formatted date gets the full body rather than a false 304.

    Raises:
        MalformedConditionalHeader: If the value is not an HTTP date.

    Examples:
        >>> parse_if_modified_since(" Wed, 11 May 2022 10:48:50 GMT ")
        'Wed, 11 May 2022 10:48:50 GMT'
    """
    stripped = strip_ows(value)
    if not stripped or parse_date(stripped) is None:
        raise MalformedConditionalHeader("If-Modified-Since", value)
    return stripped


def parse_if_none_match(value: str) -> str:
    """
    Validate an If-None-Match value and return it without surrounding whitespace.

    Entity tags are opaque here. Any visible ASCII text is accepted and later
    compared for exact equality with the computed digest.

    Raises:
        MalformedConditionalHeader: If the value is blank or holds control or non-ASCII characters.
    """
    stripped = strip_ows(value)
    if not stripped:
        raise MalformedConditionalHeader("If-None-Match", value)
    for c in stripped:
        if not is_char(c) or is_ctl(c):
            raise MalformedConditionalHeader("If-None-Match", value)
    return stripped


class Headers(MutableMapping[str, str]):
    def __init__(self, headers: Mapping[str, Union[str, List[str]]]) -> None:
        self._headers = {k.lower(): ([v] if isinstance(v, str) else v[:]) for k, v in headers.items()}

    def get_list(self, key: str) -> Optional[List[str]]:
        return self._headers.get(key.lower(), None)

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers[key.lower()] = [value]

    def add(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), []).append(value)

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return repr(self._headers)

    def __str__(self) -> str:
        return str(self._headers)

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers  # type: ignore

    def raw_items(self) -> Iterator[tuple[str, str]]:
        for key, values in self._headers.items():
            for value in values:
                yield key, value
