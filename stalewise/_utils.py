from __future__ import annotations

import calendar
import mimetypes
import typing as tp
from email.utils import formatdate, parsedate_tz

HEADERS_ENCODING = "iso-8859-1"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def parse_date(date: str) -> tp.Optional[int]:
    expires = parsedate_tz(date)
    if expires is None:
        return None
    try:
        timestamp = calendar.timegm(expires[:6])
    except (ValueError, OverflowError):
        # out-of-range fields, such as a five-digit year
        return None
    return timestamp


def format_http_date(timestamp: float) -> str:
    """
    Format a POSIX timestamp as an HTTP date (IMF-fixdate).

    Sub-second precision is dropped, so two timestamps within the same
    second produce the same string.

    Example:
        >>> format_http_date(1652266130.75)
        'Wed, 11 May 2022 10:48:50 GMT'
    """
    return formatdate(timeval=int(timestamp), localtime=False, usegmt=True)


def generate_http_date() -> str:
    """
    Generate a Date header value for HTTP responses.
    Returns date in RFC 1123 format (required by HTTP/1.1).

    Example output: 'Sun, 26 Oct 2025 12:34:56 GMT'
    """
    return formatdate(timeval=None, localtime=False, usegmt=True)


def normalize_resource_id(resource_id: str) -> tp.Optional[str]:
    """
    Turn a logical resource path into a relative, slash-separated id.

    Returns None when the path would escape the resource root.

    Examples:
        >>> normalize_resource_id("/static//test.css")
        'static/test.css'
        >>> normalize_resource_id("../secret") is None
        True
    """
    parts = []
    for part in resource_id.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            return None
        parts.append(part)
    if not parts:
        return None
    return "/".join(parts)


def guess_content_type(resource_id: str, overrides: tp.Optional[tp.Mapping[str, str]] = None) -> str:
    """
    Guess the media type of a resource from its name.

    ``overrides`` maps file suffixes (``".js"``) to media types and wins over
    the platform's mimetypes table.

    Examples:
        >>> guess_content_type("test.css")
        'text/css'
        >>> guess_content_type("blob.unknown-ext")
        'application/octet-stream'
    """
    if overrides:
        for suffix, content_type in overrides.items():
            if resource_id.lower().endswith(suffix.lower()):
                return content_type
    content_type, _ = mimetypes.guess_type(resource_id)
    return content_type or DEFAULT_CONTENT_TYPE
