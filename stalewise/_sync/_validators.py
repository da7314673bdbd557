from __future__ import annotations

import hashlib
import logging
import typing as tp

from stalewise._sync._accessors import BaseAccessor
from stalewise._core._headers import Headers
from stalewise._core._outcomes import Fresh, Unchanged, ValidationOutcome
from stalewise._core.models import CacheDirective, ConditionalRequest
from stalewise._exceptions import ResourceReadError
from stalewise._spool import BodySpool
from stalewise._utils import format_http_date
from stalewise.config import Config, get_default_config

logger = logging.getLogger("stalewise.validators")

__all__ = (
    "ForcedCache",
    "TimestampValidator",
    "HashValidator",
)

DEFAULT_DIGEST_ALGORITHM = "sha1"
DEFAULT_SPOOL_MAX_SIZE = 1024 * 1024
SPOOL_CHUNK_SIZE = 64 * 1024


def _close_stream(stream: tp.Iterator[bytes]) -> None:
    # accessors may return bare iterators without a close method
    close = getattr(stream, "close", None)
    if close is not None:
        close()


class ForcedCache:
    """
    Serves a resource with a Cache-Control expiry and no validation.

    Clients reuse their copy until ``max-age`` elapses without sending a
    request, so this strategy never answers 304 on its own.
    """

    def __init__(self, accessor: BaseAccessor, directive: CacheDirective) -> None:
        self.accessor = accessor
        self.directive = directive

    def headers(self) -> Headers:
        return Headers({"Cache-Control": self.directive.to_header()})

    def apply(self, resource_id: str) -> Fresh:
        stream = self.accessor.read_body(resource_id)
        logger.debug(
            "Serving with forced cache: resource=%s cache_control=%s",
            resource_id,
            self.directive.to_header(),
        )
        return Fresh(
            stream=stream,
            content_type=self.accessor.content_type(resource_id),
            headers=self.headers(),
        )


class TimestampValidator:
    """
    Negotiated caching with Last-Modified / If-Modified-Since.

    The modification time is formatted as an HTTP date with one-second
    precision and compared to If-Modified-Since by exact string equality.
    A client date that differs in any way, even one that is later or only
    formatted differently, gets the full body.
    """

    def __init__(self, accessor: BaseAccessor) -> None:
        self.accessor = accessor

    def last_modified(self, resource_id: str) -> str:
        return format_http_date(self.accessor.read_modified_at(resource_id))

    def validate(self, resource_id: str, conditional: ConditionalRequest) -> ValidationOutcome:
        last_modified = self.last_modified(resource_id)
        headers = Headers({"Last-Modified": last_modified})

        if conditional.if_modified_since is not None and conditional.if_modified_since == last_modified:
            logger.debug("Resource unchanged: resource=%s last_modified=%s", resource_id, last_modified)
            return Unchanged(headers=headers)

        logger.debug(
            "Resource modified: resource=%s last_modified=%s if_modified_since=%s",
            resource_id,
            last_modified,
            conditional.if_modified_since,
        )
        stream = self.accessor.read_body(resource_id)
        return Fresh(
            stream=stream,
            content_type=self.accessor.content_type(resource_id),
            headers=headers,
        )


class HashValidator:
    """
    Negotiated caching with ETag / If-None-Match.

    The whole body is read to compute its digest, so on its own this saves
    bandwidth but not I/O. Pair it with a short forced-cache window to bound how
    often requests reach the server at all.

    While digesting, the body is copied into a spool so a 200 response can be
    sent without reading the source a second time.

    :param accessor: Where the resources are read from
    :type accessor: BaseAccessor
    :param algorithm: A ``hashlib`` algorithm name, defaults to ``sha1``
    :type algorithm: str
    :param spool_max_size: Bytes kept in memory before the spool rolls over to disk, defaults to 1 MiB
    :type spool_max_size: int
    """

    def __init__(
        self,
        accessor: BaseAccessor,
        algorithm: str = DEFAULT_DIGEST_ALGORITHM,
        spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE,
    ) -> None:
        # fails early on algorithms hashlib does not provide
        hashlib.new(algorithm)
        self.accessor = accessor
        self.algorithm = algorithm
        self.spool_max_size = spool_max_size

    @classmethod
    def from_config(cls, accessor: BaseAccessor, config: tp.Optional[Config] = None) -> "HashValidator":
        defaults = get_default_config()
        defaults.update(config or {})
        return cls(
            accessor,
            algorithm=defaults["digest_algorithm"],
            spool_max_size=defaults["spool_max_size"],
        )

    def digest(self, resource_id: str) -> str:
        hasher = hashlib.new(self.algorithm)
        stream = self.accessor.read_body(resource_id)
        try:
            for chunk in stream:
                hasher.update(chunk)
        finally:
            _close_stream(stream)
        return hasher.hexdigest()

    def validate(self, resource_id: str, conditional: ConditionalRequest) -> ValidationOutcome:
        hasher = hashlib.new(self.algorithm)
        spool = BodySpool(max_size=self.spool_max_size, chunk_size=SPOOL_CHUNK_SIZE)

        try:
            stream = self.accessor.read_body(resource_id)
            try:
                for chunk in stream:
                    hasher.update(chunk)
                    spool.write(chunk)
            finally:
                _close_stream(stream)
            etag = hasher.hexdigest()
            headers = Headers({"ETag": etag})

            if conditional.if_none_match is not None and conditional.if_none_match == etag:
                logger.debug("Resource unchanged: resource=%s etag=%s", resource_id, etag)
                spool.close()
                return Unchanged(headers=headers)

            spool.rewind()
        except OSError as exc:
            # spool failures, such as a full temporary directory after rollover
            spool.close()
            raise ResourceReadError(resource_id, f"Failed to buffer {resource_id!r}: {exc}") from exc
        except BaseException:
            spool.close()
            raise

        logger.debug(
            "Resource modified: resource=%s etag=%s if_none_match=%s size=%d",
            resource_id,
            etag,
            conditional.if_none_match,
            spool.size,
        )
        return Fresh(
            stream=spool,
            content_type=self.accessor.content_type(resource_id),
            headers=headers,
            content_length=spool.size,
        )
