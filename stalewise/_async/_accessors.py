from __future__ import annotations

import logging
import stat
import time
import typing as tp
from pathlib import Path

from stalewise._core.models import BytesIterable, StoredResource
from stalewise._exceptions import ResourceError, ResourceNotFound, ResourceReadError
from stalewise._files import AsyncFileManager
from stalewise._utils import guess_content_type, normalize_resource_id
from stalewise.config import Config, get_default_config

logger = logging.getLogger("stalewise.accessors")

__all__ = (
    "AsyncBaseAccessor",
    "AsyncFileAccessor",
    "AsyncInMemoryAccessor",
)

DEFAULT_CHUNK_SIZE = 64 * 1024


def _translate_os_error(resource_id: str, exc: OSError) -> ResourceError:
    if isinstance(exc, (FileNotFoundError, IsADirectoryError, NotADirectoryError)):
        return ResourceNotFound(resource_id)
    return ResourceReadError(resource_id, f"Failed to access {resource_id!r}: {exc}")


class AsyncBaseAccessor:
    """
    Read access to stored resources.

    ``read_body`` returns a lazy, single-pass stream that owns its read handle
    and releases it when exhausted or closed. Consumers call the stream's
    ``aclose`` when it has one; a bare iterator without it is also accepted.
    ``read_modified_at`` is a metadata-only probe and must not touch the body.
    """

    async def read_body(self, resource_id: str) -> tp.AsyncIterator[bytes]:
        raise NotImplementedError()

    async def read_modified_at(self, resource_id: str) -> float:
        raise NotImplementedError()

    def content_type(self, resource_id: str) -> str:
        raise NotImplementedError()


class AsyncFileAccessor(AsyncBaseAccessor):
    """
    Serves resources from a directory.

    :param base_path: Directory holding the resources, defaults to ``assets``
    :type base_path: tp.Optional[Path], optional
    :param chunk_size: Number of bytes read from disk at a time, defaults to 64 KiB
    :type chunk_size: int
    :param content_types: Suffix to media type overrides, such as ``{".js": "text/javascript"}``
    :type content_types: tp.Optional[tp.Mapping[str, str]], optional
    """

    def __init__(
        self,
        base_path: tp.Optional[tp.Union[str, Path]] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        content_types: tp.Optional[tp.Mapping[str, str]] = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size!r}")
        self._base_path = Path(base_path) if base_path is not None else Path("assets")
        self._content_types = dict(content_types or {})
        self._file_manager = AsyncFileManager(chunk_size=chunk_size)

    @classmethod
    def from_config(
        cls, config: tp.Optional[Config] = None, content_types: tp.Optional[tp.Mapping[str, str]] = None
    ) -> "AsyncFileAccessor":
        defaults = get_default_config()
        defaults.update(config or {})
        return cls(
            base_path=defaults["assets_dir"],
            chunk_size=defaults["chunk_size"],
            content_types=content_types,
        )

    def _resolve(self, resource_id: str) -> Path:
        normalized = normalize_resource_id(resource_id)
        if normalized is None:
            logger.debug("Rejected resource id outside of the base path: %r", resource_id)
            raise ResourceNotFound(resource_id)
        return self._base_path / normalized

    async def read_body(self, resource_id: str) -> tp.AsyncIterator[bytes]:
        path = self._resolve(resource_id)
        try:
            stream = await self._file_manager.open_stream(resource_id, path)
        except OSError as exc:
            raise _translate_os_error(resource_id, exc) from exc
        logger.debug("Opened resource: resource=%s path=%s", resource_id, path)
        return stream

    async def read_modified_at(self, resource_id: str) -> float:
        path = self._resolve(resource_id)
        try:
            stat_result = await self._file_manager.stat(path)
        except OSError as exc:
            raise _translate_os_error(resource_id, exc) from exc
        if not stat.S_ISREG(stat_result.st_mode):
            raise ResourceNotFound(resource_id)
        return stat_result.st_mtime

    def content_type(self, resource_id: str) -> str:
        return guess_content_type(resource_id, self._content_types)


class AsyncInMemoryAccessor(AsyncBaseAccessor):
    """
    Serves resources held in a dictionary.

    Every body is a single chunk. Updating a resource with ``put`` bumps its
    modification time unless one is given explicitly.
    """

    def __init__(self, resources: tp.Optional[tp.Mapping[str, tp.Union[bytes, StoredResource]]] = None) -> None:
        self._resources: tp.Dict[str, StoredResource] = {}
        for resource_id, resource in (resources or {}).items():
            if isinstance(resource, StoredResource):
                self._store(resource_id, resource)
            else:
                self.put(resource_id, resource)

    def _store(self, resource_id: str, resource: StoredResource) -> None:
        normalized = normalize_resource_id(resource_id)
        if normalized is None:
            raise ValueError(f"Invalid resource id: {resource_id!r}")
        self._resources[normalized] = resource

    def put(
        self,
        resource_id: str,
        content: bytes,
        modified_at: tp.Optional[float] = None,
        content_type: tp.Optional[str] = None,
    ) -> None:
        self._store(
            resource_id,
            StoredResource(
                content=content,
                modified_at=time.time() if modified_at is None else modified_at,
                content_type=content_type,
            ),
        )

    def remove(self, resource_id: str) -> None:
        normalized = normalize_resource_id(resource_id)
        if normalized is not None:
            self._resources.pop(normalized, None)

    def _get(self, resource_id: str) -> StoredResource:
        normalized = normalize_resource_id(resource_id)
        if normalized is None or normalized not in self._resources:
            raise ResourceNotFound(resource_id)
        return self._resources[normalized]

    async def read_body(self, resource_id: str) -> tp.AsyncIterator[bytes]:
        return BytesIterable(self._get(resource_id).content)

    async def read_modified_at(self, resource_id: str) -> float:
        return self._get(resource_id).modified_at

    def content_type(self, resource_id: str) -> str:
        resource = self._get(resource_id)
        return resource.content_type or guess_content_type(resource_id)
