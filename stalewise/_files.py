from __future__ import annotations

import os
import typing as tp
from pathlib import Path

import anyio

from stalewise._exceptions import ResourceReadError


class AsyncFileStream:
    """
    Forward-only reader over an open file.

    The stream owns the handle: it is released when the file is exhausted,
    when a read fails, or when ``aclose`` is called, whichever happens first.
    """

    def __init__(self, resource_id: str, file: anyio.AsyncFile[bytes], chunk_size: int) -> None:
        self.resource_id = resource_id
        self._file = file
        self._chunk_size = chunk_size
        self._closed = False

    def __aiter__(self) -> tp.AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration()
        try:
            chunk = await self._file.read(self._chunk_size)
        except OSError as exc:
            await self.aclose()
            raise ResourceReadError(self.resource_id, f"Failed to read {self.resource_id!r}: {exc}") from exc
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration()
        return chunk

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._file.aclose()


class AsyncFileManager:
    def __init__(self, chunk_size: int) -> None:
        self.chunk_size = chunk_size

    async def stat(self, path: Path) -> os.stat_result:
        return await anyio.Path(path).stat()

    async def open_stream(self, resource_id: str, path: Path) -> AsyncFileStream:
        file = await anyio.open_file(path, "rb")
        return AsyncFileStream(resource_id, file, self.chunk_size)


class FileStream:
    """
    Forward-only reader over an open file.

    The stream owns the handle: it is released when the file is exhausted,
    when a read fails, or when ``close`` is called, whichever happens first.
    """

    def __init__(self, resource_id: str, file: tp.BinaryIO, chunk_size: int) -> None:
        self.resource_id = resource_id
        self._file = file
        self._chunk_size = chunk_size
        self._closed = False

    def __iter__(self) -> tp.Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._closed:
            raise StopIteration()
        try:
            chunk = self._file.read(self._chunk_size)
        except OSError as exc:
            self.close()
            raise ResourceReadError(self.resource_id, f"Failed to read {self.resource_id!r}: {exc}") from exc
        if not chunk:
            self.close()
            raise StopIteration()
        return chunk

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._file.close()


class FileManager:
    def __init__(self, chunk_size: int) -> None:
        self.chunk_size = chunk_size

    def stat(self, path: Path) -> os.stat_result:
        return path.stat()

    def open_stream(self, resource_id: str, path: Path) -> FileStream:
        file = open(path, "rb")
        return FileStream(resource_id, file, self.chunk_size)
