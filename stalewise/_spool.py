from __future__ import annotations

import tempfile
import typing as tp

from anyio import to_thread


class AsyncBodySpool:
    """
    Buffer that holds a body between digesting it and sending it.

    Data stays in memory up to ``max_size`` bytes and then rolls over to a
    temporary file, so a body can be replayed without reading its source twice
    and without holding all of it in memory. After ``rewind`` the spool is a
    single-pass async iterator that closes itself once exhausted.
    """

    def __init__(self, max_size: int, chunk_size: int) -> None:
        self._file = tempfile.SpooledTemporaryFile(max_size=max_size)
        self._chunk_size = chunk_size
        self._closed = False
        self.size = 0

    async def write(self, chunk: bytes) -> None:
        await to_thread.run_sync(self._file.write, chunk)
        self.size += len(chunk)

    async def rewind(self) -> None:
        await to_thread.run_sync(self._file.seek, 0)

    def __aiter__(self) -> tp.AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration()
        chunk = await to_thread.run_sync(self._file.read, self._chunk_size)
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration()
        return tp.cast(bytes, chunk)

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await to_thread.run_sync(self._file.close)


class BodySpool:
    """
    Buffer that holds a body between digesting it and sending it.

    Data stays in memory up to ``max_size`` bytes and then rolls over to a
    temporary file, so a body can be replayed without reading its source twice
    and without holding all of it in memory. After ``rewind`` the spool is a
    single-pass iterator that closes itself once exhausted.
    """

    def __init__(self, max_size: int, chunk_size: int) -> None:
        self._file = tempfile.SpooledTemporaryFile(max_size=max_size)
        self._chunk_size = chunk_size
        self._closed = False
        self.size = 0

    def write(self, chunk: bytes) -> None:
        self._file.write(chunk)
        self.size += len(chunk)

    def rewind(self) -> None:
        self._file.seek(0)

    def __iter__(self) -> tp.Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._closed:
            raise StopIteration()
        chunk = self._file.read(self._chunk_size)
        if not chunk:
            self.close()
            raise StopIteration()
        return tp.cast(bytes, chunk)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._file.close()
