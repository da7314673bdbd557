from pathlib import Path

import pytest

from stalewise import AsyncFileAccessor, AsyncInMemoryAccessor, ResourceNotFound, StoredResource
from tests.conftest import TEST_JS_MTIME


async def collect(stream) -> bytes:
    return b"".join([chunk async for chunk in stream])


@pytest.mark.anyio
async def test_file_accessor_reads_body(assets_dir: Path):
    accessor = AsyncFileAccessor(assets_dir)

    stream = await accessor.read_body("test.css")

    assert await collect(stream) == b"body{color:red}"


@pytest.mark.anyio
async def test_file_accessor_streams_in_chunks(assets_dir: Path):
    (assets_dir / "big.bin").write_bytes(b"x" * 10)
    accessor = AsyncFileAccessor(assets_dir, chunk_size=4)

    stream = await accessor.read_body("big.bin")
    chunks = [chunk async for chunk in stream]

    assert chunks == [b"xxxx", b"xxxx", b"xx"]


@pytest.mark.anyio
async def test_file_accessor_stream_is_single_pass(assets_dir: Path):
    accessor = AsyncFileAccessor(assets_dir)

    stream = await accessor.read_body("test.css")

    assert await collect(stream) == b"body{color:red}"
    assert await collect(stream) == b""


@pytest.mark.anyio
async def test_file_accessor_close_before_reading(assets_dir: Path):
    accessor = AsyncFileAccessor(assets_dir)

    stream = await accessor.read_body("test.css")
    await stream.aclose()

    assert await collect(stream) == b""


@pytest.mark.anyio
async def test_file_accessor_modified_at(assets_dir: Path):
    accessor = AsyncFileAccessor(assets_dir)

    assert await accessor.read_modified_at("test.js") == TEST_JS_MTIME


@pytest.mark.anyio
@pytest.mark.parametrize("resource_id", ["missing.css", "nested", "../assets/test.css", "test.css/child", ""])
async def test_file_accessor_not_found(assets_dir: Path, resource_id: str):
    accessor = AsyncFileAccessor(assets_dir)

    with pytest.raises(ResourceNotFound):
        await accessor.read_body(resource_id)

    with pytest.raises(ResourceNotFound):
        await accessor.read_modified_at(resource_id)


@pytest.mark.anyio
async def test_file_accessor_leading_slash(assets_dir: Path):
    accessor = AsyncFileAccessor(assets_dir)

    stream = await accessor.read_body("/test.css")

    assert await collect(stream) == b"body{color:red}"


def test_file_accessor_content_type(assets_dir: Path):
    accessor = AsyncFileAccessor(assets_dir, content_types={".js": "text/javascript"})

    assert accessor.content_type("test.css") == "text/css"
    assert accessor.content_type("test.js") == "text/javascript"
    assert accessor.content_type("cache_policy.jpeg") == "image/jpeg"


def test_file_accessor_from_config(assets_dir: Path):
    accessor = AsyncFileAccessor.from_config({"assets_dir": str(assets_dir), "chunk_size": 4})

    assert accessor._base_path == assets_dir
    assert accessor._file_manager.chunk_size == 4


def test_file_accessor_rejects_bad_chunk_size(assets_dir: Path):
    with pytest.raises(ValueError, match="chunk_size must be positive"):
        AsyncFileAccessor(assets_dir, chunk_size=0)


@pytest.mark.anyio
async def test_in_memory_accessor():
    accessor = AsyncInMemoryAccessor(
        {
            "test.css": b"body{color:red}",
            "test.js": StoredResource(content=b"1", modified_at=TEST_JS_MTIME, content_type="text/javascript"),
        }
    )

    assert await collect(await accessor.read_body("test.css")) == b"body{color:red}"
    assert await accessor.read_modified_at("test.js") == TEST_JS_MTIME
    assert accessor.content_type("test.js") == "text/javascript"
    assert accessor.content_type("test.css") == "text/css"


@pytest.mark.anyio
async def test_in_memory_accessor_put_and_remove():
    accessor = AsyncInMemoryAccessor()

    accessor.put("/test.css", b"body{color:red}", modified_at=10)
    assert await accessor.read_modified_at("test.css") == 10

    accessor.put("test.css", b"body{color:blue}", modified_at=20)
    assert await collect(await accessor.read_body("test.css")) == b"body{color:blue}"
    assert await accessor.read_modified_at("test.css") == 20

    accessor.remove("test.css")
    with pytest.raises(ResourceNotFound):
        await accessor.read_body("test.css")
    with pytest.raises(ResourceNotFound):
        accessor.content_type("test.css")
