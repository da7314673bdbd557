import os
from pathlib import Path

import pytest

# Wed, 11 May 2022 10:48:50 GMT
TEST_JS_MTIME = 1652266130
# Tue, 10 May 2022 10:48:50 GMT
DAY_BEFORE_MTIME = 1652179730

ASSETS = {
    "index.html": b'<!DOCTYPE html><html><head><link rel="stylesheet" href="/test.css"></head></html>',
    "test.css": b"body{color:red}",
    "test.js": b'console.log("hello")',
    "cache_policy.jpeg": b"fake jpeg bytes v1",
}


def set_mtime(path: Path, timestamp: float) -> None:
    os.utime(path, (timestamp, timestamp))


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """A directory holding the demo resources, all last modified at TEST_JS_MTIME."""
    base = tmp_path / "assets"
    base.mkdir()
    for name, content in ASSETS.items():
        path = base / name
        path.write_bytes(content)
        set_mtime(path, TEST_JS_MTIME)
    (base / "nested").mkdir()
    return base
