from pathlib import Path

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from stalewise import AsyncFileAccessor, AsyncStaticHandler, CacheDirective, RoutePolicy
from stalewise.fastapi import cache, static_response

JPEG_V1_SHA1 = "293105dc59a103ae3b365d314eba105e3f46824d"


@pytest.fixture
def client(assets_dir: Path) -> TestClient:
    app = FastAPI()
    accessor = AsyncFileAccessor(assets_dir)
    scripts = AsyncStaticHandler(accessor, RoutePolicy(validator="last-modified"))
    images = AsyncStaticHandler(accessor, RoutePolicy(directive=CacheDirective(max_age=10), validator="etag"))

    @app.get("/items", dependencies=[cache(max_age=30)])
    async def read_items():
        return {"items": []}

    @app.get("/private", dependencies=[cache(max_age=600, private=True)])
    async def read_private():
        return {"secret": True}

    @app.get("/test.js")
    async def test_js(request: Request):
        return await static_response(scripts, request, "test.js")

    @app.api_route("/cache_policy.jpeg", methods=["GET", "HEAD"])
    async def cache_policy_jpeg(request: Request):
        return await static_response(images, request, "cache_policy.jpeg")

    @app.get("/missing.js")
    async def missing_js(request: Request):
        return await static_response(scripts, request, "missing.js")

    return TestClient(app)


def test_cache_dependency(client: TestClient):
    response = client.get("/items")

    assert response.status_code == 200
    assert response.json() == {"items": []}
    assert response.headers["cache-control"] == "public, max-age=30"
    assert response.headers["date"].endswith(" GMT")


def test_private_cache_dependency(client: TestClient):
    response = client.get("/private")

    assert response.headers["cache-control"] == "private, max-age=600"


def test_static_response_last_modified(client: TestClient):
    first = client.get("/test.js")
    assert first.status_code == 200
    assert first.content == b'console.log("hello")'
    assert first.headers["last-modified"] == "Wed, 11 May 2022 10:48:50 GMT"

    second = client.get("/test.js", headers={"If-Modified-Since": first.headers["last-modified"]})
    assert second.status_code == 304
    assert second.content == b""


def test_static_response_etag(client: TestClient, assets_dir: Path):
    first = client.get("/cache_policy.jpeg")
    assert first.status_code == 200
    assert first.headers["etag"] == JPEG_V1_SHA1
    assert first.headers["cache-control"] == "public, max-age=10"
    assert first.headers["content-type"] == "image/jpeg"
    assert first.content == b"fake jpeg bytes v1"

    second = client.get("/cache_policy.jpeg", headers={"If-None-Match": JPEG_V1_SHA1})
    assert second.status_code == 304

    (assets_dir / "cache_policy.jpeg").write_bytes(b"fake jpeg bytes v2")

    third = client.get("/cache_policy.jpeg", headers={"If-None-Match": JPEG_V1_SHA1})
    assert third.status_code == 200
    assert third.content == b"fake jpeg bytes v2"


def test_static_response_head(client: TestClient):
    response = client.head("/cache_policy.jpeg")

    assert response.status_code == 200
    assert response.headers["etag"] == JPEG_V1_SHA1
    assert response.content == b""


def test_static_response_not_found(client: TestClient):
    response = client.get("/missing.js")

    assert response.status_code == 404
    assert response.text == "Not Found"
