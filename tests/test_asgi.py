from __future__ import annotations

from pathlib import Path
from typing import Any, AsyncIterator

import httpx
import pytest
from inline_snapshot import snapshot

from stalewise import AsyncFileAccessor, AsyncInMemoryAccessor, CacheDirective, ResourceReadError, RoutePolicy
from stalewise.asgi import StaticFilesApp, _ASGIScope

JPEG_V1_SHA1 = "293105dc59a103ae3b365d314eba105e3f46824d"

DEMO_ROUTES = {
    "/": ("index.html", RoutePolicy()),
    "/test.css": ("test.css", RoutePolicy(directive=CacheDirective(max_age=30))),
    "/test.js": ("test.js", RoutePolicy(validator="last-modified")),
    "/cache_policy.jpeg": ("cache_policy.jpeg", RoutePolicy(directive=CacheDirective(max_age=10), validator="etag")),
}


class BrokenMidStreamAccessor(AsyncInMemoryAccessor):
    """Accessor whose bodies fail after the first chunk."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.closed = False

    async def read_body(self, resource_id: str) -> AsyncIterator[bytes]:
        self._get(resource_id)
        return self._stream(resource_id)

    async def _stream(self, resource_id: str) -> AsyncIterator[bytes]:
        try:
            yield b"first chunk"
            raise ResourceReadError(resource_id, "lost the disk")
        finally:
            self.closed = True


# Helper function to create ASGI scope
def create_asgi_scope(
    method: str = "GET",
    path: str = "/",
    headers: list[tuple[bytes, bytes]] | None = None,
) -> _ASGIScope:
    """Create a basic ASGI HTTP scope dictionary."""
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "query_string": b"",
        "root_path": "",
        "headers": headers or [],
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 8000),
        "state": {},
        "extensions": {},
    }


# Helper function to create a simple receive callable
async def simple_receive() -> dict[str, Any]:
    """Simple receive callable that returns http.disconnect."""
    return {"type": "http.disconnect"}


# Helper class to collect ASGI responses
class ResponseCollector:
    """Collect response data from ASGI send calls."""

    def __init__(self) -> None:
        self.status: int = 0
        self.headers: list[tuple[bytes, bytes]] = []
        self.body_chunks: list[bytes] = []
        self.messages: list[dict[str, Any]] = []

    async def send(self, message: dict[str, Any]) -> None:
        """Collect response data from send calls."""
        self.messages.append(message)
        if message["type"] == "http.response.start":
            self.status = message["status"]
            self.headers = message.get("headers", [])
        elif message["type"] == "http.response.body":
            body = message.get("body", b"")
            if body:
                self.body_chunks.append(body)

    def get_body(self) -> bytes:
        """Get the complete response body."""
        return b"".join(self.body_chunks)

    def get_header(self, name: bytes) -> bytes | None:
        """Get a response header by name."""
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None


@pytest.mark.anyio
async def test_etag_negotiation(caplog: pytest.LogCaptureFixture) -> None:
    app = StaticFilesApp(
        AsyncInMemoryAccessor({"cache_policy.jpeg": b"fake jpeg bytes v1"}),
        routes=DEMO_ROUTES,
    )

    collector1 = ResponseCollector()
    with caplog.at_level("DEBUG", logger="stalewise"):
        await app(create_asgi_scope(path="/cache_policy.jpeg"), simple_receive, collector1.send)

    assert collector1.status == 200
    assert collector1.headers == [
        (b"content-type", b"image/jpeg"),
        (b"etag", JPEG_V1_SHA1.encode()),
        (b"cache-control", b"public, max-age=10"),
        (b"content-length", b"18"),
    ]
    assert collector1.get_body() == b"fake jpeg bytes v1"
    assert caplog.messages == snapshot(
        [
            "Incoming HTTP request: method=GET path=/cache_policy.jpeg",
            "Resource modified: resource=cache_policy.jpeg etag=293105dc59a103ae3b365d314eba105e3f46824d if_none_match=None size=18",
            "Resource served: method=GET resource=cache_policy.jpeg status=200",
            "Sending response to client: status=200 headers_count=4",
            "Response fully sent: status=200 total_bytes=18 chunks=1",
        ]
    )

    caplog.clear()
    collector2 = ResponseCollector()
    scope = create_asgi_scope(path="/cache_policy.jpeg", headers=[(b"if-none-match", JPEG_V1_SHA1.encode())])
    with caplog.at_level("DEBUG", logger="stalewise"):
        await app(scope, simple_receive, collector2.send)

    assert collector2.status == 304
    assert collector2.get_header(b"etag") == JPEG_V1_SHA1.encode()
    assert collector2.get_body() == b""
    assert caplog.messages == snapshot(
        [
            "Incoming HTTP request: method=GET path=/cache_policy.jpeg",
            "Resource unchanged: resource=cache_policy.jpeg etag=293105dc59a103ae3b365d314eba105e3f46824d",
            "Resource served: method=GET resource=cache_policy.jpeg status=304",
            "Sending response to client: status=304 headers_count=2",
            "Response fully sent: status=304 total_bytes=0 chunks=0",
        ]
    )


@pytest.mark.anyio
async def test_malformed_header_is_logged_and_ignored(caplog: pytest.LogCaptureFixture) -> None:
    app = StaticFilesApp(
        AsyncInMemoryAccessor({"test.js": b'console.log("hello")'}),
        routes=DEMO_ROUTES,
    )
    collector = ResponseCollector()

    with caplog.at_level("DEBUG", logger="stalewise.headers"):
        await app(
            create_asgi_scope(path="/test.js", headers=[(b"if-modified-since", b"tomorrow")]),
            simple_receive,
            collector.send,
        )

    assert collector.status == 200
    assert collector.get_body() == b'console.log("hello")'
    assert caplog.messages == snapshot(["Ignoring conditional header: Malformed If-Modified-Since header: 'tomorrow'"])


@pytest.mark.anyio
async def test_body_is_streamed_in_chunks(assets_dir: Path) -> None:
    (assets_dir / "big.txt").write_bytes(b"a" * 10)
    app = StaticFilesApp(
        AsyncFileAccessor(assets_dir, chunk_size=4),
        routes={"/big.txt": ("big.txt", RoutePolicy())},
    )
    collector = ResponseCollector()

    await app(create_asgi_scope(path="/big.txt"), simple_receive, collector.send)

    assert collector.body_chunks == [b"aaaa", b"aaaa", b"aa"]
    assert collector.messages[-1] == {"type": "http.response.body", "body": b"", "more_body": False}


@pytest.mark.anyio
async def test_mid_stream_failure_does_not_finish_body(caplog: pytest.LogCaptureFixture) -> None:
    accessor = BrokenMidStreamAccessor({"test.css": b"unused"})
    app = StaticFilesApp(accessor, routes={"/test.css": ("test.css", RoutePolicy())})
    collector = ResponseCollector()

    with caplog.at_level("ERROR", logger="stalewise"), pytest.raises(ResourceReadError):
        await app(create_asgi_scope(path="/test.css"), simple_receive, collector.send)

    assert collector.status == 200
    assert collector.messages[1:] == [{"type": "http.response.body", "body": b"first chunk", "more_body": True}]
    assert accessor.closed
    assert caplog.messages == snapshot(["Error sending response: status=200 error=lost the disk"])


@pytest.mark.anyio
async def test_unrouted_path_is_not_found() -> None:
    app = StaticFilesApp(AsyncInMemoryAccessor({"secret.txt": b"x"}), routes=DEMO_ROUTES)
    collector = ResponseCollector()

    await app(create_asgi_scope(path="/secret.txt"), simple_receive, collector.send)

    assert collector.status == 404
    assert collector.get_body() == b"Not Found"


@pytest.mark.anyio
async def test_default_policy_serves_by_path() -> None:
    app = StaticFilesApp(
        AsyncInMemoryAccessor({"index.html": b"<html></html>", "app/main.js": b"main()"}),
        default_policy=RoutePolicy(directive=CacheDirective(max_age=60)),
    )

    index = ResponseCollector()
    await app(create_asgi_scope(path="/"), simple_receive, index.send)
    assert index.status == 200
    assert index.get_body() == b"<html></html>"
    assert index.get_header(b"cache-control") == b"public, max-age=60"

    nested = ResponseCollector()
    await app(create_asgi_scope(path="/app/main.js"), simple_receive, nested.send)
    assert nested.status == 200
    assert nested.get_body() == b"main()"


@pytest.mark.anyio
async def test_method_not_allowed() -> None:
    app = StaticFilesApp(AsyncInMemoryAccessor({"test.css": b"body{color:red}"}), routes=DEMO_ROUTES)
    collector = ResponseCollector()

    await app(create_asgi_scope(method="POST", path="/test.css"), simple_receive, collector.send)

    assert collector.status == 405
    assert collector.get_header(b"allow") == b"GET, HEAD"


@pytest.mark.anyio
async def test_non_http_scope_is_ignored() -> None:
    app = StaticFilesApp(AsyncInMemoryAccessor(), routes=DEMO_ROUTES)
    collector = ResponseCollector()

    await app({"type": "websocket", "path": "/"}, simple_receive, collector.send)

    assert collector.messages == []


@pytest.mark.anyio
async def test_lifespan() -> None:
    app = StaticFilesApp(AsyncInMemoryAccessor(), routes=DEMO_ROUTES)
    incoming = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
    collector = ResponseCollector()

    async def receive() -> dict[str, Any]:
        return incoming.pop(0)

    await app({"type": "lifespan"}, receive, collector.send)

    assert collector.messages == [
        {"type": "lifespan.startup.complete"},
        {"type": "lifespan.shutdown.complete"},
    ]


@pytest.mark.anyio
async def test_demo_routes_through_httpx(assets_dir: Path) -> None:
    app = StaticFilesApp(AsyncFileAccessor(assets_dir), routes=DEMO_ROUTES)

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
        index = await client.get("/")
        assert index.status_code == 200
        assert "cache-control" not in index.headers

        css = await client.get("/test.css")
        assert css.headers["cache-control"] == "public, max-age=30"
        assert css.content == b"body{color:red}"

        js = await client.get("/test.js")
        assert js.headers["last-modified"] == "Wed, 11 May 2022 10:48:50 GMT"

        js_again = await client.get("/test.js", headers={"If-Modified-Since": js.headers["last-modified"]})
        assert js_again.status_code == 304
        assert js_again.content == b""

        jpeg = await client.get("/cache_policy.jpeg")
        assert jpeg.headers["etag"] == JPEG_V1_SHA1

        (assets_dir / "cache_policy.jpeg").write_bytes(b"fake jpeg bytes v2")
        changed = await client.get("/cache_policy.jpeg", headers={"If-None-Match": JPEG_V1_SHA1})
        assert changed.status_code == 200
        assert changed.content == b"fake jpeg bytes v2"

        head = await client.head("/test.css")
        assert head.status_code == 200
        assert head.content == b""

        missing = await client.get("/missing.css")
        assert missing.status_code == 404
