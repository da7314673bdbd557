from __future__ import annotations

import logging
import typing as t

from stalewise._async._accessors import AsyncBaseAccessor
from stalewise._async._handler import AsyncStaticHandler
from stalewise._core._headers import Headers
from stalewise._core.models import Request, Response, make_error_response
from stalewise._policies import RoutePolicy
from stalewise._utils import HEADERS_ENCODING
from stalewise.config import Config

# Configure logger for this module
logger = logging.getLogger(__name__)


class _ASGIScope(t.TypedDict, total=False):
    """ASGI HTTP scope type."""

    type: str
    asgi: dict[str, str]
    http_version: str
    method: str
    scheme: str
    path: str
    query_string: bytes
    root_path: str
    headers: list[tuple[bytes, bytes]]
    server: tuple[str, int | None] | None
    client: tuple[str, int] | None
    state: dict[str, t.Any]
    extensions: dict[str, t.Any]


_Scope = _ASGIScope
_Receive = t.Callable[[], t.Awaitable[dict[str, t.Any]]]
_Send = t.Callable[[dict[str, t.Any]], t.Awaitable[None]]

Route = t.Tuple[str, RoutePolicy]


class StaticFilesApp:
    """
    ASGI application that serves static resources with cache validation.

    Every route maps a URL path to a resource id and the RoutePolicy it is
    served with. Bodies are streamed chunk by chunk from the accessor, never
    loaded into memory as a whole.

    Args:
        accessor: Where the resources are read from.
        routes: Mapping of URL path to ``(resource_id, policy)``.
        default_policy: Policy for paths that are not in ``routes``. Such paths
            are served as the resource of the same name (``/`` maps to
            ``index.html``). When None, unrouted paths get a 404.
        config: Digest settings for ETag routes.

    Example:
        ```python
        from stalewise import AsyncFileAccessor, CacheDirective, RoutePolicy
        from stalewise.asgi import StaticFilesApp

        app = StaticFilesApp(
            accessor=AsyncFileAccessor("assets"),
            routes={
                "/test.css": ("test.css", RoutePolicy(directive=CacheDirective(max_age=30))),
                "/test.js": ("test.js", RoutePolicy(validator="last-modified")),
            },
        )
        ```
    """

    def __init__(
        self,
        accessor: AsyncBaseAccessor,
        routes: t.Mapping[str, Route] | None = None,
        default_policy: RoutePolicy | None = None,
        config: Config | None = None,
    ) -> None:
        self.accessor = accessor
        self._routes = {
            path: (resource_id, AsyncStaticHandler(accessor, policy, config))
            for path, (resource_id, policy) in (routes or {}).items()
        }
        self._default_handler = (
            AsyncStaticHandler(accessor, default_policy, config) if default_policy is not None else None
        )

        logger.info(
            "Initialized StaticFilesApp with accessor=%s, routes=%d, default_policy=%s",
            type(accessor).__name__,
            len(self._routes),
            default_policy,
        )

    async def __call__(self, scope: _Scope, receive: _Receive, send: _Send) -> None:
        """
        Handle an ASGI request.

        Args:
            scope: The ASGI scope dictionary.
            receive: The ASGI receive callable.
            send: The ASGI send callable.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            return

        method = scope.get("method", "GET")
        path = scope.get("path", "/")

        logger.debug("Incoming HTTP request: method=%s path=%s", method, path)

        request = self._asgi_to_internal_request(scope)
        target = self._resolve(path)

        if target is None:
            logger.debug("No route for path: %s", path)
            response = make_error_response(404, "Not Found")
        else:
            resource_id, handler = target
            response = await handler.handle(request, resource_id)

        await self._send_internal_response(response, send)

    def _resolve(self, path: str) -> tuple[str, AsyncStaticHandler] | None:
        if path in self._routes:
            return self._routes[path]
        if self._default_handler is None:
            return None
        resource_id = path.lstrip("/") or "index.html"
        return resource_id, self._default_handler

    def _asgi_to_internal_request(self, scope: _Scope) -> Request:
        """
        Convert an ASGI HTTP scope to an internal Request object.

        Args:
            scope: The ASGI scope dictionary.

        Returns:
            The internal Request object.
        """
        headers = Headers({})
        for key, value in scope.get("headers", []):
            headers.add(key.decode(HEADERS_ENCODING), value.decode(HEADERS_ENCODING))

        return Request(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            headers=headers,
        )

    async def _send_internal_response(self, response: Response, send: _Send) -> None:
        """
        Send an internal Response to the ASGI send callable.

        The body stream is closed on every exit path. If reading fails after the
        headers went out, nothing else is sent and the error propagates so the
        server drops the connection instead of finishing a truncated body.

        Args:
            response: The internal Response object.
            send: The ASGI send callable.
        """
        logger.debug(
            "Sending response to client: status=%d headers_count=%d",
            response.status_code,
            len(response.headers),
        )

        headers: list[tuple[bytes, bytes]] = [
            (key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING)) for key, value in response.headers.raw_items()
        ]

        try:
            await send(
                {
                    "type": "http.response.start",
                    "status": response.status_code,
                    "headers": headers,
                }
            )

            bytes_sent = 0
            chunk_count = 0
            async for chunk in response._aiter_stream():
                await send(
                    {
                        "type": "http.response.body",
                        "body": chunk,
                        "more_body": True,
                    }
                )
                bytes_sent += len(chunk)
                chunk_count += 1

            await send(
                {
                    "type": "http.response.body",
                    "body": b"",
                    "more_body": False,
                }
            )
            logger.info(
                "Response fully sent: status=%d total_bytes=%d chunks=%d",
                response.status_code,
                bytes_sent,
                chunk_count,
            )
        except Exception as e:
            logger.error(
                "Error sending response: status=%d error=%s",
                response.status_code,
                str(e),
                exc_info=True,
            )
            raise
        finally:
            await response.aclose()

    async def _handle_lifespan(self, receive: _Receive, send: _Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return
