from __future__ import annotations

import typing as t

from stalewise._async._handler import AsyncStaticHandler
from stalewise._core._headers import Headers
from stalewise._core.models import CacheDirective, Request
from stalewise._utils import generate_http_date

try:
    import fastapi
    from starlette.background import BackgroundTask
    from starlette.responses import StreamingResponse
except ImportError as e:
    raise ImportError(
        "fastapi is required to use stalewise.fastapi module. "
        "Please install stalewise with the 'fastapi' extra, "
        "e.g., 'pip install stalewise[fastapi]'."
    ) from e


def cache(*, max_age: int, private: bool = False) -> t.Any:
    """
    Add a forced-cache Cache-Control header to FastAPI responses.

    Clients reuse the response for ``max_age`` seconds without sending a
    request. Changes made on the server inside that window are not seen by
    those clients until it elapses.

    Args:
        max_age: Number of seconds the response stays fresh.
        private: Only the end client may store the response, shared caches
            (proxies, CDNs) must not.

    Returns:
        A dependency that sets the Cache-Control and Date headers.

    Examples:
        >>> from fastapi import FastAPI
        >>> from stalewise.fastapi import cache
        >>>
        >>> app = FastAPI()
        >>>
        >>> @app.get("/items/", dependencies=[cache(max_age=30)])
        >>> async def read_items():
        ...     return {"items": []}
    """
    directive = CacheDirective(max_age=max_age, visibility="private" if private else "public")

    def add_cache_headers(response: fastapi.Response) -> t.Any:
        """Add Cache-Control headers to the response."""
        response.headers["Date"] = generate_http_date()
        response.headers["Cache-Control"] = directive.to_header()

    return fastapi.Depends(add_cache_headers)


async def static_response(
    handler: AsyncStaticHandler,
    request: fastapi.Request,
    resource_id: str,
) -> fastapi.Response:
    """
    Serve a resource from a FastAPI endpoint through a stalewise handler.

    The conditional headers of ``request`` are validated by the handler. 200
    responses stream their body; every other status is sent with its short,
    fully read body.

    Examples:
        >>> from fastapi import FastAPI, Request
        >>> from stalewise import AsyncFileAccessor, AsyncStaticHandler, RoutePolicy
        >>> from stalewise.fastapi import static_response
        >>>
        >>> app = FastAPI()
        >>> scripts = AsyncStaticHandler(AsyncFileAccessor("assets"), RoutePolicy(validator="etag"))
        >>>
        >>> @app.get("/test.js")
        >>> async def test_js(request: Request):
        ...     return await static_response(scripts, request, "test.js")
    """
    internal_request = Request(
        method=request.method,
        path=request.url.path,
        headers=Headers({key: request.headers.getlist(key) for key in request.headers.keys()}),
    )
    response = await handler.handle(internal_request, resource_id)
    headers = {key: response.headers[key] for key in response.headers}

    if response.status_code != 200 or request.method.upper() == "HEAD":
        content = await response.aread()
        return fastapi.Response(content=content, status_code=response.status_code, headers=headers)

    return StreamingResponse(
        response._aiter_stream(),
        status_code=response.status_code,
        headers=headers,
        background=BackgroundTask(response.aclose),
    )
