# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "stalewise",
#     "uvicorn",
# ]
#
# [tool.uv.sources]
# stalewise = { path = "../", editable = true }
# ///

"""
Demo server for the three caching strategies.

    /                   index.html, no caching
    /test.css           forced cache, public for 30 seconds
    /test.js            negotiated with Last-Modified / If-Modified-Since
    /cache_policy.jpeg  negotiated with ETag / If-None-Match, forced for 10 seconds

Put any JPEG at assets/cache_policy.jpeg, run the script and open
http://localhost:8888 with the browser's network panel. Edit the files under
assets/ to watch each strategy pick up (or miss) the change.
"""

import logging
from pathlib import Path

import uvicorn

from stalewise import AsyncFileAccessor, CacheDirective, RoutePolicy
from stalewise.asgi import StaticFilesApp

logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

accessor = AsyncFileAccessor(
    Path(__file__).parent / "assets",
    content_types={".js": "text/javascript"},
)

app = StaticFilesApp(
    accessor,
    routes={
        "/": ("index.html", RoutePolicy()),
        "/test.css": ("test.css", RoutePolicy(directive=CacheDirective(max_age=30))),
        "/test.js": ("test.js", RoutePolicy(validator="last-modified")),
        "/cache_policy.jpeg": (
            "cache_policy.jpeg",
            RoutePolicy(directive=CacheDirective(max_age=10), validator="etag"),
        ),
    },
)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8888)
