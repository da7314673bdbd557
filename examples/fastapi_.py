# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "stalewise[fastapi]",
#     "httpx",
# ]
#
# [tool.uv.sources]
# stalewise = { path = "../", editable = true }
# ///


import asyncio
import time
from pathlib import Path

import httpx
from fastapi import FastAPI, Request

from stalewise import AsyncFileAccessor, AsyncStaticHandler, RoutePolicy
from stalewise.fastapi import cache, static_response

app = FastAPI()

scripts = AsyncStaticHandler(
    AsyncFileAccessor(Path(__file__).parent / "assets"),
    RoutePolicy(validator="last-modified"),
)


@app.get("/items/", dependencies=[cache(max_age=5)])
async def read_item():
    return {"created_at": time.time()}


@app.get("/test.js")
async def test_js(request: Request):
    return await static_response(scripts, request, "test.js")


async def main():
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
        items = await client.get("/items/")
        print(f"/items/ cache-control={items.headers['cache-control']}")

        first = await client.get("/test.js")
        print(f"/test.js status={first.status_code} last-modified={first.headers['last-modified']}")

        second = await client.get("/test.js", headers={"If-Modified-Since": first.headers["last-modified"]})
        print(f"/test.js revalidated status={second.status_code}")


if __name__ == "__main__":
    asyncio.run(main())
