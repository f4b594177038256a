"""Ambient attributes across concurrent asyncio request handlers.

Every log emitted while handling a request carries its request.id, even
from nested coroutines, and concurrent requests never mix their attributes.

Run with:
    python examples/async_attributes_example.py
"""

import asyncio
import uuid

import vigilant


async def load_user(user_id: str) -> dict[str, str]:
    await asyncio.sleep(0.05)
    vigilant.log_debug("user loaded", {"user.id": user_id})
    return {"id": user_id}


async def handle_request(path: str) -> None:
    async def handler() -> None:
        vigilant.log_info("request started", {"http.path": path})
        await load_user("u-" + path.strip("/"))
        vigilant.metric_counter("http_requests_total", 1, {"path": path})
        vigilant.log_info("request finished")

    await vigilant.with_attributes({"request.id": uuid.uuid4().hex}, handler)


async def main() -> None:
    await asyncio.gather(*(handle_request(path) for path in ("/a", "/b", "/c")))


if __name__ == "__main__":
    config = vigilant.Config(name="async-example", token="local", passthrough=True, noop=True)
    vigilant.init(config)
    try:
        asyncio.run(main())
    finally:
        vigilant.shutdown()
