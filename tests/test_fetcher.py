import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from playercipher.fetcher import Fetcher


async def _player(request):
    return web.Response(text=f"// ua={request.headers.get('User-Agent')}", content_type="application/javascript")


async def _with_server(body):
    app = web.Application()
    app.router.add_get("/s/player/base.js", _player)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        return await body(server)
    finally:
        await server.close()


def test_get_returns_body_with_user_agent():
    async def body(server):
        fetcher = Fetcher(user_agent="cipher-test/1.0")
        try:
            return await fetcher.get(str(server.make_url("/s/player/base.js")))
        finally:
            await fetcher.close()

    assert asyncio.run(_with_server(body)) == "// ua=cipher-test/1.0"


def test_get_raises_on_http_error():
    async def body(server):
        fetcher = Fetcher()
        try:
            with pytest.raises(aiohttp.ClientResponseError) as exc:
                await fetcher.get(str(server.make_url("/missing.js")))
            return exc.value.status
        finally:
            await fetcher.close()

    assert asyncio.run(_with_server(body)) == 404
