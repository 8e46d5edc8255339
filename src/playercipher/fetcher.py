"""
HTTP fetcher for player scripts. Wraps aiohttp with common defaults,
headers, timeout, and optional proxy support.
"""
from __future__ import annotations
import aiohttp
from typing import Optional

from .config import DEFAULT_UA


class Fetcher:
    def __init__(self, *, timeout: float = 10, proxy: str | None = None, user_agent: str = DEFAULT_UA):
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=4)
        self.proxy = proxy
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def get(self, url: str) -> str:
        """GET `url` and return the body; non-2xx raises aiohttp.ClientResponseError."""
        session = await self._get_session()
        async with session.get(url, proxy=self.proxy) as resp:
            resp.raise_for_status()
            return await resp.text()
