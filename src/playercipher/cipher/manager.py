"""
Cipher manager: the only entry point the rest of the system calls.

Owns a per-player-script cache, decides between the advanced and the basic
cipher, and enforces the freshness window.

Usage:
    manager = CipherManager()
    url = await manager.resolve_format_url(player_js_url, fmt)
    await manager.close()

Per script URL:  Uncached -> Fresh(advanced | basic-only) -> Stale -> (refetch)
                 -> Fresh, or Evicted by cleanup_cache().

The cache lock is only held for dict reads/writes, never across a fetch or an
engine call. Two concurrent first resolutions of the same URL may therefore
both fetch; the last write wins. Readers and writers share the one lock;
no section awaits while holding it, so readers only serialize briefly.
"""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Callable, Optional

import aiohttp

from .advanced import AdvancedSignatureCipher
from .base import CachedPlayerScript, CacheStats, StreamFormat
from .engine import JSEngine
from .errors import (
    CipherError, EngineError, ExtractionError, NetworkError, SelfTestFailure,
)
from .operations import SignatureCipher
from .parser import extract_cipher
from ..config import Settings
from ..fetcher import Fetcher

log = logging.getLogger("playercipher.cipher.manager")

_RECOVERABLE = (ExtractionError, EngineError, SelfTestFailure)


class CipherManager:
    def __init__(
        self,
        fetcher=None,
        *,
        settings: Settings | None = None,
        cache_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or Settings()
        self.cache_ttl = self.settings.cache_ttl if cache_ttl is None else cache_ttl
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(
            timeout=self.settings.fetch_timeout, user_agent=self.settings.user_agent)
        self._engine = JSEngine(
            soft_budget_ms=self.settings.soft_budget_ms,
            hard_budget_ms=self.settings.hard_budget_ms,
        )
        self._clock = clock
        self._scripts: dict[str, CachedPlayerScript] = {}
        self._lock = asyncio.Lock()

    async def close(self):
        if self._owns_fetcher:
            await self.fetcher.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # ── cache primitives (lock held briefly, no awaits on I/O) ──

    async def _lookup(self, script_url: str) -> Optional[CachedPlayerScript]:
        async with self._lock:
            entry = self._scripts.get(script_url)
            if entry and entry.is_fresh(self.cache_ttl, self._clock()):
                return entry
        return None

    async def _store(self, script_url: str, entry: CachedPlayerScript):
        async with self._lock:
            self._scripts[script_url] = entry

    # ── building ─────────────────────────────

    async def _fetch_script(self, script_url: str) -> str:
        log.info(f"Fetching player script {script_url}")
        try:
            return await self.fetcher.get(script_url)
        except NetworkError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise NetworkError(script_url, e) from e

    def _build_advanced_sync(self, script: str) -> AdvancedSignatureCipher:
        cipher = AdvancedSignatureCipher(extract_cipher(script), self._engine.clone())
        cipher.test_cipher()
        return cipher

    async def _build_entry(
        self, script_url: str, script: str, cached_at: Optional[float] = None,
    ) -> tuple[CachedPlayerScript, Optional[CipherError]]:
        """
        Parse + self-test off the event loop, then cache whatever was built.
        `cached_at` is the original fetch time when rebuilding from cached text.
        """
        loop = asyncio.get_running_loop()
        advanced: Optional[AdvancedSignatureCipher] = None
        error: Optional[CipherError] = None
        try:
            advanced = await loop.run_in_executor(None, self._build_advanced_sync, script)
        except _RECOVERABLE as e:
            error = e
            log.warning(f"Advanced cipher unavailable for {script_url}, using basic cipher: {e}")

        entry = CachedPlayerScript(
            script_content=script,
            cipher=SignatureCipher.default(),
            advanced_cipher=advanced,
            extracted_cipher=advanced.extracted_cipher if advanced else None,
            cached_at=self._clock() if cached_at is None else cached_at,
        )
        await self._store(script_url, entry)
        if advanced:
            log.info(f"Cached advanced cipher for {script_url} (timestamp {advanced.timestamp})")
        return entry, error

    async def _get_entry(self, script_url: str) -> CachedPlayerScript:
        entry = await self._lookup(script_url)
        if entry is None:
            script = await self._fetch_script(script_url)
            entry, _ = await self._build_entry(script_url, script)
        return entry

    # ── public API ───────────────────────────

    async def resolve_format_url(self, script_url: str, fmt: StreamFormat) -> str:
        """
        Build the playable URL for `fmt`. Extraction, engine and self-test
        failures degrade to the basic cipher; only NetworkError propagates.
        """
        entry = await self._get_entry(script_url)
        if entry.advanced_cipher is None:
            return entry.cipher.decipher_url(fmt)

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, entry.advanced_cipher.decipher_url, fmt)
        except EngineError as e:
            log.warning(f"Advanced cipher failed for {script_url}, using basic cipher: {e}")
            return entry.cipher.decipher_url(fmt)

    async def get_advanced_cipher(self, script_url: str) -> AdvancedSignatureCipher:
        """
        Fresh cached advanced cipher, or fetch -> parse -> self-test -> store.
        A fresh basic-only entry is rebuilt from its cached script text.
        """
        entry = await self._lookup(script_url)
        if entry and entry.advanced_cipher:
            return entry.advanced_cipher

        if entry:
            entry, error = await self._build_entry(script_url, entry.script_content, entry.cached_at)
        else:
            script = await self._fetch_script(script_url)
            entry, error = await self._build_entry(script_url, script)
        if entry.advanced_cipher is None:
            raise error
        return entry.advanced_cipher

    async def get_cipher(self, script_url: str) -> SignatureCipher:
        """Basic cipher for `script_url`, caching the script if needed."""
        entry = await self._get_entry(script_url)
        return entry.cipher

    async def get_cache_stats(self) -> CacheStats:
        now = self._clock()
        async with self._lock:
            entries = list(self._scripts.values())
        advanced = sum(1 for e in entries if e.advanced_cipher is not None)
        return CacheStats(
            total_entries=len(entries),
            advanced_cipher_entries=advanced,
            basic_cipher_entries=len(entries) - advanced,
            expired_entries=sum(1 for e in entries if not e.is_fresh(self.cache_ttl, now)),
        )

    async def cleanup_cache(self) -> int:
        """Evict every stale entry. Returns how many were removed."""
        now = self._clock()
        async with self._lock:
            stale = [url for url, e in self._scripts.items() if not e.is_fresh(self.cache_ttl, now)]
            for url in stale:
                del self._scripts[url]
        if stale:
            log.info(f"Evicted {len(stale)} stale player script(s)")
        return len(stale)

    async def refresh_script(self, script_url: str) -> AdvancedSignatureCipher:
        """Drop the entry for `script_url` and rebuild it from a fresh fetch."""
        async with self._lock:
            self._scripts.pop(script_url, None)
        log.info(f"Refreshing player script {script_url}")
        return await self.get_advanced_cipher(script_url)
