# src/siteinfo/services/page_loader_service.py
from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Iterable, Optional

import aiohttp
import requests
from bs4 import BeautifulSoup, ParserRejectedMarkup

from siteinfo.model import LoaderSettings, Page

logger = logging.getLogger(__name__)

ParsedDocument = BeautifulSoup

CHUNK_SIZE = 64 * 1024


class PageLoaderService:
    """
    Fetches a single page and turns its body into a leniently parsed document.

    Fetch problems (bad URL, DNS, refused connection, timeout, redirect loop,
    non-2xx status) never propagate: they are logged, recorded on the Page and
    yield an empty body, so every lookup on the resulting document comes back empty.
    """

    def __init__(self, settings: Optional[LoaderSettings] = None):
        self.settings = settings or LoaderSettings.from_config()

    # -------- Public API --------

    def load(self, url: str) -> ParsedDocument:
        return self.parse(self.fetch(url).content)

    async def load_async(self, url: str) -> ParsedDocument:
        page = await self.fetch_async(url)
        return self.parse(page.content)

    @staticmethod
    def parse(content: bytes | str | None) -> ParsedDocument:
        """
        Builds a BeautifulSoup tree with the forgiving stdlib html.parser backend.
        Multi-valued attribute splitting is disabled so rel="shortcut icon"
        stays the literal string found in the markup.
        """
        try:
            return BeautifulSoup(content or b"", "html.parser", multi_valued_attributes=None)
        except ParserRejectedMarkup as e:
            logger.warning("Parser rejected markup, using an empty document: %s", e)
            return BeautifulSoup(b"", "html.parser", multi_valued_attributes=None)

    # =========================================================================
    #  SYNC FETCH (requests)
    # =========================================================================
    def fetch(self, url: str) -> Page:
        start_time = time.perf_counter()
        try:
            with requests.Session() as session:
                session.max_redirects = self.settings.max_redirects
                with session.get(
                        url,
                        headers=self._headers(),
                        timeout=self.settings.timeout,
                        allow_redirects=True,
                        stream=True,
                ) as response:
                    final_url = response.url
                    status = response.status_code
                    if response.history:
                        logger.debug(
                            "Followed %d redirects: %s -> %s", len(response.history), url, final_url
                        )
                    if not 200 <= status < 300:
                        return self._failed(url, f"HTTP {status}", status=status, final_url=final_url)
                    content = self._read_limited(response.iter_content(chunk_size=CHUNK_SIZE), url)
        except (requests.RequestException, ValueError) as e:
            return self._failed(url, f"{type(e).__name__}: {e}")

        logger.debug(
            "Fetched %s (%d bytes) in %.3fs", url, len(content), time.perf_counter() - start_time
        )
        return Page(url=url, final_url=final_url, status_code=status, content=content)

    def _read_limited(self, chunks: Iterable[bytes], url: str) -> bytes:
        """Reads the body up to max_body_bytes; the rest is discarded."""
        limit = self.settings.max_body_bytes
        buf = bytearray()
        for chunk in chunks:
            buf.extend(chunk)
            if len(buf) > limit:
                logger.warning("Body of %s exceeds %d bytes, truncating.", url, limit)
                del buf[limit:]
                break
        return bytes(buf)

    # =========================================================================
    #  ASYNC FETCH (aiohttp)
    # =========================================================================
    async def fetch_async(self, url: str) -> Page:
        timeout_obj = aiohttp.ClientTimeout(total=self.settings.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout_obj, headers=self._headers()) as session:
                async with session.get(
                        url,
                        allow_redirects=True,
                        max_redirects=self.settings.max_redirects,
                ) as response:
                    final_url = str(response.url)
                    status = response.status
                    if not 200 <= status < 300:
                        return self._failed(url, f"HTTP {status}", status=status, final_url=final_url)
                    content = await self._read_limited_async(response.content.iter_chunked(CHUNK_SIZE), url)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            return self._failed(url, f"{type(e).__name__}: {e}")

        return Page(url=url, final_url=final_url, status_code=status, content=content)

    async def _read_limited_async(self, chunks: AsyncIterator[bytes], url: str) -> bytes:
        limit = self.settings.max_body_bytes
        buf = bytearray()
        async for chunk in chunks:
            buf.extend(chunk)
            if len(buf) > limit:
                logger.warning("Body of %s exceeds %d bytes, truncating.", url, limit)
                del buf[limit:]
                break
        return bytes(buf)

    # =========================================================================
    #  SHARED HELPERS
    # =========================================================================
    def _headers(self) -> Optional[dict]:
        if self.settings.user_agent:
            return {"User-Agent": self.settings.user_agent}
        return None

    @staticmethod
    def _failed(url: str, error: str, status: Optional[int] = None, final_url: Optional[str] = None) -> Page:
        logger.warning("Could not fetch %s (%s). Using an empty document.", url, error)
        return Page(url=url, final_url=final_url, status_code=status, error=error)
