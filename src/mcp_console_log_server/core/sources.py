"""Where console content comes from: local files or HTTP endpoints."""

from __future__ import annotations

import gzip
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Protocol

import aiofiles
import httpx
from aiofiles.threadpool import wrap

DEFAULT_CHUNK_SIZE = 65536


class ContentSource(Protocol):
    """Source interface: full current text on demand, or a chunk stream."""

    @property
    def location(self) -> str: ...

    @property
    def fallback_location(self) -> str | None: ...

    async def read(self) -> str:
        """Return the full current content."""
        ...

    def stream(self) -> AsyncIterator[str]:
        """Yield the content as decoded text chunks."""
        ...


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


class FileSource:
    def __init__(
        self,
        path: str | Path,
        *,
        encoding: str = "utf-8",
        decode_errors: str = "replace",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.path = Path(path)
        self.encoding = encoding
        self.decode_errors = decode_errors
        self.chunk_size = chunk_size

    @property
    def location(self) -> str:
        return str(self.path)

    @property
    def fallback_location(self) -> str | None:
        return None

    def _check(self) -> None:
        if not self.path.is_file():
            raise FileNotFoundError(f"Log file not found: {self.path}")

    async def read(self) -> str:
        self._check()
        async with _open_text(self.path, encoding=self.encoding, decode_errors=self.decode_errors) as f:
            return await f.read()

    async def stream(self) -> AsyncIterator[str]:
        self._check()
        async with _open_text(self.path, encoding=self.encoding, decode_errors=self.decode_errors) as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk


def jenkins_text_url(url: str) -> str | None:
    """Map a Jenkins ``consoleFull`` URL to its plain ``consoleText`` twin."""
    if "consoleFull" in url:
        return url.replace("consoleFull", "consoleText")
    return None


class HttpSource:
    def __init__(
        self,
        url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        fallback_url: str | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.chunk_size = chunk_size
        self._client = client
        self._fallback = fallback_url if fallback_url is not None else jenkins_text_url(url)

    @property
    def location(self) -> str:
        return self.url

    @property
    def fallback_location(self) -> str | None:
        return self._fallback

    @asynccontextmanager
    async def _client_ctx(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            yield client

    async def read(self) -> str:
        async with self._client_ctx() as client:
            resp = await client.get(self.url)
            resp.raise_for_status()
            return resp.text

    async def stream(self) -> AsyncIterator[str]:
        async with self._client_ctx() as client:
            async with client.stream("GET", self.url) as resp:
                resp.raise_for_status()
                async for text in resp.aiter_text(self.chunk_size):
                    if text:
                        yield text


def open_source(location: str | Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> ContentSource:
    """Pick a source for a path or an http(s) URL."""
    loc = str(location)
    if loc.startswith(("http://", "https://")):
        return HttpSource(loc, chunk_size=chunk_size)
    return FileSource(loc, chunk_size=chunk_size)
