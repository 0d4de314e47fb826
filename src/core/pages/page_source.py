"""
Page data sources for word list files
"""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

import httpx

from ..errors import FetchFailure

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    """Anything that can return the raw text of a numbered page"""

    async def fetch_page(self, index: int) -> str | None:
        """Return the CSV text of a word list page, or None if it does not exist"""
        ...

    async def fetch_word_page(self, index: int) -> str | None:
        """Return the plain word list text of a page, or None if it does not exist"""
        ...


class FilePageSource:
    """Reads pages from a local directory: <base>/<folder>/csv/<n>.csv"""

    def __init__(self, base_dir: str | Path, folder: str = "lws"):
        self.base_dir = Path(base_dir)
        self.folder = folder

    def csv_path(self, index: int) -> Path:
        return self.base_dir / self.folder / "csv" / f"{index}.csv"

    def word_page_path(self, index: int) -> Path:
        return self.base_dir / self.folder / "pages" / str(index)

    async def fetch_page(self, index: int) -> str | None:
        return await self._read(self.csv_path(index))

    async def fetch_word_page(self, index: int) -> str | None:
        return await self._read(self.word_page_path(index))

    async def _read(self, path: Path) -> str | None:
        if not path.is_file():
            logger.debug(f"Page file not found: {path}")
            return None
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FetchFailure(str(path), str(e)) from e


class HttpPageSource:
    """Fetches pages over HTTP: <base_url>/<folder>/csv/<n>.csv"""

    def __init__(
        self,
        base_url: str,
        folder: str = "lws",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.folder = folder
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    def csv_url(self, index: int) -> str:
        return f"{self.base_url}/{self.folder}/csv/{index}.csv"

    def word_page_url(self, index: int) -> str:
        return f"{self.base_url}/{self.folder}/pages/{index}"

    async def fetch_page(self, index: int) -> str | None:
        return await self._get(self.csv_url(index))

    async def fetch_word_page(self, index: int) -> str | None:
        return await self._get(self.word_page_url(index))

    async def _get(self, url: str) -> str | None:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchFailure(url, str(e)) from e

        if response.status_code == 404:
            logger.debug(f"Page not found: {url}")
            return None
        if response.is_error:
            raise FetchFailure(url, f"HTTP {response.status_code}")

        return response.text

    async def close(self):
        """Close the underlying HTTP client if this source created it"""
        if self._owns_client:
            await self._client.aclose()


def create_page_source(base: str, folder: str = "lws", timeout: float = 30.0) -> PageSource:
    """Pick a source implementation from the configured base location"""
    if base.startswith(("http://", "https://")):
        return HttpPageSource(base, folder, timeout=timeout)
    return FilePageSource(base, folder)
