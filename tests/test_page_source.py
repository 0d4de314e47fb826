"""
Tests for file and HTTP page sources
"""

import httpx
import pytest

from src.core.errors import FetchFailure
from src.core.pages.page_source import FilePageSource, HttpPageSource, create_page_source


class TestFilePageSource:
    """Test reading pages from disk"""

    @pytest.fixture
    def base_dir(self, tmp_path):
        (tmp_path / "lws" / "csv").mkdir(parents=True)
        (tmp_path / "lws" / "pages").mkdir(parents=True)
        (tmp_path / "lws" / "csv" / "1.csv").write_text("German Word\nHund\n", encoding="utf-8")
        (tmp_path / "lws" / "pages" / "1").write_text("Der Hund schläft.", encoding="utf-8")
        return tmp_path

    @pytest.mark.asyncio
    async def test_fetch_page(self, base_dir):
        source = FilePageSource(base_dir, "lws")

        assert await source.fetch_page(1) == "German Word\nHund\n"
        assert await source.fetch_word_page(1) == "Der Hund schläft."

    @pytest.mark.asyncio
    async def test_missing_page(self, base_dir):
        source = FilePageSource(base_dir, "lws")

        assert await source.fetch_page(2) is None
        assert await source.fetch_word_page(2) is None

    @pytest.mark.asyncio
    async def test_undecodable_page(self, base_dir):
        (base_dir / "lws" / "csv" / "2.csv").write_bytes(b"\xff\xfe\xfa")
        source = FilePageSource(base_dir, "lws")

        with pytest.raises(FetchFailure):
            await source.fetch_page(2)


class TestHttpPageSource:
    """Test fetching pages over HTTP"""

    def make_source(self, handler) -> HttpPageSource:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpPageSource("https://example.org/", "lws", client=client)

    @pytest.mark.asyncio
    async def test_fetch_page(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, text="German Word\nHund\n")

        source = self.make_source(handler)

        assert await source.fetch_page(3) == "German Word\nHund\n"
        assert requested == ["https://example.org/lws/csv/3.csv"]

    @pytest.mark.asyncio
    async def test_word_page_url(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, text="Hund")

        await self.make_source(handler).fetch_word_page(7)

        assert requested == ["https://example.org/lws/pages/7"]

    @pytest.mark.asyncio
    async def test_not_found(self):
        source = self.make_source(lambda request: httpx.Response(404))

        assert await source.fetch_page(1) is None

    @pytest.mark.asyncio
    async def test_server_error(self):
        source = self.make_source(lambda request: httpx.Response(503))

        with pytest.raises(FetchFailure, match="HTTP 503"):
            await source.fetch_page(1)

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        with pytest.raises(FetchFailure):
            await self.make_source(handler).fetch_page(1)


class TestCreatePageSource:
    """Test picking a source from configuration"""

    def test_directory(self):
        assert isinstance(create_page_source("data"), FilePageSource)

    def test_url(self):
        source = create_page_source("https://example.org/words", "lws")
        assert isinstance(source, HttpPageSource)
        assert source.csv_url(1) == "https://example.org/words/lws/csv/1.csv"
