"""Tests for the HTTP client and the HTTP document fetcher."""

import httpx
import pytest

from notices_scraper.core.errors import FetchError
from notices_scraper.core.fetcher import HttpFetcher, parse_html
from notices_scraper.core.http_client import HostThrottle, HttpClient, decode_body, is_transient


def handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/missing":
        return httpx.Response(404, text="not found")
    return httpx.Response(
        200,
        html="<html><body><h1>공고</h1></body></html>",
        headers={"X-UA": request.headers.get("User-Agent", "")},
    )


@pytest.fixture
def transport():
    return httpx.MockTransport(handler)


class TestHttpClient:
    """Tests for HttpClient."""

    @pytest.mark.asyncio
    async def test_get_text(self, transport):
        async with HttpClient(transport=transport) as client:
            text = await client.get_text("https://example.or.kr/notice")

        assert "공고" in text

    @pytest.mark.asyncio
    async def test_sends_user_agent_and_language(self, transport):
        async with HttpClient(transport=transport) as client:
            response = await client.get("https://example.or.kr/notice")

        assert response.headers["X-UA"].startswith("Mozilla/5.0")
        assert response.request.headers["Accept-Language"].startswith("ko-KR")

    @pytest.mark.asyncio
    async def test_http_error_raises(self, transport):
        async with HttpClient(transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.get("https://example.or.kr/missing")

    @pytest.mark.asyncio
    async def test_requires_context(self):
        client = HttpClient()
        with pytest.raises(RuntimeError):
            await client.get("https://example.or.kr/notice")


class TestHttpFetcher:
    """Tests for HttpFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_returns_document(self, transport):
        async with HttpClient(transport=transport) as client:
            async with HttpFetcher(client=client) as fetcher:
                soup = await fetcher.fetch("https://example.or.kr/notice")

        assert soup.h1.get_text() == "공고"
        assert fetcher.fetch_count == 1

    @pytest.mark.asyncio
    async def test_fetch_error_wrapped(self, transport):
        """Test HTTP failures surface as FetchError with the URL."""
        async with HttpClient(transport=transport) as client:
            fetcher = HttpFetcher(client=client)
            with pytest.raises(FetchError) as exc_info:
                await fetcher.fetch("https://example.or.kr/missing")

        assert exc_info.value.url == "https://example.or.kr/missing"
        assert fetcher.fetch_count == 0

    @pytest.mark.asyncio
    async def test_requires_context(self):
        with pytest.raises(RuntimeError):
            await HttpFetcher().fetch("https://example.or.kr/notice")


class TestParseHtml:
    """Tests for parse_html."""

    def test_parses_korean(self):
        soup = parse_html("<p class='txt'>지원대상</p>")
        assert soup.select_one(".txt").get_text() == "지원대상"


class TestDecodeBody:
    """Tests for decode_body."""

    def test_header_charset_wins(self):
        response = httpx.Response(200, html="<p>지원사업</p>")
        assert decode_body(response) == "<p>지원사업</p>"

    def test_meta_charset_euc_kr(self):
        """Test an EUC-KR page with no header charset is decoded from its meta tag."""
        body = '<meta charset="euc-kr"><p>신청기간</p>'.encode("cp949")
        response = httpx.Response(200, content=body, headers={"Content-Type": "text/html"})

        assert "신청기간" in decode_body(response)

    def test_cp949_fallback_without_meta(self):
        body = "<p>소상공인 지원</p>".encode("cp949")
        response = httpx.Response(200, content=body, headers={"Content-Type": "text/html"})

        assert decode_body(response) == "<p>소상공인 지원</p>"


class TestRetries:
    """Tests for transient failure handling."""

    @pytest.mark.asyncio
    async def test_retries_server_error(self, sleep_calls):
        sleep, calls = sleep_calls
        responses = iter([httpx.Response(503), httpx.Response(200, html="<p>ok</p>")])
        transport = httpx.MockTransport(lambda request: next(responses))

        async with HttpClient(transport=transport, sleep=sleep) as client:
            text = await client.get_text("https://example.or.kr/notice")

        assert text == "<p>ok</p>"
        assert client.request_count == 2
        assert calls

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, sleep_calls):
        sleep, _ = sleep_calls
        transport = httpx.MockTransport(lambda request: httpx.Response(502))

        async with HttpClient(transport=transport, sleep=sleep, max_attempts=2) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.get("https://example.or.kr/notice")

        assert client.request_count == 2

    def test_is_transient(self):
        request = httpx.Request("GET", "https://example.or.kr")
        assert is_transient(httpx.ConnectError("refused", request=request))
        assert not is_transient(ValueError("boom"))


class TestHostThrottle:
    """Tests for HostThrottle."""

    @pytest.mark.asyncio
    async def test_same_host_waits(self, sleep_calls):
        sleep, calls = sleep_calls
        now = [100.0]
        throttle = HostThrottle(2.0, sleep=sleep, clock=lambda: now[0])

        await throttle.wait("https://www.bizinfo.go.kr/a")
        now[0] += 0.5
        await throttle.wait("https://www.bizinfo.go.kr/b")
        await throttle.wait("https://www.k-startup.go.kr/c")

        assert calls == [1.5]
