"""
Async HTTP session for server-rendered announcement pages.

Built on httpx with:
- A minimum interval between requests to the same host
- Retries (tenacity) on timeouts, connection errors and 5xx responses
- Body decoding that honors a charset declared only in the markup;
  several portals still serve EUC-KR pages with a bare text/html header
"""

import asyncio
import re
import time
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

logger = structlog.get_logger(__name__)


USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ko-KR,ko;q=0.9,en;q=0.8",
}

RETRY_STATUSES = frozenset({500, 502, 503, 504})

META_CHARSET_PATTERN = re.compile(rb"""<meta[^>]+charset=["']?([A-Za-z0-9_-]+)""", re.IGNORECASE)

# cp949 is a superset of EUC-KR
FALLBACK_ENCODINGS = ("utf-8", "cp949")


def is_transient(exc: BaseException) -> bool:
    """True for failures worth another attempt: timeouts, network errors, 5xx."""
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRY_STATUSES
    return False


def decode_body(response: httpx.Response) -> str:
    """
    Decode a response body to text.

    Order: charset from the Content-Type header, then a <meta charset>
    in the first 2 KB, then utf-8, then cp949.
    """
    if response.charset_encoding:
        return response.text

    content = response.content
    candidates = []
    match = META_CHARSET_PATTERN.search(content[:2048])
    if match:
        declared = match.group(1).decode("ascii").lower()
        candidates.append("cp949" if declared in ("euc-kr", "euckr", "ks_c_5601-1987") else declared)
    candidates.extend(FALLBACK_ENCODINGS)

    for encoding in candidates:
        try:
            return content.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            logger.debug("decode_attempt_failed", encoding=encoding)

    return content.decode("utf-8", errors="replace")


class HostThrottle:
    """Keeps at least `interval` seconds between requests to the same host."""

    def __init__(
        self,
        interval: float,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self._clock = clock
        self._last: dict[str, float] = {}

    async def wait(self, url: str) -> float:
        """Sleep until the host may be hit again. Returns the seconds waited."""
        host = urlparse(url).netloc
        waited = 0.0

        last = self._last.get(host)
        if last is not None:
            waited = max(0.0, self.interval - (self._clock() - last))
            if waited:
                await self._sleep(waited)

        self._last[host] = self._clock()
        return waited


class HttpClient:
    """
    Async HTTP session with per-host throttling and retries.

    Usage:
        async with HttpClient() as client:
            html = await client.get_text("https://www.bizinfo.go.kr/...")
    """

    def __init__(
        self,
        requests_per_second: float = 1.0,
        timeout: float = 30.0,
        max_attempts: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            requests_per_second: Request rate allowed per host
            timeout: Request timeout in seconds
            max_attempts: Attempts per request, first one included
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
            sleep: Sleep coroutine for throttling and retry waits
        """
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.transport = transport
        self._sleep = sleep or asyncio.sleep
        self.throttle = HostThrottle(
            1.0 / requests_per_second if requests_per_second > 0 else 0.0,
            sleep=self._sleep,
        )

        self._client: Optional[httpx.AsyncClient] = None
        self.request_count = 0

    async def __aenter__(self) -> "HttpClient":
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            headers=DEFAULT_HEADERS,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _next_user_agent(self) -> str:
        return USER_AGENTS[self.request_count % len(USER_AGENTS)]

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """
        GET a URL.

        Raises:
            RuntimeError: outside the async context
            httpx.HTTPError: non-transient failure, or the last transient one
        """
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception(is_transient),
            sleep=self._sleep,
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                await self.throttle.wait(url)
                headers = {"User-Agent": self._next_user_agent()}
                self.request_count += 1
                response = await self._client.get(url, headers=headers, **kwargs)
                response.raise_for_status()

        logger.debug(
            "http_get",
            url=url,
            status=response.status_code,
            attempts=attempt.retry_state.attempt_number,
        )
        return response

    async def get_text(self, url: str, **kwargs) -> str:
        """GET a URL and decode its body."""
        return decode_body(await self.get(url, **kwargs))
