from typing import Dict, Optional

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout
from playwright.async_api import async_playwright

from picfeed.core.config import settings
from picfeed.errors import FetchError, FetchTimeoutError
from picfeed.fetch.base import BrowserPage, BrowserSession

BROWSER_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-web-security',
    '--disable-features=IsolateOrigins,site-per-process',
    '--disable-site-isolation-trials',
]


class PlaywrightPage(BrowserPage):
    def __init__(self, page):
        self._page = page

    async def goto(self, url: str, headers: Dict[str, str], timeout_sec: float) -> int:
        await self._page.set_extra_http_headers(headers)
        try:
            response = await self._page.goto(url, wait_until="networkidle", timeout=timeout_sec * 1000)
        except PlaywrightTimeout:
            raise FetchTimeoutError(f"Timeout while fetching {url}", url=url)
        except PlaywrightError as e:
            raise FetchError(f"Failed to fetch {url} with browser: {e}", url=url)
        # goto() returns None for same-document navigations
        return response.status if response is not None else 200

    async def content(self) -> str:
        return await self._page.content()

    async def close(self) -> None:
        await self._page.close()


class PlaywrightSession(BrowserSession):
    """Headless Chromium shared by every page of one feed build."""

    def __init__(self, playwright, browser, context):
        self._playwright = playwright
        self._browser = browser
        self._context = context

    @classmethod
    async def launch(cls) -> "PlaywrightSession":
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=settings.PLAYWRIGHT_HEADLESS,
                args=BROWSER_ARGS,
            )
            context = await browser.new_context(
                viewport={"width": 1920, "height": 1080},
                ignore_https_errors=True,
            )
        except Exception:
            await playwright.stop()
            raise
        return cls(playwright, browser, context)

    async def new_page(self) -> BrowserPage:
        return PlaywrightPage(await self._context.new_page())

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


class HttpxPage(BrowserPage):
    """A plain GET request standing in for a browser tab. No JavaScript runs."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client
        self._text: Optional[str] = None

    async def goto(self, url: str, headers: Dict[str, str], timeout_sec: float) -> int:
        try:
            response = await self._client.get(url, headers=headers, timeout=timeout_sec)
        except httpx.TimeoutException:
            raise FetchTimeoutError(f"Timeout while fetching {url}", url=url)
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url=url)
        self._text = response.text
        return response.status_code

    async def content(self) -> str:
        return self._text or ""

    async def close(self) -> None:
        self._text = None


class HttpxSession(BrowserSession):
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(follow_redirects=True)

    async def new_page(self) -> BrowserPage:
        return HttpxPage(self._client)

    async def close(self) -> None:
        await self._client.aclose()


async def open_session() -> BrowserSession:
    """Open the session kind selected by settings (mock, Playwright or httpx)."""
    if settings.USE_MOCK:
        from picfeed.fetch.mock import MockSession
        return MockSession()
    if settings.USE_BROWSER:
        return await PlaywrightSession.launch()
    return HttpxSession()
