import asyncio
import sys
from typing import Optional

from picfeed.core.config import settings
from picfeed.errors import BlockedError, FetchError, FetchTimeoutError
from picfeed.fetch.base import BrowserSession, FetchRequest, browser_headers


class PageFetcher:
    """
    Perform one retrieval of a URL through a browser session.

    The page is always closed again, whatever happens during navigation.
    """

    def __init__(self, settle_delay: Optional[float] = None):
        self.settle_delay = settings.SETTLE_DELAY if settle_delay is None else settle_delay

    async def fetch(self, url: str, session: BrowserSession, timeout: Optional[float] = None) -> str:
        request = FetchRequest(url=url, session=session)
        timeout_sec = settings.REQUEST_TIMEOUT if timeout is None else timeout

        page = await request.session.new_page()
        try:
            try:
                status = await asyncio.wait_for(
                    page.goto(request.url, browser_headers(), timeout_sec), timeout=timeout_sec
                )
            except asyncio.TimeoutError:
                raise FetchTimeoutError(f"Timeout while fetching {url}", url=url)

            if status == 403:
                raise BlockedError(f"403 Forbidden - blocked while fetching {url}", url=url)
            if status >= 400:
                raise FetchError(f"HTTP error {status} for {url}", url=url)

            # Let client-side rendering finish before reading the DOM
            if self.settle_delay > 0:
                await asyncio.sleep(self.settle_delay)
            return await page.content()
        except FetchError as e:
            print(f"Page fetch error: {e}", file=sys.stderr)
            raise
        finally:
            try:
                await page.close()
            except Exception as e:
                print(f"Failed to close page for {url}: {e}", file=sys.stderr)
