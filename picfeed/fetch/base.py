from dataclasses import dataclass
from typing import Any, Dict

from picfeed.core.config import settings


def browser_headers() -> Dict[str, str]:
    """Request headers that make a fetch look like an ordinary browser visit."""
    return {
        "Accept-Language": settings.ACCEPT_LANGUAGE,
        "Accept": settings.ACCEPT,
        "User-Agent": settings.USER_AGENT,
        "Referer": settings.REFERER,
    }


@dataclass(frozen=True)
class FetchRequest:
    url: str
    session: Any  # BrowserSession


class BrowserPage:
    """One tab (or one plain request) obtained from a BrowserSession."""

    async def goto(self, url: str, headers: Dict[str, str], timeout_sec: float) -> int:
        """Navigate to url and wait for the network to go idle. Returns the HTTP status."""
        raise NotImplementedError

    async def content(self) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


class BrowserSession:
    """A shared browser instance; many pages may be open against it at once."""

    async def new_page(self) -> BrowserPage:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
