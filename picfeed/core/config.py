import os
from typing import Optional


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    # Upstream
    BASE_URL: str = os.getenv("BASE_URL", "https://www.pixwox.com").rstrip("/")

    # Development
    USE_MOCK: bool = _flag("USE_MOCK", "0")

    # Scraping (seconds)
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))
    SETTLE_DELAY: float = float(os.getenv("SETTLE_DELAY", "2"))
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    )
    ACCEPT_LANGUAGE: str = os.getenv("ACCEPT_LANGUAGE", "en-US,en;q=0.9")
    ACCEPT: str = os.getenv(
        "ACCEPT", "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
    )
    REFERER: str = os.getenv("REFERER", "https://www.google.com/")

    # Playwright / JS rendering; USE_BROWSER=0 falls back to plain httpx requests
    USE_BROWSER: bool = _flag("USE_BROWSER", "1")
    PLAYWRIGHT_HEADLESS: bool = _flag("PLAYWRIGHT_HEADLESS", "1")

    # Retries
    MAX_ATTEMPTS: int = int(os.getenv("MAX_ATTEMPTS", "3"))
    RETRY_DELAY: float = float(os.getenv("RETRY_DELAY", "2"))
    # 0 means every delayed retry runs at once
    RETRY_MAX_CONCURRENCY: int = int(os.getenv("RETRY_MAX_CONCURRENCY", "0"))
    RETRY_BLOCKED: bool = _flag("RETRY_BLOCKED", "1")

    # Degrade a post to an entry without images instead of failing the feed
    ISOLATE_POST_FAILURES: bool = _flag("ISOLATE_POST_FAILURES", "0")

    @property
    def retry_max_concurrency(self) -> Optional[int]:
        return self.RETRY_MAX_CONCURRENCY or None


settings = Settings()
