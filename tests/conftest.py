import asyncio
import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import pytest

from picfeed.cache.resource_cache import ResourceCache
from picfeed.core import config
from picfeed.fetch.base import BrowserPage, BrowserSession
from picfeed.services import aggregator

BASE_URL = "https://www.pixwox.com"


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Setup test environment: no real delays, no mock mode, a fresh image cache"""
    # Store original values
    overrides = {
        "BASE_URL": BASE_URL,
        "USE_MOCK": False,
        "SETTLE_DELAY": 0.0,
        "RETRY_DELAY": 0.0,
        "MAX_ATTEMPTS": 3,
        "RETRY_MAX_CONCURRENCY": 0,
        "RETRY_BLOCKED": True,
        "ISOLATE_POST_FAILURES": False,
    }
    original = {name: getattr(config.settings, name) for name in overrides}

    # Override settings for tests
    for name, value in overrides.items():
        setattr(config.settings, name, value)
    monkeypatch.setattr(aggregator, "resource_cache", ResourceCache())

    yield

    # Restore original values
    for name, value in original.items():
        setattr(config.settings, name, value)


@dataclass
class FakeResponse:
    status: int = 200
    body: str = ""
    delay: float = 0.0
    error: Optional[Exception] = None


class FakePage(BrowserPage):
    def __init__(self, session: "FakeSession"):
        self._session = session
        self._body = ""

    async def goto(self, url, headers, timeout_sec):
        session = self._session
        if session.closed:
            raise AssertionError(f"fetch of {url} issued after session close")
        session.calls.append(url)
        session.headers.append(headers)
        response = session.next_response(url)
        if response.delay:
            await asyncio.sleep(response.delay)
        if response.error is not None:
            raise response.error
        self._body = response.body
        session.events.append(("done", url))
        return response.status

    async def content(self):
        return self._body

    async def close(self):
        self._session.pages_closed += 1


class FakeSession(BrowserSession):
    """
    Scripted browser session.

    Each URL maps to one response or a list of responses consumed in order;
    the last response of a list repeats once the list runs out.
    """

    def __init__(self, responses: Dict[str, Union[FakeResponse, List[FakeResponse]]]):
        self._responses = {
            url: list(r) if isinstance(r, list) else [r] for url, r in responses.items()
        }
        self.calls: List[str] = []
        self.headers: List[dict] = []
        self.events: List[tuple] = []
        self.pages_opened = 0
        self.pages_closed = 0
        self.close_count = 0
        self.closed = False

    def next_response(self, url: str) -> FakeResponse:
        queue = self._responses.get(url)
        if not queue:
            return FakeResponse(status=404)
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def count(self, url: str) -> int:
        return self.calls.count(url)

    async def new_page(self):
        self.pages_opened += 1
        return FakePage(self)

    async def close(self):
        self.close_count += 1
        self.closed = True
        self.events.append(("closed", None))


def profile_html(name="Jane Doe", user_id="4242", bio="Just pictures", avatar="https://cdn.test/ava.jpg"):
    user_input = f'<input type="hidden" name="userid" value="{user_id}">' if user_id else ""
    name_el = f'<h1 class="fullname">{name}</h1>' if name is not None else ""
    return f"""
    <html><body>
        <div class="ava"><div class="pic"><img src="{avatar}"></div></div>
        <div class="info">{name_el}<div class="sum">{bio}</div></div>
        {user_input}
    </body></html>
    """


def posts_json(items):
    return "<html><body><pre>" + json.dumps({"posts": {"items": items}}) + "</pre></body></html>"


def post_item(short_code, kind="img_sig", caption=None, time=1700000000, **extra):
    item = {
        "shortcode": short_code,
        "type": kind,
        "sum": caption or f"Caption {short_code}",
        "sum_pure": caption or f"Caption {short_code}",
        "time": time,
        "pic": f"https://cdn.test/{short_code}.jpg",
    }
    item.update(extra)
    return item


def detail_html(*pairs):
    links = "".join(f'<a href="{ori}"><img data-src="{url}"></a>' for ori, url in pairs)
    return f'<html><body><div class="post_slide">{links}</div></body></html>'


def profile_url(profile_id):
    return f"{BASE_URL}/profile/{profile_id}/"


def posts_url(user_id):
    return f"{BASE_URL}/api/posts?userid={user_id}"


def post_url(short_code):
    return f"{BASE_URL}/post/{short_code}/"
