import html
import json
from typing import List

from picfeed.fetch.base import BrowserPage, BrowserSession

_MOCK_POSTS = {
    "posts": {
        "items": [
            {
                "shortcode": "MockSingle1",
                "type": "img_sig",
                "sum": "Sunset over the bay <b>#travel</b>",
                "sum_pure": "Sunset over the bay #travel",
                "time": 1700000000,
                "pic": "https://cdn.example.com/single1.jpg",
            },
            {
                "shortcode": "MockMulti2",
                "type": "img_multi",
                "sum": "Weekend album",
                "sum_pure": "Weekend album",
                "time": 1699990000,
                "pic": "https://cdn.example.com/multi2_cover.jpg",
            },
            {
                "shortcode": "MockVideo3",
                "type": "video",
                "sum": "Short clip",
                "sum_pure": "Short clip",
                "time": 1699980000,
                "pic": "https://cdn.example.com/video3_poster.jpg",
                "video": "https://cdn.example.com/video3.mp4",
            },
        ]
    }
}


def _mock_document(url: str) -> str:
    """Canned upstream documents for running without network access."""

    if "/api/posts" in url:
        return "<html><body><pre>" + html.escape(json.dumps(_MOCK_POSTS), quote=False) + "</pre></body></html>"

    elif "/post/" in url:
        return """
        <html>
        <body>
            <div class="post_slide">
                <a href="https://cdn.example.com/multi2_1_full.jpg"><img data-src="https://cdn.example.com/multi2_1.jpg"></a>
                <a href="https://cdn.example.com/multi2_2_full.jpg"><img data-src="https://cdn.example.com/multi2_2.jpg"></a>
            </div>
        </body>
        </html>
        """

    else:
        return """
        <html>
        <body>
            <div class="ava"><div class="pic"><img src="https://cdn.example.com/avatar.jpg"></div></div>
            <div class="info">
                <h1 class="fullname">Mock Person</h1>
                <div class="sum">Photographer. Mock profile for local runs.</div>
            </div>
            <form><input type="hidden" name="userid" value="1234567890"></form>
        </body>
        </html>
        """


class MockPage(BrowserPage):
    def __init__(self, session: "MockSession"):
        self._session = session
        self._url = None

    async def goto(self, url, headers, timeout_sec):
        self._url = url
        self._session.visited.append(url)
        return 200

    async def content(self) -> str:
        return _mock_document(self._url)

    async def close(self) -> None:
        self._url = None


class MockSession(BrowserSession):
    def __init__(self):
        self.visited: List[str] = []
        self.closed = False

    async def new_page(self) -> BrowserPage:
        return MockPage(self)

    async def close(self) -> None:
        self.closed = True
