"""
Extract profile metadata, the post listing and post image sets from
fetched upstream documents.
"""

import json
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from picfeed.core.config import settings
from picfeed.errors import ParseError
from picfeed.schemas import ImageLink, PostItem, PostKind, ProfileMetadata


def profile_url(profile_id: str) -> str:
    return f"{settings.BASE_URL}/profile/{profile_id}/"


def posts_url(user_id: str) -> str:
    return f"{settings.BASE_URL}/api/posts?userid={user_id}"


def _attr(soup: BeautifulSoup, selector: str, name: str) -> Optional[str]:
    el = soup.select_one(selector)
    if el is None:
        return None
    value = el.get(name)
    return value.strip() if isinstance(value, str) else None


def parse_profile(html: str, profile_id: str) -> ProfileMetadata:
    """Read display name, numeric user id, bio and avatar from a profile page."""
    soup = BeautifulSoup(html, "html.parser")

    name_el = soup.select_one("h1.fullname")
    if name_el is None:
        raise ParseError(f"Profile name not found for {profile_id}")

    user_id = _attr(soup, "input[name=userid]", "value")
    if not user_id:
        raise ParseError(f"User id not found for {profile_id}")

    description_el = soup.select_one(".info .sum")

    return ProfileMetadata(
        profile_id=profile_id,
        name=name_el.get_text(strip=True),
        user_id=user_id,
        description=description_el.get_text(strip=True) if description_el else "",
        avatar=_attr(soup, ".ava .pic img", "src"),
        link=profile_url(profile_id),
    )


def _load_json(document: str) -> Dict[str, Any]:
    text = document.strip()
    if not text.startswith(("{", "[")):
        # A browser wraps raw JSON responses in <pre>
        soup = BeautifulSoup(document, "html.parser")
        pre = soup.find("pre")
        text = pre.get_text() if pre else soup.get_text()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Post listing is not valid JSON: {e}") from e


def _timestamp_text(value: Any) -> str:
    # null and a missing field both mean "no date"
    return "" if value is None else str(value)


def parse_posts(document: str) -> List[PostItem]:
    """Turn the post listing response into PostItems, keeping listing order."""
    data = _load_json(document)
    try:
        items = data["posts"]["items"]
    except (KeyError, TypeError):
        raise ParseError("Post listing has no posts.items")
    if not isinstance(items, list):
        raise ParseError("Post listing posts.items is not a list")

    posts = []
    for raw in items:
        if not isinstance(raw, dict):
            raise ParseError(f"Malformed post in listing: {raw!r}")
        short_code = raw.get("shortcode")
        if not short_code:
            raise ParseError("Post without shortcode in listing")
        posts.append(
            PostItem(
                short_code=short_code,
                kind=PostKind.from_upstream(raw.get("type")),
                raw_timestamp=_timestamp_text(raw.get("time")),
                summary=raw.get("sum_pure") or "",
                summary_html=raw.get("sum") or "",
                picture=raw.get("pic"),
                video=raw.get("video"),
            )
        )
    return posts


def parse_post_images(html: str) -> List[ImageLink]:
    """Collect the slides of a multi-image post, without duplicates."""
    soup = BeautifulSoup(html, "html.parser")
    images: List[ImageLink] = []
    seen = set()
    for a in soup.select(".post_slide a"):
        img = a.find("img")
        image = ImageLink(
            original_link=a.get("href"),
            image_url=img.get("data-src") if img else None,
        )
        if image not in seen:
            seen.add(image)
            images.append(image)
    return images
