from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from picfeed.errors import ParseError
from picfeed.schemas import FeedResult, PostItem

TEMPLATES_DIR = Path(__file__).parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)
_env.filters["rfc822"] = format_datetime


def render_description(item: PostItem) -> str:
    """Render the HTML body of a feed entry (images or video, then the caption)."""
    return _env.get_template("desc.html").render(item=item).strip()


def parse_timestamp(raw: str) -> Optional[datetime]:
    """Parse a unix timestamp in seconds into an aware UTC datetime."""
    if raw is None or not str(raw).strip():
        return None
    try:
        return datetime.fromtimestamp(int(float(raw)), tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as e:
        raise ParseError(f"Invalid timestamp {raw!r}") from e


def render_rss(feed: FeedResult) -> str:
    return _env.get_template("rss.xml").render(feed=feed)
