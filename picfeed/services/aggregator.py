import asyncio
import sys
from typing import Any, Dict, List, Optional

from picfeed.cache.resource_cache import ResourceCache
from picfeed.core.config import settings
from picfeed.feed.render import parse_timestamp, render_description
from picfeed.fetch import parser
from picfeed.fetch.base import BrowserSession
from picfeed.fetch.retry import RetryOrchestrator
from picfeed.fetch.session import open_session
from picfeed.schemas import FeedEntry, FeedResult, ImageLink, PostItem, PostKind

# Post image sets never change, so one cache serves every request of the process
resource_cache = ResourceCache()


class ProfileAggregator:
    def __init__(
        self,
        retry: Optional[RetryOrchestrator] = None,
        cache: Optional[ResourceCache] = None,
        isolate_post_failures: Optional[bool] = None,
    ):
        self.retry = retry or RetryOrchestrator()
        self.cache = resource_cache if cache is None else cache
        self.isolate_post_failures = (
            settings.ISOLATE_POST_FAILURES if isolate_post_failures is None else isolate_post_failures
        )

    async def build_feed(self, profile_id: str, session: BrowserSession) -> FeedResult:
        """
        Build the feed of one profile.

        1. Fetch the profile page; read name and numeric user id
        2. Fetch the post listing for that user id
        3. Resolve image sets of multi-image posts through the cache
        4. Build one FeedEntry per post, in listing order

        Every detail fetch has finished when this returns or raises, so the
        caller may close the session right after.
        """
        print(f"FETCH profile {profile_id}")
        profile_html = await self.retry.fetch_with_retry(parser.profile_url(profile_id), session)
        profile = parser.parse_profile(profile_html, profile_id)

        listing = await self.retry.fetch_with_retry(parser.posts_url(profile.user_id), session)
        posts = parser.parse_posts(listing)
        print(f"POSTS RECEIVED: {len(posts)} for {profile_id} (user id {profile.user_id})")

        results = await asyncio.gather(
            *(self._resolve_images(post, session) for post in posts),
            return_exceptions=True,
        )
        for post, result in zip(posts, results):
            if isinstance(result, BaseException):
                if not self.isolate_post_failures:
                    raise result
                print(f"Image resolution failed for {post.link}, keeping post without images: {result}",
                      file=sys.stderr)
            elif result is not None:
                post.images = result

        return FeedResult(
            title=f"{profile.name} (@{profile_id}) - Picnob",
            description=profile.description,
            link=profile.link,
            image=profile.avatar,
            items=[self._to_entry(post) for post in posts],
        )

    async def _resolve_images(self, post: PostItem, session: BrowserSession) -> Optional[List[ImageLink]]:
        if post.kind is not PostKind.MULTI_IMAGE:
            return None

        async def fetch_images() -> List[ImageLink]:
            html = await self.retry.fetch_with_retry(post.link, session)
            return parser.parse_post_images(html)

        return await self.cache.try_get(post.link, fetch_images, owner=session)

    @staticmethod
    def _to_entry(post: PostItem) -> FeedEntry:
        return FeedEntry(
            title=post.summary,
            description=render_description(post),
            link=post.link,
            pub_date=parse_timestamp(post.raw_timestamp),
        )


async def build_profile_feed(profile_id: str, aggregator: Optional[ProfileAggregator] = None) -> FeedResult:
    """Open a browser session, build the feed and close the session exactly once."""
    aggregator = aggregator or ProfileAggregator()
    session = await open_session()
    try:
        return await aggregator.build_feed(profile_id, session)
    except Exception as e:
        print(f"ERROR building feed for {profile_id}: {e}", file=sys.stderr)
        raise
    finally:
        # A cancelled build leaves shared image fetches running on this session
        await aggregator.cache.drain(session)
        await session.close()


def get_cache_stats() -> Dict[str, Any]:
    return resource_cache.get_stats()


def clear_cache() -> None:
    resource_cache.clear()
