import re

from fastapi import APIRouter, HTTPException, Response, status

from picfeed.errors import AllAttemptsExhaustedError, FetchError, ParseError
from picfeed.feed.render import render_rss
from picfeed.schemas import FeedResult
from picfeed.services import aggregator

router = APIRouter()

_PROFILE_ID = re.compile(r"^[A-Za-z0-9._]+$")


async def _build(profile_id: str) -> FeedResult:
    if not _PROFILE_ID.match(profile_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile id may only contain letters, digits, '.' and '_'"
        )

    try:
        return await aggregator.build_profile_feed(profile_id)
    except (AllAttemptsExhaustedError, FetchError, ParseError) as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Upstream fetch failed: {e}"
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/profile/{profile_id}", response_model=FeedResult)
async def profile_feed(profile_id: str):
    """
    Build the feed of a profile as JSON.

    Post image sets are cached for the lifetime of the process.
    """
    return await _build(profile_id)


@router.get("/profile/{profile_id}/rss")
async def profile_feed_rss(profile_id: str):
    """Build the feed of a profile as RSS 2.0"""
    feed = await _build(profile_id)
    return Response(content=render_rss(feed), media_type="application/rss+xml")


@router.get("/cache/stats")
async def cache_statistics():
    """Get cache statistics for debugging"""
    return aggregator.get_cache_stats()


@router.delete("/cache/clear")
async def clear_cache():
    """Clear all cache entries"""
    aggregator.clear_cache()
    return {"message": "Cache cleared successfully"}


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "picfeed"}
