from contextlib import asynccontextmanager

from fastapi import FastAPI

from picfeed.api.routes import router
from picfeed.core.config import settings
from picfeed.services import aggregator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Browser sessions are opened per request; only the image cache lives here.
    """
    # Startup
    mode = "mock" if settings.USE_MOCK else ("browser" if settings.USE_BROWSER else "http")
    print(f"Starting picfeed ({mode} mode, upstream {settings.BASE_URL})...")

    yield

    # Shutdown
    print(f"Shutting down picfeed, cache stats: {aggregator.get_cache_stats()}")


app = FastAPI(
    title="picfeed",
    description="Profile and post feeds scraped from a Picnob style Instagram mirror",
    version="1.0.0",
    lifespan=lifespan
)

# Include API routes
app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "service": "picfeed",
        "version": "1.0.0",
        "endpoints": {
            "feed": "GET /profile/{profile_id}",
            "rss": "GET /profile/{profile_id}/rss",
            "health": "GET /health",
            "cache_stats": "GET /cache/stats"
        }
    }
