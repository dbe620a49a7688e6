"""API router configuration."""

from fastapi import APIRouter

from chatfeed.modules.feed.interfaces.router import router as feed_router

api_router = APIRouter()

# Feed
api_router.include_router(feed_router)
