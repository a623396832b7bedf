"""Aggregate router for every v1 endpoint."""

from fastapi import APIRouter

from .endpoints import (
    comments_router,
    feed_router,
    me_router,
    media_router,
    notifications_router,
    posts_router,
    reactions_router,
    reports_router,
    scoops_router,
    search_router,
    social_router,
    users_router,
)

api_router = APIRouter()
api_router.include_router(feed_router)
api_router.include_router(posts_router)
api_router.include_router(comments_router)
api_router.include_router(reactions_router)
api_router.include_router(social_router)
api_router.include_router(users_router)
api_router.include_router(me_router)
api_router.include_router(notifications_router)
api_router.include_router(search_router)
api_router.include_router(media_router)
api_router.include_router(reports_router)
api_router.include_router(scoops_router)
