"""API endpoint modules for version 1."""

from .comments import router as comments_router
from .feed import router as feed_router
from .me import router as me_router
from .media import router as media_router
from .notifications import router as notifications_router
from .posts import router as posts_router
from .reactions import router as reactions_router
from .reports import router as reports_router
from .scoops import router as scoops_router
from .search import router as search_router
from .social import router as social_router
from .users import router as users_router

__all__ = [
    "comments_router",
    "feed_router",
    "me_router",
    "media_router",
    "notifications_router",
    "posts_router",
    "reactions_router",
    "reports_router",
    "scoops_router",
    "search_router",
    "social_router",
    "users_router",
]
