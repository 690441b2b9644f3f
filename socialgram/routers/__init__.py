"""API routers for the socialgram backend-for-frontend."""
from .auth import router as auth_router
from .follows import router as follows_router
from .posts import router as posts_router
from .profiles import router as profiles_router
from .stories import router as stories_router
from .system import router as system_router
from .uploads import router as uploads_router

__all__ = [
    "auth_router",
    "follows_router",
    "posts_router",
    "profiles_router",
    "stories_router",
    "system_router",
    "uploads_router",
]
