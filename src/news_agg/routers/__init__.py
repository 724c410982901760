"""API routers, all mounted under /api.

- /auth - registration, login, profile, password flows, OAuth handshakes
- /articles - filtered listing, search, personalized feed, detail
- /preferences - personalization preferences
- /saved-articles - bookmarks
- /sources, /categories - news catalog
- /admin/api-logs - upstream API usage (admin only)
"""
from news_agg.routers.admin import router as admin_router
from news_agg.routers.articles import router as articles_router
from news_agg.routers.auth import router as auth_router
from news_agg.routers.catalog import router as catalog_router
from news_agg.routers.preferences import router as preferences_router
from news_agg.routers.saved import router as saved_router

__all__ = [
    "admin_router",
    "articles_router",
    "auth_router",
    "catalog_router",
    "preferences_router",
    "saved_router",
]
