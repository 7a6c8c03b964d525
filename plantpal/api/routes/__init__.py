"""
API Routes for PlantPal

Route modules:
- auth: local login/logout and current user
- oauth: GitHub login redirect and callback
- items: owner-scoped plant CRUD
"""

from plantpal.api.routes.auth import router as auth_router
from plantpal.api.routes.oauth import router as oauth_router
from plantpal.api.routes.items import router as items_router

__all__ = [
    "auth_router",
    "oauth_router",
    "items_router",
]
