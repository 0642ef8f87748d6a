from fastapi import APIRouter

from app.features.auth.routes.auth import router as auth_router
from app.features.auth.routes.users import router as users_router
from app.features.explorers.routes.explorers import router as explorers_router
from app.features.health.routes.health import router as health_router
from app.features.notifications.routes.notifications import router as notifications_router
from app.features.posts.routes.posts import router as posts_router
from app.features.posts.routes.posts import saves_router
from app.features.stories.routes.stories import router as stories_router

api_router = APIRouter()

# Register all feature routes
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(posts_router)
api_router.include_router(saves_router)
api_router.include_router(stories_router)
api_router.include_router(explorers_router)
api_router.include_router(notifications_router)
api_router.include_router(health_router)
