"""FastAPI routers for the learning platform API."""

from src.api.routers.auth import router as auth_router
from src.api.routers.comments import router as comments_router
from src.api.routers.courses import router as courses_router
from src.api.routers.health import router as health_router
from src.api.routers.invites import router as invites_router
from src.api.routers.prompts import router as prompts_router
from src.api.routers.tasks import router as tasks_router
from src.api.routers.teams import router as teams_router
from src.api.routers.users import router as users_router
from src.api.routers.workspaces import router as workspaces_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "invites_router",
    "workspaces_router",
    "courses_router",
    "teams_router",
    "tasks_router",
    "comments_router",
    "prompts_router",
]
