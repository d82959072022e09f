from fastapi import APIRouter, Depends

from dependencies.auth import get_current_user

from .admin import router as admin_router
from .client import router as client_router
from .creators import router as creators_router
from .health import router as health_router
from .notifications import router as notifications_router
from .projects import router as projects_router


api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])

# Everything else needs a bearer token; the admin router additionally
# enforces the admin role on its own.
protected_deps = [Depends(get_current_user)]
api_router.include_router(creators_router, dependencies=protected_deps)
api_router.include_router(projects_router, dependencies=protected_deps)
api_router.include_router(client_router, dependencies=protected_deps)
api_router.include_router(admin_router, dependencies=protected_deps)
api_router.include_router(notifications_router, dependencies=protected_deps)
