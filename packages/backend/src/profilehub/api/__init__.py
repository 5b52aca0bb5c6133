"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a router-wide auth dependency, the auth router mixes open
routes (register, login, profile lookup) with gated ones (profile update,
image upload/delete), so the gate is applied per route with
Depends(get_current_user).
"""

from fastapi import APIRouter

from profilehub.api.auth import router as auth_router
from profilehub.api.health import router as health_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
