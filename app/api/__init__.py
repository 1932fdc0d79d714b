"""API routers: public auth and health routes, and the token-protected /api tree."""

from fastapi import APIRouter, Depends

from app.api import auth, health, users
from app.api.deps import get_current_user

public_router = APIRouter()
# Same handlers under both prefixes; older clients call /auth/*, the SPA calls /api/auth/*.
for prefix in ("", "/api"):
    public_router.include_router(health.router, prefix=f"{prefix}/health", tags=["health"])
    public_router.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
    public_router.add_api_route(
        f"{prefix}/version", health.get_version, methods=["GET"], tags=["health"]
    )

protected_router = APIRouter(prefix="/api", dependencies=[Depends(get_current_user)])
protected_router.include_router(users.router, prefix="/users", tags=["users"])

__all__ = ["protected_router", "public_router"]
