from fastapi import APIRouter

from gallery.interfaces.http.routers import admin, auth, gallery


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(auth.router, prefix="/auth", tags=["auth"])
    router.include_router(gallery.router, prefix="/gallery", tags=["gallery"])
    router.include_router(admin.router, prefix="/admin", tags=["admin"])
    return router


__all__ = [
    "create_api_router",
]
