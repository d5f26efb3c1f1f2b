import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from gallery import __version__
from gallery.api import create_api_router
from gallery.core.config import get_settings
from gallery.core.container import get_container
from gallery.core.logging import configure_logging
from gallery.infrastructure.database import dispose_engine, init_db
from gallery.modules.common import StorageError, StorageErrorKind
from gallery.modules.consistency.runner import ReconciliationLoop

logger = logging.getLogger(__name__)
settings = get_settings()

ERROR_STATUS = {
    StorageErrorKind.VALIDATION: 400,
    StorageErrorKind.UPLOAD: 502,
    StorageErrorKind.DOWNLOAD: 502,
    StorageErrorKind.STORAGE: 500,
    StorageErrorKind.NOT_FOUND: 404,
    StorageErrorKind.PERMISSION_DENIED: 403,
    StorageErrorKind.QUOTA_EXCEEDED: 413,
    StorageErrorKind.RATE_LIMITED: 429,
    # client closed request
    StorageErrorKind.CANCELLED: 499,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings)
    await init_db()
    container = get_container()
    Path(settings.storage.root_dir, settings.storage.bucket).mkdir(parents=True, exist_ok=True)

    loop = None
    interval = settings.consistency.auto_cleanup_interval_minutes
    if interval > 0:
        loop = ReconciliationLoop(container, interval)
        loop.start()
    logger.info("%s %s started", settings.project_name, __version__)
    try:
        yield
    finally:
        if loop is not None:
            await loop.stop()
        await dispose_engine()


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = None
    if exc.kind is StorageErrorKind.RATE_LIMITED and isinstance(exc.details, dict):
        headers = {"Retry-After": str(exc.details.get("retry_after", 1))}
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Gallery asset storage and catalog consistency service",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorageError, storage_error_handler)

    media_root = Path(settings.storage.root_dir)
    media_root.mkdir(parents=True, exist_ok=True)
    app.mount(settings.storage.media_mount_path, StaticFiles(directory=str(media_root)), name="media")

    app.include_router(create_api_router(settings.api_prefix))

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("gallery.main:app", host=settings.host, port=settings.port, reload=settings.server.reload)
