import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .database import init_db
from .errors import DomainError
from .routes import domain_error_handler, router
from .storage import UPLOAD_DIR, UPLOAD_URL_PREFIX, ensure_upload_dir, gcs_photos_enabled

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    init_db()
    if gcs_photos_enabled():
        logger.info("Storing photos in Google Cloud Storage")
    else:
        ensure_upload_dir()
        logger.info("Storing photos under %s", UPLOAD_DIR)
    yield


def create_app() -> FastAPI:
    """Application factory for the event planner API."""
    app = FastAPI(title="Carnival Planner", lifespan=lifespan)
    app.include_router(router)
    app.add_exception_handler(DomainError, domain_error_handler)
    # The directory is created on startup or by the first local upload.
    app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")
    return app


app = create_app()
