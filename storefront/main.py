# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
import uvicorn

from storefront.api import include_routers
from storefront.api.errors import register_exception_handlers
from storefront.data.database import dispose_db, init_db
from storefront.services.storage_service import LocalImageStorage
from storefront.utils.settings import UPLOAD_PATH
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database...")
    init_db()
    LocalImageStorage().ensure_dir()
    logger.info("Storefront API ready")
    yield
    dispose_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront API",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    include_routers(app)

    #zdjecia produktow serwowane statycznie pod /uploads
    app.mount("/uploads", StaticFiles(directory=UPLOAD_PATH, check_dir=False), name="uploads")

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
