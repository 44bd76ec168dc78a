import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import Settings, get_settings
from app.database import Database
from app.exceptions import register_exception_handlers
from app.helpers.file_paths import UPLOADS_URL_PREFIX
from app.logging_config import setup_logging

from app.routes.video import router as video_router
from app.routes.progress import router as progress_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.database
    settings: Settings = app.state.settings

    logger.info("Starting video progress tracker...")
    database.connect()
    if settings.create_tables_on_startup:
        await database.create_tables()
    try:
        yield
    finally:
        logger.info("Shutting down video progress tracker...")
        await database.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Video Progress Tracker",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = Database(settings.database_url, echo=settings.sql_echo)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/")
    def root():
        return {
            "message": "Video progress tracker is running! Try /videos to see all videos."
        }

    app.include_router(video_router)
    app.include_router(progress_router)

    # Serve uploaded videos
    os.makedirs(settings.uploads_dir, exist_ok=True)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=settings.uploads_dir), name="uploads")

    return app
