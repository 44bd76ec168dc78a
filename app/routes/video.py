from fastapi import APIRouter, Depends, Form, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import os
import aiofiles

from app.config import Settings, get_app_settings
from app.database import get_db
from app.exceptions import StorageFailure, UploadFailure
from app.helpers.file_paths import (
    build_upload_url,
    delete_upload_safely,
    generate_upload_filename,
    get_upload_fs_path,
)
from app.helpers.video_catalog import create_video, get_video, list_videos
from app.models import MAX_TITLE_LENGTH
from app.schemas.video import ExternalVideoCreate, VideoItem

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Video Endpoints"]
)


@router.post("/videos/upload", response_model=VideoItem)
async def upload_video(
    title: str = Form(..., min_length=1, max_length=MAX_TITLE_LENGTH),
    video: UploadFile = File(...),
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
):
    # --------------------------
    # Save file
    # --------------------------
    filename = generate_upload_filename(video.filename)
    fs_path = get_upload_fs_path(settings.uploads_dir, filename)

    try:
        os.makedirs(settings.uploads_dir, exist_ok=True)
        async with aiofiles.open(fs_path, "wb") as f:
            await f.write(await video.read())
    except OSError as exc:
        logger.error(f"Writing upload {fs_path} failed: {exc}")
        raise UploadFailure(f"Could not store uploaded file: {exc}") from exc

    # --------------------------
    # Create Video record
    # --------------------------
    try:
        created = await create_video(
            db,
            title=title,
            url=build_upload_url(settings.base_url, filename),
            filename=filename,
        )
    except StorageFailure:
        delete_upload_safely(settings.uploads_dir, filename)
        raise

    return created


@router.post("/videos/youtube", response_model=VideoItem)
async def add_external_video(
    payload: ExternalVideoCreate,
    db: AsyncSession = Depends(get_db),
):
    return await create_video(db, title=payload.title, url=payload.url)


@router.get("/videos", response_model=list[VideoItem])
async def get_all_videos(db: AsyncSession = Depends(get_db)):
    return await list_videos(db)


@router.get("/video/{video_id}", response_model=VideoItem)
async def get_video_by_id(
    video_id: str,
    db: AsyncSession = Depends(get_db),
):
    return await get_video(db, video_id)
