from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_app_settings
from app.database import get_db
from app.helpers.progress_store import get_progress, update_progress
from app.schemas.progress import ProgressUpdate, ProgressResponse, default_progress

router = APIRouter(
    prefix="/progress",
    tags=["Watch Progress Endpoints"]
)


@router.get(
    "/{user_id}/{video_id}",
    response_model=ProgressResponse,
    response_model_exclude_none=True,
)
async def get_watch_progress(
    user_id: str,
    video_id: str,
    db: AsyncSession = Depends(get_db),
):
    progress = await get_progress(db, user_id, video_id)
    if not progress:
        return default_progress()
    return progress


@router.post(
    "/update",
    response_model=ProgressResponse,
    status_code=status.HTTP_200_OK,
)
async def update_watch_progress(
    payload: ProgressUpdate,
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
):
    return await update_progress(
        db,
        user_id=payload.user_id,
        video_id=payload.video_id,
        new_intervals=payload.watched_intervals,
        last_watched_time=payload.last_watched_time,
        video_duration=payload.video_duration,
        clamp=settings.clamp_progress_percent,
    )
