import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFound, StorageFailure
from app.models import Video

logger = logging.getLogger(__name__)


async def create_video(
    db: AsyncSession,
    title: str,
    url: str,
    filename: Optional[str] = None,
) -> Video:
    video = Video(title=title, filename=filename, url=url)
    db.add(video)
    try:
        await db.commit()
        await db.refresh(video)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"Saving video '{title}' failed: {exc}")
        raise StorageFailure(f"Could not save video: {exc}") from exc

    logger.info(f"Video created: id={video.id} title='{video.title}'")
    return video


async def list_videos(db: AsyncSession) -> List[Video]:
    try:
        result = await db.execute(select(Video).order_by(Video.created_at))
    except SQLAlchemyError as exc:
        raise StorageFailure(f"Could not list videos: {exc}") from exc
    return list(result.scalars().all())


async def get_video(db: AsyncSession, video_id: str) -> Video:
    # A malformed id can't exist in the store either
    try:
        video_uuid = UUID(str(video_id))
    except ValueError:
        raise NotFound("Video not found")

    try:
        video = await db.scalar(select(Video).where(Video.id == video_uuid))
    except SQLAlchemyError as exc:
        raise StorageFailure(f"Could not load video: {exc}") from exc

    if not video:
        raise NotFound("Video not found")
    return video
