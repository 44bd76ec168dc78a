import logging
import math
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import InvalidInput, StorageFailure
from app.helpers.interval_merger import merge_intervals, validate_interval
from app.helpers.progress_calculator import compute_percent
from app.models import VideoProgress

logger = logging.getLogger(__name__)

# A concurrent writer for the same (user, video) bumps the row version;
# the whole read-merge-write is replayed from a fresh read.
MAX_UPDATE_ATTEMPTS = 3


async def _load_progress(db: AsyncSession, user_id: str, video_id: str) -> Optional[VideoProgress]:
    return await db.scalar(
        select(VideoProgress)
        .where(
            VideoProgress.user_id == user_id,
            VideoProgress.video_id == video_id,
        )
        .execution_options(populate_existing=True)
    )


async def get_progress(db: AsyncSession, user_id: str, video_id: str) -> Optional[VideoProgress]:
    try:
        return await _load_progress(db, user_id, video_id)
    except SQLAlchemyError as exc:
        logger.error(f"Loading progress for user={user_id} video={video_id} failed: {exc}")
        raise StorageFailure(f"Could not load progress: {exc}") from exc


def _check_update_input(last_watched_time: float, video_duration: float) -> None:
    if video_duration is None or not math.isfinite(video_duration) or video_duration <= 0:
        raise InvalidInput(f"videoDuration must be a positive number, got {video_duration}")
    if last_watched_time is None or not math.isfinite(last_watched_time) or last_watched_time < 0:
        raise InvalidInput(f"lastWatchedTime must be a non-negative number, got {last_watched_time}")


async def update_progress(
    db: AsyncSession,
    user_id: str,
    video_id: str,
    new_intervals: Sequence[Sequence[float]],
    last_watched_time: float,
    video_duration: float,
    clamp: bool = False,
) -> VideoProgress:
    """
    Fold newly watched ranges into the stored history for (user_id, video_id)
    and persist the result with exactly one upsert.

    1. load the existing record (missing -> empty history)
    2. merge history + new ranges
    3. recompute the percentage from the merged ranges
    4. overwrite lastWatchedTime / videoDuration with the new values

    Raises InvalidInput before touching storage, StorageFailure when the
    write fails or keeps conflicting with concurrent writers.
    """
    _check_update_input(last_watched_time, video_duration)
    cleaned = [validate_interval(interval) for interval in new_intervals]

    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        inserting = False
        try:
            progress = await _load_progress(db, user_id, video_id)
            prior = progress.watched_intervals if progress else []

            merged = merge_intervals([*(tuple(item) for item in prior), *cleaned])
            percent = compute_percent(merged, video_duration, clamp=clamp)

            if progress is None:
                inserting = True
                progress = VideoProgress(user_id=user_id, video_id=video_id)
                db.add(progress)

            progress.watched_intervals = [[start, end] for start, end in merged]
            progress.last_watched_time = last_watched_time
            progress.video_duration = video_duration
            progress.progress_percent = percent

            await db.commit()
            logger.info(
                f"Progress saved for user={user_id} video={video_id}: "
                f"{percent}% over {len(merged)} interval(s)"
            )
            return progress

        except IntegrityError as exc:
            await db.rollback()
            # only a row inserted by someone else since our read is a conflict
            if not inserting or await get_progress(db, user_id, video_id) is None:
                logger.error(f"Saving progress for user={user_id} video={video_id} failed: {exc}")
                raise StorageFailure(f"Could not save progress: {exc}") from exc
            logger.warning(
                f"Concurrent progress insert for user={user_id} video={video_id} "
                f"(attempt {attempt}/{MAX_UPDATE_ATTEMPTS})"
            )
        except StaleDataError as exc:
            await db.rollback()
            logger.warning(
                f"Concurrent progress write for user={user_id} video={video_id} "
                f"(attempt {attempt}/{MAX_UPDATE_ATTEMPTS}): {exc.__class__.__name__}"
            )
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(f"Saving progress for user={user_id} video={video_id} failed: {exc}")
            raise StorageFailure(f"Could not save progress: {exc}") from exc

    raise StorageFailure(
        f"Could not save progress for user {user_id} and video {video_id}: "
        f"too many concurrent updates"
    )
