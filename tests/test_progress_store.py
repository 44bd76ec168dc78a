import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import InvalidInput, StorageFailure
from app.helpers import progress_store
from app.helpers.progress_store import MAX_UPDATE_ATTEMPTS, get_progress, update_progress


@pytest.mark.asyncio
async def test_first_update_creates_record(db):
    progress = await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)

    assert progress.user_id == "user-1"
    assert progress.video_id == "video-1"
    assert progress.watched_intervals == [[0, 10]]
    assert progress.last_watched_time == 10
    assert progress.video_duration == 100
    assert progress.progress_percent == 10

    stored = await get_progress(db, "user-1", "video-1")
    assert stored is not None
    assert stored.watched_intervals == [[0, 10]]


@pytest.mark.asyncio
async def test_adjacent_history_is_merged(db):
    await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)
    progress = await update_progress(db, "user-1", "video-1", [[10, 20]], 20, 100)

    assert progress.watched_intervals == [[0, 20]]
    assert progress.progress_percent == 20


@pytest.mark.asyncio
async def test_sequential_updates_accumulate(db):
    await update_progress(db, "user-1", "video-1", [[0, 5]], 5, 10)
    progress = await update_progress(db, "user-1", "video-1", [[3, 8]], 8, 10)

    assert progress.watched_intervals == [[0, 8]]
    assert progress.progress_percent == 80


@pytest.mark.asyncio
async def test_last_watched_time_and_duration_are_overwritten(db):
    await update_progress(db, "user-1", "video-1", [[0, 30]], 30, 100)
    progress = await update_progress(db, "user-1", "video-1", [], 12, 60)

    assert progress.last_watched_time == 12
    assert progress.video_duration == 60
    assert progress.watched_intervals == [[0, 30]]
    # percent follows the newly reported duration
    assert progress.progress_percent == 50


@pytest.mark.asyncio
async def test_records_are_per_user_and_video(db):
    await update_progress(db, "user-1", "video-1", [[0, 50]], 50, 100)
    await update_progress(db, "user-2", "video-1", [[0, 10]], 10, 100)
    await update_progress(db, "user-1", "video-2", [[0, 25]], 25, 100)

    assert (await get_progress(db, "user-1", "video-1")).progress_percent == 50
    assert (await get_progress(db, "user-2", "video-1")).progress_percent == 10
    assert (await get_progress(db, "user-1", "video-2")).progress_percent == 25


@pytest.mark.asyncio
async def test_unknown_pair_has_no_record(db):
    assert await get_progress(db, "nobody", "nothing") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("duration", [0, -5, float("nan")])
async def test_invalid_duration_writes_nothing(db, duration):
    with pytest.raises(InvalidInput):
        await update_progress(db, "user-1", "video-1", [[0, 10]], 10, duration)

    assert await get_progress(db, "user-1", "video-1") is None


@pytest.mark.asyncio
async def test_invalid_duration_keeps_existing_record(db):
    await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)

    with pytest.raises(InvalidInput):
        await update_progress(db, "user-1", "video-1", [[10, 90]], 90, 0)

    stored = await get_progress(db, "user-1", "video-1")
    assert stored.watched_intervals == [[0, 10]]
    assert stored.progress_percent == 10


@pytest.mark.asyncio
@pytest.mark.parametrize("interval", [[10, 5], [-1, 4], [0, float("inf")]])
async def test_malformed_interval_writes_nothing(db, interval):
    with pytest.raises(InvalidInput):
        await update_progress(db, "user-1", "video-1", [interval], 0, 100)

    assert await get_progress(db, "user-1", "video-1") is None


@pytest.mark.asyncio
async def test_negative_last_watched_time_rejected(db):
    with pytest.raises(InvalidInput):
        await update_progress(db, "user-1", "video-1", [[0, 1]], -1, 100)


@pytest.mark.asyncio
async def test_clamp_option(db):
    progress = await update_progress(db, "user-1", "video-1", [[0, 120]], 120, 100, clamp=True)
    assert progress.progress_percent == 100


@pytest.mark.asyncio
async def test_unclamped_by_default(db):
    progress = await update_progress(db, "user-1", "video-1", [[0, 120]], 120, 100)
    assert progress.progress_percent == 120


@pytest.mark.asyncio
async def test_concurrent_update_is_replayed(db, database, monkeypatch):
    await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)

    original_load = progress_store._load_progress
    loads = 0

    async def racing_load(session, user_id, video_id):
        nonlocal loads
        record = await original_load(session, user_id, video_id)
        loads += 1
        if loads == 1:
            # another request commits between our read and our write
            async with database.session() as other:
                await update_progress(other, user_id, video_id, [[50, 60]], 60, 100)
        return record

    monkeypatch.setattr(progress_store, "_load_progress", racing_load)

    progress = await update_progress(db, "user-1", "video-1", [[10, 20]], 20, 100)

    assert progress.watched_intervals == [[0, 20], [50, 60]]
    assert progress.progress_percent == 30
    assert loads == 3


@pytest.mark.asyncio
async def test_concurrent_first_insert_is_replayed(db, database, monkeypatch):
    original_load = progress_store._load_progress
    loads = 0

    async def racing_load(session, user_id, video_id):
        nonlocal loads
        record = await original_load(session, user_id, video_id)
        loads += 1
        if loads == 1:
            async with database.session() as other:
                await update_progress(other, user_id, video_id, [[30, 40]], 40, 100)
        return record

    monkeypatch.setattr(progress_store, "_load_progress", racing_load)

    progress = await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)

    assert progress.watched_intervals == [[0, 10], [30, 40]]
    assert progress.progress_percent == 20


@pytest.mark.asyncio
async def test_gives_up_after_repeated_conflicts(db, monkeypatch):
    commits = 0

    async def conflicting_commit():
        nonlocal commits
        commits += 1
        raise StaleDataError("row version changed")

    monkeypatch.setattr(db, "commit", conflicting_commit)

    with pytest.raises(StorageFailure):
        await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)
    assert commits == MAX_UPDATE_ATTEMPTS


@pytest.mark.asyncio
async def test_storage_error_is_not_retried(db, monkeypatch):
    commits = 0

    async def broken_commit():
        nonlocal commits
        commits += 1
        raise OperationalError("COMMIT", {}, Exception("database is down"))

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(StorageFailure):
        await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)
    assert commits == 1


@pytest.mark.asyncio
async def test_unstorable_percent_writes_nothing(db):
    with pytest.raises(InvalidInput):
        await update_progress(db, "user-1", "video-1", [[0, 1e10]], 0, 1e-300)

    assert await get_progress(db, "user-1", "video-1") is None


@pytest.mark.asyncio
async def test_integrity_error_without_concurrent_insert_is_not_retried(db, monkeypatch):
    commits = 0

    async def rejecting_commit():
        nonlocal commits
        commits += 1
        raise IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed"))

    monkeypatch.setattr(db, "commit", rejecting_commit)

    with pytest.raises(StorageFailure) as exc_info:
        await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)
    assert commits == 1
    assert "too many concurrent updates" not in exc_info.value.message


@pytest.mark.asyncio
async def test_integrity_error_on_existing_record_is_not_retried(db, monkeypatch):
    await update_progress(db, "user-1", "video-1", [[0, 10]], 10, 100)
    commits = 0

    async def rejecting_commit():
        nonlocal commits
        commits += 1
        raise IntegrityError("UPDATE", {}, Exception("CHECK constraint failed"))

    monkeypatch.setattr(db, "commit", rejecting_commit)

    with pytest.raises(StorageFailure):
        await update_progress(db, "user-1", "video-1", [[10, 20]], 20, 100)
    assert commits == 1
