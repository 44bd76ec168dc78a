from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional, Tuple
from datetime import datetime

from app.exceptions import InvalidInput
from app.helpers.interval_merger import validate_interval
from app.models import MAX_ID_LENGTH


class ProgressUpdate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    video_id: str = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    watched_intervals: List[Tuple[float, float]]
    last_watched_time: float = Field(..., ge=0)
    video_duration: float = Field(..., gt=0)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )

    @field_validator("watched_intervals")
    @classmethod
    def check_intervals(cls, value):
        checked = []
        for interval in value:
            try:
                checked.append(validate_interval(interval))
            except InvalidInput as exc:
                raise ValueError(exc.message)
        return checked


class ProgressResponse(BaseModel):
    user_id: Optional[str] = None
    video_id: Optional[str] = None
    watched_intervals: List[List[float]]
    last_watched_time: float
    video_duration: float
    progress_percent: int
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Returned for a (user, video) pair that has never reported progress
def default_progress() -> ProgressResponse:
    return ProgressResponse(
        watched_intervals=[],
        last_watched_time=0,
        video_duration=0,
        progress_percent=0,
    )
