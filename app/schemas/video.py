from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.models import MAX_TITLE_LENGTH


class ExternalVideoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    url: str = Field(..., min_length=1)


class VideoItem(BaseModel):
    id: UUID
    title: str
    filename: Optional[str] = None
    url: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
