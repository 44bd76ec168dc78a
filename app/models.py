import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Text, JSON, Uuid, UniqueConstraint
from app.database import Base

MAX_TITLE_LENGTH = 255
MAX_ID_LENGTH = 255


# ---------------------------
# Video Model
# ---------------------------
class Video(Base):
    __tablename__ = "videos"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    title = Column(String(MAX_TITLE_LENGTH), nullable=False)
    # Only set for locally uploaded files
    filename = Column(String(255), nullable=True)
    url = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)


# ---------------------------
# Watch Progress Model
# ---------------------------
class VideoProgress(Base):
    __tablename__ = "video_progress"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(MAX_ID_LENGTH), nullable=False)
    video_id = Column(String(MAX_ID_LENGTH), nullable=False)

    # Canonical form: sorted, disjoint [[start, end], ...]
    watched_intervals = Column(JSON, nullable=False, default=list)
    last_watched_time = Column(Float, nullable=False, default=0.0)
    video_duration = Column(Float, nullable=False)
    progress_percent = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="unique_video_progress"),
    )

    __mapper_args__ = {"version_id_col": version}
