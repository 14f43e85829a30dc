import enum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Integer, BigInteger, Enum, Index
from clipvault.core.base import Base, TimestampedMixin

class VideoStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    def can_advance_to(self, target: "VideoStatus") -> bool:
        return target in _FORWARD[self]

_FORWARD = {
    VideoStatus.PENDING: {VideoStatus.PROCESSING, VideoStatus.COMPLETED, VideoStatus.FAILED},
    VideoStatus.PROCESSING: {VideoStatus.COMPLETED, VideoStatus.FAILED},
    VideoStatus.COMPLETED: set(),
    VideoStatus.FAILED: set(),
}

class Video(Base, TimestampedMixin):
    title: Mapped[str] = mapped_column(String(512))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str] = mapped_column(String(512))
    # storage object key; never reused, even after the row is deleted
    file_key: Mapped[str] = mapped_column(String(512), unique=True)
    file_size: Mapped[int] = mapped_column(BigInteger)
    mime_type: Mapped[str] = mapped_column(String(128))
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[VideoStatus] = mapped_column(Enum(VideoStatus, name="videostatus"), default=VideoStatus.PENDING)
    platform: Mapped[str | None] = mapped_column(String(64), nullable=True)
    original_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_video_status", "status"),
        Index("ix_video_created_at", "created_at"),
    )
