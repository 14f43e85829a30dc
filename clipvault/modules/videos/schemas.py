import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from clipvault.modules.videos.models import VideoStatus

class VideoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    title: str
    description: str | None = None
    file_name: str = Field(serialization_alias="fileName")
    file_key: str = Field(serialization_alias="fileKey")
    file_size: int = Field(serialization_alias="fileSize")
    mime_type: str = Field(serialization_alias="mimeType")
    duration_seconds: int | None = Field(default=None, serialization_alias="duration")
    status: VideoStatus
    platform: str | None = None
    original_url: str | None = Field(default=None, serialization_alias="originalUrl")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime | None = Field(default=None, serialization_alias="updatedAt")
    download_url: str | None = Field(default=None, serialization_alias="downloadUrl")

class VideoListOut(BaseModel):
    videos: list[VideoOut]

class UploadUrlOut(BaseModel):
    key: str
    upload: dict
