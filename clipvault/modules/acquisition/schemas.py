from pydantic import BaseModel, ConfigDict, Field
from clipvault.modules.acquisition.types import AcquisitionRequest, DownloadMode, VideoQuality

class DownloadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str | None = None
    video_quality: VideoQuality | None = Field(default=None, alias="videoQuality")
    download_mode: DownloadMode | None = Field(default=None, alias="downloadMode")
    compress: bool = True

    def to_request(self) -> AcquisitionRequest:
        return AcquisitionRequest(
            url=(self.url or "").strip(),
            quality=self.video_quality or "1080",
            download_mode=self.download_mode or "auto",
            compress=self.compress,
        )

class DownloadedVideoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    file_name: str = Field(serialization_alias="fileName")
    file_key: str = Field(serialization_alias="fileKey")
    file_size: int = Field(serialization_alias="fileSize")
    original_size: int = Field(serialization_alias="originalSize")
    compression_saved: int = Field(serialization_alias="compressionSaved")
    mime_type: str = Field(serialization_alias="mimeType")
    platform: str | None = None

class DownloadResponse(BaseModel):
    success: bool = True
    video: DownloadedVideoOut
