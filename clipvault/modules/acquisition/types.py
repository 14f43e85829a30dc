"""Value types that flow through one acquisition run."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

VideoQuality = Literal["max", "4320", "2160", "1440", "1080", "720", "480", "360", "240", "144"]
DownloadMode = Literal["auto", "audio", "mute"]


@dataclass(frozen=True, slots=True)
class AcquisitionRequest:
    url: str
    quality: VideoQuality = "1080"
    download_mode: DownloadMode = "auto"
    compress: bool = True


# ---- Resolution variants ----

@dataclass(frozen=True, slots=True)
class Direct:
    """Fetch ``media_url`` to get the final bytes (wire status tunnel or redirect)."""

    media_url: str
    suggested_filename: str


@dataclass(frozen=True, slots=True)
class PickerItem:
    kind: Literal["video", "photo"]
    media_url: str
    thumb_url: str | None = None


@dataclass(frozen=True, slots=True)
class Picker:
    items: tuple[PickerItem, ...] = ()

    def first_video(self) -> PickerItem | None:
        return next((item for item in self.items if item.kind == "video"), None)


@dataclass(frozen=True, slots=True)
class Failure:
    code: str
    service_context: str | None = None


ResolutionResult = Union[Direct, Picker, Failure]


# ---- Fetch / compression ----

@dataclass(frozen=True, slots=True)
class FetchedMedia:
    data: bytes
    content_type: str
    content_length: int


@dataclass(frozen=True, slots=True)
class CompressionOptions:
    max_resolution_height: int | None = None
    video_bitrate: str | None = None
    quality_factor: str | None = None
    audio_bitrate: str | None = None


@dataclass(frozen=True, slots=True)
class CompressionOutcome:
    succeeded: bool
    data: bytes = field(repr=False)
    original_size: int
    final_size: int
    ratio_percent: float
    normalized_mime_type: str
    duration_seconds: int | None = None
    error: str | None = None


# ---- Result ----

@dataclass(frozen=True, slots=True)
class AcquisitionResult:
    id: str
    title: str
    file_name: str
    file_key: str
    file_size: int
    original_size: int
    mime_type: str
    platform: str | None
    compression_saved: int = 0
    compression_ratio: float | None = None
