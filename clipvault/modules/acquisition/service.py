import asyncio
import enum
import logging
import re
from typing import assert_never

import anyio
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.config import Settings
from clipvault.core.errors import (
    AcquisitionError, AcquisitionTimeoutError, NoPlayableContentError, PersistenceError,
    StorageError, UpstreamResolutionError, ValidationError,
)
from clipvault.modules.acquisition.fetcher import MediaFetcher
from clipvault.modules.acquisition.platforms import detect_platform
from clipvault.modules.acquisition.resolution import ResolutionClient
from clipvault.modules.acquisition.transcoder import Transcoder
from clipvault.modules.acquisition.types import (
    AcquisitionRequest, AcquisitionResult, Direct, Failure, Picker,
)
from clipvault.modules.videos.models import VideoStatus
from clipvault.modules.videos.repository import VideoRepository
from clipvault.platform.ports.object_storage import ObjectStoragePort, generate_file_key
from clipvault.platform.providers import Providers

logger = logging.getLogger(__name__)

_EXTENSION = re.compile(r"\.[^/.]+$")

class AcquisitionStage(str, enum.Enum):
    VALIDATING = "validating"
    RESOLVING = "resolving"
    FETCHING = "fetching"
    COMPRESSING = "compressing"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    DONE = "done"

def title_from_filename(filename: str) -> str:
    # "My_Video-Clip.mp4" -> "My video clip"
    cleaned = re.sub(r"[_-]", " ", _EXTENSION.sub("", filename))
    cleaned = " ".join(cleaned.split())
    return cleaned.capitalize() if cleaned else filename

def with_mp4_extension(filename: str) -> str:
    if _EXTENSION.search(filename):
        return _EXTENSION.sub(".mp4", filename)
    return f"{filename}.mp4"

class AcquisitionService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        settings: Settings,
        resolver: ResolutionClient,
        fetcher: MediaFetcher,
        transcoder: Transcoder,
        storage: ObjectStoragePort,
    ):
        self.session = session
        self.videos = VideoRepository(session)
        self.settings = settings
        self.resolver = resolver
        self.fetcher = fetcher
        self.transcoder = transcoder
        self.storage = storage
        self.stage = AcquisitionStage.VALIDATING

    @classmethod
    def from_providers(cls, session: AsyncSession, providers: Providers) -> "AcquisitionService":
        return cls(
            session,
            settings=providers.settings,
            resolver=providers.resolver,
            fetcher=providers.fetcher,
            transcoder=providers.transcoder,
            storage=providers.storage,
        )

    def _enter(self, stage: AcquisitionStage, url: str):
        self.stage = stage
        logger.info(f"Acquisition {stage.value}: {url}")

    def validate(self, request: AcquisitionRequest) -> str:
        if not request.url or not request.url.strip():
            raise ValidationError("URL is required")
        platform = detect_platform(request.url)
        if platform is None:
            raise ValidationError("URL is not supported. Try YouTube, TikTok, Instagram, or LinkedIn.")
        return platform

    async def acquire(self, request: AcquisitionRequest) -> AcquisitionResult:
        self.stage = AcquisitionStage.VALIDATING
        platform = self.validate(request)
        timeout = self.settings.ACQUISITION_TIMEOUT_SECONDS
        try:
            async with asyncio.timeout(timeout):
                return await self._run(request, platform)
        except TimeoutError as e:
            logger.error(f"Acquisition of {request.url} timed out during {self.stage.value} after {timeout:.0f}s")
            raise AcquisitionTimeoutError(
                f"Download timed out after {timeout:.0f} seconds", stage=self.stage.value
            ) from e
        except AcquisitionError:
            raise
        except Exception as e:
            logger.error(f"Acquisition of {request.url} failed unexpectedly during {self.stage.value}: {e!r}", exc_info=True)
            raise AcquisitionError(f"Download failed during {self.stage.value}: {e}", stage=self.stage.value) from e

    async def _run(self, request: AcquisitionRequest, platform: str) -> AcquisitionResult:
        self._enter(AcquisitionStage.RESOLVING, request.url)
        resolution = await self.resolver.resolve(request)
        match resolution:
            case Failure(code=code, service_context=context):
                logger.warning(f"Resolution failed for {request.url}: code={code} context={context}")
                raise UpstreamResolutionError(code, service=context)
            case Picker():
                item = resolution.first_video()
                if item is None:
                    raise NoPlayableContentError()
                media_url, file_name = item.media_url, "video.mp4"
                title = f"Video from {platform}"
            case Direct(media_url=media_url, suggested_filename=file_name):
                title = title_from_filename(file_name)
            case _:
                assert_never(resolution)

        self._enter(AcquisitionStage.FETCHING, media_url)
        media = await self.fetcher.fetch(media_url)
        data, mime_type = media.data, media.content_type
        original_size = media.content_length
        duration = None
        compression_ratio = None

        if request.compress and self.settings.VIDEO_COMPRESSION_ENABLED and await self.transcoder.is_available():
            self._enter(AcquisitionStage.COMPRESSING, request.url)
            outcome = await self.transcoder.compress(data, mime_type)
            if outcome.succeeded:
                data, mime_type = outcome.data, outcome.normalized_mime_type
                file_name = with_mp4_extension(file_name)
                duration = outcome.duration_seconds
                compression_ratio = outcome.ratio_percent
            else:
                logger.warning(f"Compression degraded for {request.url}, storing original: {outcome.error}")

        self._enter(AcquisitionStage.UPLOADING, request.url)
        file_key = generate_file_key(file_name)
        try:
            await anyio.to_thread.run_sync(self.storage.put_bytes, file_key, data, mime_type)
        except Exception as e:
            logger.error(f"Upload of {file_key} failed: {e!r}", exc_info=True)
            raise StorageError(f"Failed to store video: {e}") from e

        self._enter(AcquisitionStage.PERSISTING, request.url)
        try:
            video = await self.videos.create(
                title=title,
                file_name=file_name,
                file_key=file_key,
                file_size=len(data),
                mime_type=mime_type,
                duration_seconds=duration,
                status=VideoStatus.COMPLETED,
                platform=platform,
                original_url=request.url,
            )
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            # TODO: feed orphaned keys to a reconciliation job that sweeps blobs with no video row
            logger.error(f"Metadata write failed; blob {file_key} is now orphaned: {e!r}", exc_info=True)
            raise PersistenceError(f"Failed to save video metadata: {e}", orphaned_key=file_key) from e

        self._enter(AcquisitionStage.DONE, request.url)
        return AcquisitionResult(
            id=str(video.id),
            title=video.title,
            file_name=video.file_name,
            file_key=video.file_key,
            file_size=video.file_size,
            original_size=original_size,
            mime_type=video.mime_type,
            platform=platform,
            compression_saved=max(original_size - video.file_size, 0),
            compression_ratio=compression_ratio,
        )
