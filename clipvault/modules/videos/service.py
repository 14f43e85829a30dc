import logging
import uuid
import anyio
from sqlalchemy.ext.asyncio import AsyncSession
from clipvault.core.config import Settings
from clipvault.modules.videos.repository import VideoRepository
from clipvault.modules.videos.schemas import VideoOut
from clipvault.platform.ports.object_storage import ObjectStoragePort, generate_file_key

logger = logging.getLogger(__name__)

class VideoService:
    def __init__(self, session: AsyncSession, storage: ObjectStoragePort, settings: Settings):
        self.session = session
        self.repo = VideoRepository(session)
        self.storage = storage
        self.settings = settings

    async def _signed_url(self, file_key: str) -> str | None:
        try:
            return await anyio.to_thread.run_sync(
                self.storage.presign_download, file_key, self.settings.SIGNED_URL_TTL_SECONDS
            )
        except Exception as e:
            logger.error(f"Failed to generate URL for {file_key}: {e!r}")
            return None

    async def list_videos(self, limit: int | None = None) -> list[VideoOut]:
        videos = await self.repo.list(limit=limit or self.settings.LIST_LIMIT, newest_first=True)
        out = []
        for video in videos:
            item = VideoOut.model_validate(video)
            item.download_url = await self._signed_url(video.file_key)
            out.append(item)
        return out

    async def delete_video(self, video_id: uuid.UUID) -> bool:
        video = await self.repo.get(video_id)
        if not video:
            return False
        # blob first, best-effort; the row goes regardless
        try:
            await anyio.to_thread.run_sync(self.storage.delete, video.file_key)
        except Exception as e:
            logger.error(f"Failed to delete file {video.file_key}: {e!r}")
        await self.repo.delete(video_id)
        await self.session.commit()
        logger.info(f"Deleted video {video_id} ({video.file_key})")
        return True

    async def upload_url(self, file_name: str, content_type: str) -> tuple[str, dict]:
        key = generate_file_key(file_name)
        upload = await anyio.to_thread.run_sync(
            self.storage.presign_upload, key, content_type, self.settings.SIGNED_URL_TTL_SECONDS
        )
        return key, upload
