import time
import uuid
from typing import Sequence
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession
from clipvault.core.errors import InvalidStatusTransition
from clipvault.modules.videos.models import Video, VideoStatus

class VideoRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **data) -> Video:
        obj = Video(**data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, video_id: uuid.UUID) -> Video | None:
        return await self.session.get(Video, video_id)

    async def list(self, *, limit: int = 50, newest_first: bool = True) -> Sequence[Video]:
        order = Video.created_at.desc() if newest_first else Video.created_at.asc()
        q = select(Video).order_by(order).limit(limit)
        res = await self.session.execute(q)
        return res.scalars().all()

    async def delete(self, video_id: uuid.UUID) -> bool:
        obj = await self.get(video_id)
        if not obj:
            return False
        await self.session.delete(obj)
        await self.session.flush()
        return True

    async def update_status(self, video_id: uuid.UUID, status: VideoStatus) -> Video | None:
        obj = await self.get(video_id)
        if not obj:
            return None
        if not obj.status.can_advance_to(status):
            raise InvalidStatusTransition(obj.status.value, status.value)
        obj.status = status
        await self.session.flush()
        return obj

    async def ping(self) -> float:
        """Round-trip a trivial query; returns latency in milliseconds."""
        start = time.perf_counter()
        await self.session.execute(text("SELECT 1"))
        return (time.perf_counter() - start) * 1000
