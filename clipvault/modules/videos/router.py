import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from clipvault.platform.providers import Providers, get_providers, get_session
from clipvault.modules.videos.schemas import UploadUrlOut, VideoListOut
from clipvault.modules.videos.service import VideoService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session), providers: Providers = Depends(get_providers)) -> VideoService:
    return VideoService(session, providers.storage, providers.settings)

@router.get("", response_model=VideoListOut)
async def list_videos(limit: int | None = Query(default=None, ge=1, le=200), service: VideoService = Depends(svc)):
    return VideoListOut(videos=await service.list_videos(limit))

@router.delete("")
async def delete_video(id: str | None = None, service: VideoService = Depends(svc)):
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Video ID is required")
    try:
        video_id = uuid.UUID(id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    if not await service.delete_video(video_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    return {"success": True}

@router.get("/upload-url", response_model=UploadUrlOut)
async def upload_url(
    file_name: str = Query(alias="fileName", min_length=1),
    content_type: str = Query(default="video/mp4", alias="contentType"),
    service: VideoService = Depends(svc),
):
    key, upload = await service.upload_url(file_name, content_type)
    return UploadUrlOut(key=key, upload=upload)
