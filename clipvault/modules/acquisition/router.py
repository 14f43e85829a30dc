from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from clipvault.platform.providers import Providers, get_providers, get_session
from clipvault.modules.acquisition.schemas import DownloadRequest, DownloadResponse, DownloadedVideoOut
from clipvault.modules.acquisition.service import AcquisitionService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session), providers: Providers = Depends(get_providers)) -> AcquisitionService:
    return AcquisitionService.from_providers(session, providers)

@router.post("/download", response_model=DownloadResponse)
async def download(payload: DownloadRequest, service: AcquisitionService = Depends(svc)):
    # AcquisitionError subclasses are mapped to JSON by the handler in main.py
    result = await service.acquire(payload.to_request())
    return DownloadResponse(video=DownloadedVideoOut.model_validate(result))
