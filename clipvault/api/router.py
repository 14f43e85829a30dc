from fastapi import APIRouter
from clipvault.modules.acquisition.router import router as acquisition_router
from clipvault.modules.videos.router import router as videos_router
from clipvault.modules.health.router import router as health_router

api_router = APIRouter()
api_router.include_router(acquisition_router, tags=["acquisition"])
api_router.include_router(videos_router, prefix="/videos", tags=["videos"])
api_router.include_router(health_router, tags=["health"])
