import logging
from datetime import datetime, timezone
import anyio
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from clipvault.platform.providers import Providers, get_providers
from clipvault.modules.videos.repository import VideoRepository

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/health")
async def health(providers: Providers = Depends(get_providers)):
    db_status, db_latency = "disconnected", None
    try:
        async with providers.sessionmaker() as session:
            db_latency = round(await VideoRepository(session).ping(), 2)
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e!r}")

    storage_status = "disconnected"
    try:
        if await anyio.to_thread.run_sync(providers.storage.check_health):
            storage_status = "connected"
    except Exception as e:
        logger.error(f"Storage health check failed: {e!r}")

    resolver_ok = await providers.resolver.check_health()

    healthy = db_status == "connected" and storage_status == "connected"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": {"status": db_status, "latency": db_latency},
            "storage": {"status": storage_status},
            "resolver": {"status": "connected" if resolver_ok else "disconnected"},
        },
        "app": {
            "name": providers.settings.APP_NAME,
            "environment": providers.settings.ENV,
        },
    }
    return JSONResponse(body, status_code=200 if healthy else 503)
