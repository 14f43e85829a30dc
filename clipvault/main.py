import time
import logging
from contextlib import asynccontextmanager
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from clipvault.api.router import api_router
from clipvault.core.config import Settings, settings as default_settings
from clipvault.core.db import init_models
from clipvault.core.errors import AcquisitionError
from clipvault.core.logging import request_id_ctx, setup_logging
from clipvault.platform.providers import Providers, build_providers

logger = logging.getLogger(__name__)

def create_app(settings: Settings | None = None, providers: Providers | None = None) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.providers = providers or build_providers(settings)
        await init_models(app.state.providers.engine, settings)
        logger.info(f"{settings.APP_NAME} started (storage={settings.OBJECT_STORAGE_PROVIDER}, env={settings.ENV})")
        try:
            yield
        finally:
            await app.state.providers.aclose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        logger.info(
            f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.2f}ms"
        )
        return response

    # registered last so it runs first and the timing log carries the id
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id_ctx.set(request.headers.get("x-request-id", "-"))
        return await call_next(request)

    @app.exception_handler(AcquisitionError)
    async def acquisition_error_handler(request: Request, exc: AcquisitionError):
        logger.error(f"Download error at stage {exc.stage}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "An internal server error occurred."},
        )

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app

app = create_app()
