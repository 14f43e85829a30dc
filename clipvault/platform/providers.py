"""Collaborator handles shared by every request.

Built once at startup by ``build_providers`` and kept on ``app.state``;
routers reach them through ``get_providers`` instead of module globals.
"""
from dataclasses import dataclass
import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from clipvault.core.config import Settings
from clipvault.core.db import make_engine, make_sessionmaker
from clipvault.platform.ports.object_storage import ObjectStoragePort
from clipvault.platform.adapters.storage_local import LocalFilesystemStorage
from clipvault.platform.adapters.storage_s3 import S3Storage
from clipvault.modules.acquisition.fetcher import MediaFetcher
from clipvault.modules.acquisition.resolution import ResolutionClient
from clipvault.modules.acquisition.transcoder import Transcoder

@dataclass
class Providers:
    settings: Settings
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]
    storage: ObjectStoragePort
    http: httpx.AsyncClient
    resolver: ResolutionClient
    fetcher: MediaFetcher
    transcoder: Transcoder

    async def aclose(self):
        await self.http.aclose()
        await self.engine.dispose()

def build_storage(settings: Settings) -> ObjectStoragePort:
    if settings.OBJECT_STORAGE_PROVIDER == "s3":
        return S3Storage(settings)
    return LocalFilesystemStorage(settings.LOCAL_STORAGE_ROOT)

def build_providers(
    settings: Settings,
    *,
    storage: ObjectStoragePort | None = None,
    http: httpx.AsyncClient | None = None,
    engine: AsyncEngine | None = None,
    transcoder: Transcoder | None = None,
) -> Providers:
    engine = engine or make_engine(settings)
    http = http or httpx.AsyncClient()
    return Providers(
        settings=settings,
        engine=engine,
        sessionmaker=make_sessionmaker(engine),
        storage=storage or build_storage(settings),
        http=http,
        resolver=ResolutionClient(http, settings),
        fetcher=MediaFetcher(http, timeout=settings.FETCH_TIMEOUT_SECONDS),
        transcoder=transcoder or Transcoder(settings),
    )

def get_providers(request: Request) -> Providers:
    return request.app.state.providers

async def get_session(request: Request):
    async with get_providers(request).sessionmaker() as session:
        yield session
