from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from .config import Settings
from .base import Base

def make_engine(settings: Settings) -> AsyncEngine:
    kwargs = {}
    if settings.DATABASE_DSN.startswith("postgresql"):
        kwargs["pool_pre_ping"] = True
    return create_async_engine(settings.DATABASE_DSN, **kwargs)

def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def init_models(engine: AsyncEngine, settings: Settings):
    ## In dev-only "create_all" mode the app owns the schema; otherwise migrations do.
    if settings.DB_MANAGE == "create_all":
        # register tables on Base.metadata
        import clipvault.modules.videos.models  # noqa: F401
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
