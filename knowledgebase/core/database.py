from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


# Convert database URL to use an async driver
def _get_async_db_url(sync_url: str) -> str:
    """Convert sync database URL to async URL (asyncpg for Postgres, aiosqlite for SQLite)."""
    if sync_url.startswith("postgresql://"):
        return sync_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgres://"):
        return sync_url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgresql+psycopg2://"):
        return sync_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("postgresql+psycopg://"):
        return sync_url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
    elif sync_url.startswith("sqlite://"):
        return sync_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    else:
        # Assume it's already async
        return sync_url


class Database:
    """Engine + session factory, built once per process from settings."""

    def __init__(self, url: str, echo: bool = False):
        self.url = _get_async_db_url(url)
        self.engine: AsyncEngine = create_async_engine(self.url, echo=echo, future=True)
        self.sessionmaker = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_all(self) -> None:
        # Import models so their tables are registered on Base.metadata
        from knowledgebase.models import document, search_result, usage, conversation  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    async def session(self):
        async with self.sessionmaker() as session:
            try:
                yield session
            finally:
                await session.close()
