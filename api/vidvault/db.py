"""Database connection and session management."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from fastapi import HTTPException, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from vidvault.config import settings
from vidvault.errors import AppError
from vidvault.logging_config import logger
from vidvault.models.base import Base


def normalize_database_url(url: str) -> str:
    """Convert postgres:// and postgresql:// URLs to the asyncpg driver."""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


class Database:
    """Explicitly constructed data-access handle.

    Owns the async engine and the session factory. Created once at startup
    (see ``vidvault.main.lifespan``), stored on ``app.state`` and disposed at
    shutdown.
    """

    def __init__(self, url: str, *, debug: bool = False, pool_size: int = 10, max_overflow: int = 20):
        self.url = normalize_database_url(url)

        if debug:
            # NullPool for debug mode - no pooling parameters needed
            self.engine: AsyncEngine = create_async_engine(self.url, echo=True, poolclass=NullPool)
        elif self.url.startswith("sqlite"):
            self.engine = create_async_engine(self.url, echo=False)
        else:
            self.engine = create_async_engine(
                self.url,
                echo=False,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
            )

        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls) -> "Database":
        return cls(
            settings.database_url,
            debug=settings.debug,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    @property
    def safe_url(self) -> str:
        return self.url.split("@")[-1]

    async def connect(self):
        """Verify the database is reachable."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection established", url=self.safe_url)
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e), exc_info=True)
            raise

    async def create_all(self):
        """Create tables from ORM metadata (tests and local development)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        """Close database connection pool."""
        await self.engine.dispose()
        logger.info("Database connection closed")


def get_database(request: Request) -> Database:
    """Dependency returning the handle created in the application lifespan."""
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database handle is not initialised")
    return database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session.

    Usage:
        @router.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    database = get_database(request)
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except (AppError, HTTPException):
            # Application-level errors: rollback but don't log as database error
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error("Database session error", error=str(e), exc_info=True)
            raise


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Commit everything written inside the block, or roll all of it back."""
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
