from typing import AsyncGenerator, Optional, Dict, Any
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import text
import structlog

from carecompanion.core.config import get_settings

logger = structlog.get_logger(__name__)

# SQLAlchemy Base class for models
Base = declarative_base()


class DatabaseManager:
    """Database connection and session manager"""

    def __init__(self):
        self.async_engine: Optional[AsyncEngine] = None
        self.async_session_factory: Optional[async_sessionmaker] = None
        self._initialized = False

    async def initialize(self, database_url: Optional[str] = None) -> None:
        """Initialize database connections"""
        if self._initialized:
            logger.warning("Database already initialized")
            return

        settings = get_settings()
        database_url = database_url or settings.database.DATABASE_URL

        try:
            if database_url.startswith("sqlite"):
                # A single shared connection keeps in-memory databases alive
                self.async_engine = create_async_engine(
                    database_url,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                    echo=settings.database.DB_ECHO,
                )
            else:
                self.async_engine = create_async_engine(
                    database_url,
                    pool_size=settings.database.DB_POOL_SIZE,
                    max_overflow=settings.database.DB_MAX_OVERFLOW,
                    pool_timeout=settings.database.DB_POOL_TIMEOUT,
                    pool_recycle=settings.database.DB_POOL_RECYCLE,
                    pool_pre_ping=True,
                    echo=settings.database.DB_ECHO,
                )

            self.async_session_factory = async_sessionmaker(
                bind=self.async_engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False
            )

            await self._test_async_connection()

            self._initialized = True
            logger.info("Database manager initialized successfully", dialect=self.async_engine.dialect.name)

        except Exception as e:
            logger.error("Failed to initialize database", error=str(e), exc_info=True)
            raise

    async def _test_async_connection(self) -> None:
        """Test async database connection"""
        try:
            async with self.async_engine.begin() as conn:
                result = await conn.execute(text("SELECT 1"))
                row = result.fetchone()
                if row[0] != 1:
                    raise RuntimeError("Database connection test failed")
            logger.debug("Async database connection test passed")
        except Exception as e:
            logger.error("Async database connection test failed", error=str(e))
            raise

    async def close(self) -> None:
        """Close database connections"""
        if self.async_engine:
            await self.async_engine.dispose()
            logger.debug("Async engine disposed")
        self._initialized = False
        logger.info("Database connections closed")

    @asynccontextmanager
    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session with automatic cleanup"""
        if not self._initialized:
            await self.initialize()

        async with self.async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error("Database session error", error=str(e))
                raise


# Global database manager instance
db_manager = DatabaseManager()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency function to get database session"""
    async with db_manager.get_async_session() as session:
        yield session


async def create_db_and_tables() -> None:
    """Create all tables"""
    try:
        await db_manager.initialize()

        async with db_manager.async_engine.begin() as conn:
            # Import all models to ensure they're registered
            from carecompanion.models import patient, clinical  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database tables created successfully")

    except Exception as e:
        logger.error("Failed to create database tables", error=str(e), exc_info=True)
        raise


async def close_db_connection() -> None:
    """Close database connections"""
    await db_manager.close()


async def check_db_health(session: Optional[AsyncSession] = None) -> Dict[str, Any]:
    """Check database health and return status"""
    try:
        if session is not None:
            result = await session.execute(text("SELECT 1"))
        else:
            if not db_manager._initialized:
                return {
                    "status": "unhealthy",
                    "message": "Database not initialized"
                }
            async with db_manager.async_engine.begin() as conn:
                result = await conn.execute(text("SELECT 1"))

        if result.scalar() != 1:
            raise RuntimeError("Unexpected probe result")

        return {
            "status": "healthy",
            "message": "Database connection is healthy"
        }

    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return {
            "status": "unhealthy",
            "message": f"Database health check failed: {str(e)}"
        }


__all__ = [
    "Base",
    "DatabaseManager",
    "db_manager",
    "get_db",
    "create_db_and_tables",
    "close_db_connection",
    "check_db_health",
]
