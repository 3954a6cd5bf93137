"""BizSuite Database Configuration

SQLAlchemy async engine, session factory and declarative base.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from bizsuite.core.config import settings, get_data_dir
import logging

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Get the database URL, resolving relative SQLite paths into the data dir"""
    db_url = settings.DATABASE_URL

    if db_url.startswith("sqlite+aiosqlite:///./"):
        relative_path = db_url.replace("sqlite+aiosqlite:///./", "")
        absolute_path = get_data_dir() / relative_path
        absolute_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{absolute_path}"

    return db_url


def create_engine():
    """Create async database engine"""
    db_url = get_database_url()
    logger.info(f"Using database: {db_url}")

    if db_url.startswith("sqlite"):
        return create_async_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
            echo=False,
        )
    return create_async_engine(db_url, pool_pre_ping=True)


engine = create_engine()
async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for all BizSuite models"""
    pass


async def get_db() -> AsyncSession:
    """Dependency for getting database sessions"""
    async with async_session_maker() as session:
        yield session


async def init_db():
    """Initialize database tables"""
    import bizsuite.models  # noqa: F401  registers all tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("BizSuite database initialized")


async def drop_all():
    """Drop all tables (useful for testing)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("All BizSuite tables dropped")
