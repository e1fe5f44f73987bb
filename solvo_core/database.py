# solvo_core/database.py
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from solvo_core.config import settings

db_url = settings.effective_database_url

# SQLite connections must not outlive the event loop that opened them
engine_kwargs = {"poolclass": NullPool} if db_url.startswith("sqlite") else {}
engine = create_async_engine(db_url, echo=settings.SQL_ECHO, **engine_kwargs)

AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
Base = declarative_base()

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
