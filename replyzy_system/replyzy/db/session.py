from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker
from replyzy.core.config import settings
from replyzy.db.base import Base
from replyzy.db import models  # noqa: F401

engine = create_async_engine(settings.DATABASE_URL, echo=False)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def init_db(bind: AsyncEngine | None = None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
