from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from testdesk.config.settings import settings

_engine_kwargs = {"echo": settings.db.DB_ECHO}
if settings.db.DB_URL.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
    # 内存数据库必须共享同一连接
    if ":memory:" in settings.db.DB_URL:
        _engine_kwargs["poolclass"] = StaticPool

# 创建异步引擎
engine = create_async_engine(settings.db.DB_URL, **_engine_kwargs)

# 创建异步会话工厂
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """获取数据库会话的依赖函数"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
