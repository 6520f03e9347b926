from .base import Base
from .models import User, Project, TestItem, IssueItem
from .session import get_db, engine, AsyncSessionLocal
from testdesk.logger.logger import logger

__all__ = [
    "Base",
    "User",
    "Project",
    "TestItem",
    "IssueItem",
    "get_db",
    "engine",
    "AsyncSessionLocal",
    "init_db"
]

async def init_db():
    """初始化数据库"""
    try:
        logger.info("开始初始化数据库...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("数据库初始化成功")
    except Exception as e:
        logger.error(f"数据库初始化失败: {str(e)}")
        raise
