"""
数据库连接与会话管理
"""
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from bizmanager.core.config import settings


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DB_ECHO,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI依赖：每个请求一个数据库会话"""
    async with async_session_maker() as session:
        yield session


async def init_db():
    """创建数据库表"""
    # 导入所有模型确保表结构完整
    from bizmanager import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("数据库表初始化完成")


async def close_db():
    """释放连接池"""
    await engine.dispose()
    logger.info("数据库连接已关闭")
