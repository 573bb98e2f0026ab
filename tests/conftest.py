"""
测试配置和公共夹具

每个测试使用独立数据库：设置 TEST_DATABASE_URL 时使用该库，
否则使用内存 SQLite；表结构在每个测试前创建、结束后删除
"""
import os
import pytest
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# 加载环境变量
load_dotenv()
os.environ.setdefault("LOG_TO_FILE", "0")

from bizmanager.core.database import Base, get_db
from bizmanager.main import app
from bizmanager import models  # noqa: F401


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


def _create_engine():
    if TEST_DATABASE_URL:
        return create_async_engine(TEST_DATABASE_URL, echo=False)
    return create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(scope="function")
async def db_engine():
    """创建测试引擎并建表"""
    engine = _create_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(db_engine):
    """创建测试数据库会话"""
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession):
    """创建测试客户端"""
    from httpx import AsyncClient, ASGITransport

    # 覆盖依赖
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    # 使用 ASGITransport 来测试 FastAPI 应用
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # 清除依赖覆盖
    app.dependency_overrides.clear()

