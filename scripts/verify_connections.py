#!/usr/bin/env python3
"""
数据库连接验证脚本
用于验证配置的数据库（PostgreSQL 或 SQLite）是否可以连接
"""
import asyncio
import sys

from sqlalchemy import text

from bizmanager.core.config import settings
from bizmanager.core.database import engine, close_db


def _masked_url(url: str) -> str:
    """隐藏连接串中的密码"""
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


async def verify_database() -> bool:
    """验证数据库连接"""
    print("=" * 50)
    print(f"正在验证数据库连接: {_masked_url(settings.DATABASE_URL)}")
    print("=" * 50)

    try:
        async with engine.connect() as conn:
            if engine.dialect.name == "postgresql":
                version = (await conn.execute(text("SELECT version()"))).scalar()
                size = (await conn.execute(text("SELECT pg_database_size(current_database())"))).scalar()
                print("✓ PostgreSQL 连接成功!")
                print(f"  数据库版本: {version}")
                print(f"  数据库大小: {size / 1024 / 1024:.2f} MB")
            else:
                version = (await conn.execute(text("SELECT sqlite_version()"))).scalar()
                print("✓ SQLite 连接成功!")
                print(f"  SQLite 版本: {version}")
        return True
    except Exception as e:
        print(f"✗ 数据库连接失败: {e}")
        return False
    finally:
        await close_db()


async def verify_all() -> int:
    print("\n🔍 开始数据库连接验证\n")
    ok = await verify_database()
    print("=" * 50)
    if ok:
        print("🎉 数据库连接验证通过!")
        return 0
    print("⚠️  数据库连接验证失败，请检查 DATABASE_URL")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(verify_all()))
