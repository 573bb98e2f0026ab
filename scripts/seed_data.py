#!/usr/bin/env python3
"""
演示数据初始化脚本

创建表结构，写入演示客户、最近12个月的报价单（含动态记录）、几个物流单和默认设置

用法: python scripts/seed_data.py [--clear]
"""
import asyncio
import random
import sys
from datetime import timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy import delete, select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import init_db, close_db, async_session_maker
from bizmanager.models import Client, Quote, Activity, Tracking, SystemSettings
from bizmanager.schemas.quote import QuoteStatus
from bizmanager.services import periods, workflow
from bizmanager.services.settings_service import DEFAULT_SETTINGS


DEMO_CLIENTS = [
    {"name": "Acme Corp", "email": "contact@acme.com", "phone": "(555) 123-4567", "company": "Acme Corporation"},
    {"name": "Globex Inc", "email": "info@globex.com", "phone": "(555) 987-6543", "company": "Globex Industries"},
    {"name": "Wayne Enterprises", "email": "business@wayne.com", "phone": "(555) 456-7890", "company": "Wayne Enterprises"},
]

SEED_STATUSES = [
    QuoteStatus.QUOTE, QuoteStatus.QUOTED, QuoteStatus.PURCHASE,
    QuoteStatus.PURCHASED, QuoteStatus.RECEIVED, QuoteStatus.READY_TO_SHIP, QuoteStatus.PAID,
]
PRODUCTS = ["Website Development", "Mobile App", "Cloud Services", "SEO Package", "Security Audit"]
PLATFORMS = ["Direct", "AWS", "GitHub", "Google", "Figma"]
PAYMENT_OPTIONS = ["Cash", "Zelle", "Bank Transfer", "Credit Card"]

QUOTE_COUNT = 150


async def clear_tables(session: AsyncSession):
    """清空现有数据"""
    logger.info("清空现有数据...")
    for model in (Activity, Quote, Tracking, Client, SystemSettings):
        await session.execute(delete(model))
    await session.commit()
    logger.info("数据清空完成")


async def seed_clients(session: AsyncSession) -> list:
    clients = []
    for data in DEMO_CLIENTS:
        existing = (await session.execute(select(Client).where(Client.email == data["email"]))).scalars().first()
        if existing:
            clients.append(existing)
            continue
        client = Client(status="active", **data)
        session.add(client)
        clients.append(client)
    await session.flush()
    logger.info(f"客户: {len(clients)} 个")
    return clients


async def seed_quotes(session: AsyncSession, clients: list, rng: random.Random) -> list:
    now = periods.utcnow()
    quotes = []
    for _ in range(QUOTE_COUNT):
        status = rng.choice(SEED_STATUSES).value
        created_at = now - timedelta(days=rng.randint(0, 364))
        cost = Decimal(rng.randint(1000, 10999))
        charged = workflow.calculate_charged_amount(cost, 30)
        quote = Quote(
            client=rng.choice(clients),
            product=rng.choice(PRODUCTS),
            platform=rng.choice(PLATFORMS),
            status=status,
            cost=cost,
            charged_amount=charged,
            amount_paid=workflow.settle_quote_payment(status, charged, 0),
            payment_method=rng.choice(PAYMENT_OPTIONS),
            notes="Sample project",
            created_at=created_at,
            updated_at=created_at,
        )
        quote.activities.append(Activity(
            type=workflow.creation_activity_type(status) if status != QuoteStatus.PAID.value
            else workflow.status_change_activity_type(status),
            amount=charged,
            status=workflow.activity_status_for(status),
            created_at=created_at,
        ))
        session.add(quote)
        quotes.append(quote)
    await session.flush()
    logger.info(f"报价单: {len(quotes)} 个")
    return quotes


async def seed_trackings(session: AsyncSession, clients: list, quotes: list, rng: random.Random):
    """每个客户用其 ready_to_ship/received 报价单建一个物流单"""
    pool = workflow.status_values(workflow.BATCH_POOL_STATUSES)
    count = 0
    for index, client in enumerate(clients, 1):
        candidates = [q for q in quotes if q.client is client and q.status in pool][:3]
        if not candidates:
            continue
        declared = sum((q.charged_amount for q in candidates), Decimal("0"))
        shipping = Decimal(rng.randint(20, 150))
        for quote in candidates:
            quote.status = QuoteStatus.SHIPPED.value
        session.add(Tracking(
            tracking_number=f"DEMO{index:04d}",
            client=client,
            status="pending",
            declared_value=declared,
            shipping_cost=shipping,
            total_value=workflow.calculate_total_value(declared, shipping),
            amount_paid=0,
            quotes=candidates,
        ))
        count += 1
    await session.flush()
    logger.info(f"物流单: {count} 个")


async def seed_settings(session: AsyncSession):
    existing = (await session.execute(select(func.count(SystemSettings.id)))).scalar()
    if existing:
        return
    values = {
        **DEFAULT_SETTINGS,
        "company_name": "Demo Trading LLC",
        "platform_options": list(PLATFORMS),
        "payment_options": list(PAYMENT_OPTIONS),
    }
    session.add(SystemSettings(**values))
    logger.info("默认设置已写入")


async def main(clear_existing: bool = False, seed: int = 42):
    logger.info("=" * 50)
    logger.info("开始写入演示数据")
    logger.info("=" * 50)

    await init_db()
    rng = random.Random(seed)

    async with async_session_maker() as session:
        if clear_existing:
            await clear_tables(session)

        try:
            clients = await seed_clients(session)
            quotes = await seed_quotes(session, clients, rng)
            await seed_trackings(session, clients, quotes, rng)
            await seed_settings(session)
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"写入演示数据失败: {e}")
            raise

    await close_db()
    logger.info("演示数据写入完成")


if __name__ == "__main__":
    clear_existing = "--clear" in sys.argv
    if clear_existing:
        logger.warning("将清空现有数据后重新写入!")
    asyncio.run(main(clear_existing=clear_existing))
