"""
测试数据准备

直接写库创建测试数据，可指定创建时间
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.models import Client, Quote, Activity, Tracking


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


async def create_test_client(
    db: AsyncSession,
    name: str = "Acme Corp",
    email: Optional[str] = None,
    **kwargs,
) -> Client:
    """创建测试客户"""
    client = Client(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        status=kwargs.pop("status", "active"),
        **kwargs,
    )
    db.add(client)
    await db.commit()
    return client


async def create_test_quote(
    db: AsyncSession,
    client: Client,
    status: str = "purchased",
    cost="100",
    charged_amount="130",
    amount_paid="0",
    product: str = "Widget",
    platform: str = "Amazon",
    created_at: Optional[datetime] = None,
    **kwargs,
) -> Quote:
    """直接写库创建报价单，可指定创建时间"""
    values = dict(
        client_id=client.id,
        product=product,
        platform=platform,
        status=status,
        cost=Decimal(str(cost)),
        charged_amount=Decimal(str(charged_amount)),
        amount_paid=Decimal(str(amount_paid)),
        **kwargs,
    )
    if created_at is not None:
        values["created_at"] = created_at
    quote = Quote(**values)
    db.add(quote)
    await db.commit()
    return quote


async def create_test_activity(
    db: AsyncSession,
    quote: Quote,
    type: str = "New Order",
    amount="130",
    status: str = "pending",
    created_at: Optional[datetime] = None,
) -> Activity:
    values = dict(quote_id=quote.id, type=type, amount=Decimal(str(amount)), status=status)
    if created_at is not None:
        values["created_at"] = created_at
    activity = Activity(**values)
    db.add(activity)
    await db.commit()
    return activity


async def create_test_tracking(
    db: AsyncSession,
    client: Client,
    tracking_number: str = "TRK001",
    declared_value="200",
    shipping_cost="20",
    amount_paid="0",
    status: str = "pending",
    quotes=None,
    created_at: Optional[datetime] = None,
) -> Tracking:
    """直接写库创建物流单"""
    declared = Decimal(str(declared_value))
    shipping = Decimal(str(shipping_cost))
    values = dict(
        tracking_number=tracking_number,
        client_id=client.id,
        status=status,
        declared_value=declared,
        shipping_cost=shipping,
        total_value=declared + shipping,
        amount_paid=Decimal(str(amount_paid)),
    )
    if created_at is not None:
        values["created_at"] = created_at
    tracking = Tracking(**values)
    db.add(tracking)
    await db.flush()
    for quote in quotes or []:
        quote.tracking_id = tracking.id
    await db.commit()
    return tracking
