"""
客户对账报表服务
"""
from collections import Counter
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizmanager.core.middleware import ValidationException
from bizmanager.models import Quote, Tracking
from bizmanager.schemas.quote import QuoteStatus
from bizmanager.services import periods, workflow
from bizmanager.services.client_service import client_service


def parse_statuses(raw: Optional[str]) -> List[str]:
    """解析逗号分隔的状态列表，允许报价单状态和 shipment"""
    if not raw:
        return []
    allowed = [s.value for s in QuoteStatus] + [workflow.LEGACY_SHIPMENT_STATUS]
    statuses = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if item not in allowed:
            raise ValidationException(
                f"无效的状态: {item}",
                details={"status": item, "allowed": allowed},
            )
        if item not in statuses:
            statuses.append(item)
    return statuses


class ReportService:
    """客户报表服务"""

    async def get_client_report(
        self,
        db: AsyncSession,
        client_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[List[str]] = None,
    ) -> dict:
        """
        客户报表

        状态为空时包含全部报价单和物流单；
        指定状态时只包含对应状态的报价单，含 shipment 时才包含物流单
        """
        client = await client_service.get_client(db, client_id)
        start, end = periods.day_bounds(start_date, end_date)
        statuses = statuses or []

        quote_statuses = [s for s in statuses if s != workflow.LEGACY_SHIPMENT_STATUS]
        include_quotes = not statuses or bool(quote_statuses)
        include_shipments = not statuses or workflow.LEGACY_SHIPMENT_STATUS in statuses

        quotes: List[Quote] = []
        if include_quotes:
            query = (
                select(Quote)
                .where(Quote.client_id == client_id)
                .options(selectinload(Quote.client))
                .order_by(Quote.created_at.desc(), Quote.id.desc())
            )
            if start is not None:
                query = query.where(Quote.created_at >= start)
            if end is not None:
                query = query.where(Quote.created_at < end)
            if quote_statuses:
                query = query.where(Quote.status.in_(quote_statuses))
            quotes = list((await db.execute(query)).scalars().all())

        shipments: List[Tracking] = []
        if include_shipments:
            query = (
                select(Tracking)
                .where(Tracking.client_id == client_id)
                .options(selectinload(Tracking.client), selectinload(Tracking.quotes))
                .order_by(Tracking.created_at.desc(), Tracking.id.desc())
            )
            if start is not None:
                query = query.where(Tracking.created_at >= start)
            if end is not None:
                query = query.where(Tracking.created_at < end)
            shipments = list((await db.execute(query)).scalars().all())

        return {
            "client": client,
            "start_date": start_date,
            "end_date": end_date,
            "statuses": statuses,
            "quotes": quotes,
            "shipments": shipments,
            "metrics": self.build_metrics(quotes, shipments, include_shipments),
        }

    @staticmethod
    def build_metrics(quotes: List[Quote], shipments: List[Tracking], include_shipments: bool = True) -> dict:
        zero = workflow.to_decimal(0)
        quote_charged = sum((workflow.to_decimal(q.charged_amount) for q in quotes), zero)
        quote_paid = sum((workflow.to_decimal(q.amount_paid) for q in quotes), zero)
        shipping_value = sum((workflow.to_decimal(t.total_value) for t in shipments), zero)
        shipping_paid = sum((workflow.to_decimal(t.amount_paid) for t in shipments), zero)
        declared_value = sum((workflow.to_decimal(t.declared_value) for t in shipments), zero)

        counts = Counter(q.status for q in quotes)
        breakdown = [
            {"status": s.value, "count": counts[s.value]}
            for s in QuoteStatus if counts[s.value]
        ]
        if include_shipments:
            breakdown.append({"status": workflow.LEGACY_SHIPMENT_STATUS, "count": len(shipments)})

        total_paid = quote_paid + shipping_paid
        return {
            "total_quotes": len(quotes),
            "total_shipments": len(shipments),
            "total_charged": quote_charged,
            "total_paid": total_paid,
            "total_unpaid": quote_charged + shipping_value - total_paid,
            "total_shipping_value": shipping_value,
            "total_declared_value": declared_value,
            "status_breakdown": breakdown,
        }


report_service = ReportService()
