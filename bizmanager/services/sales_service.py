"""
销售统计服务

月度销售、月度汇总、订单更新以及未付款订单对账
"""
from collections import Counter
from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizmanager.core.config import settings
from bizmanager.core.middleware import BusinessException
from bizmanager.models import Quote, Activity, Tracking
from bizmanager.schemas.quote import QuoteStatus, QuoteUpdateRequest
from bizmanager.schemas.sales import UnpaidItemType, UnpaidSortField, SortOrder
from bizmanager.schemas.tracking import TrackingStatus
from bizmanager.services import periods, workflow
from bizmanager.services.quote_service import quote_service


SHIPMENT_PLATFORM = "Shipment"
SHIPMENT_PAYMENT_METHOD = "Shipping"
NOT_SPECIFIED = "Not specified"


def shipment_order_number(tracking_id: int) -> str:
    return f"S-{tracking_id}"


def shipment_as_order(tracking: Tracking) -> dict:
    """把物流单转换成订单形式：产品为报价单产品名拼接，成本为运费，收费为总价值"""
    return {
        "id": tracking.id,
        "order_number": shipment_order_number(tracking.id),
        "tracking_number": tracking.tracking_number,
        "client_id": tracking.client_id,
        "client": tracking.client,
        "product": ", ".join(q.product for q in tracking.quotes),
        "platform": SHIPMENT_PLATFORM,
        "status": tracking.status,
        "cost": tracking.shipping_cost,
        "charged_amount": tracking.total_value,
        "amount_paid": tracking.amount_paid,
        "created_at": tracking.created_at,
    }


class SalesService:
    """销售统计服务"""

    async def _monthly_orders(self, db: AsyncSession, start: datetime, end: datetime) -> List[Quote]:
        result = await db.execute(
            select(Quote)
            .where(
                Quote.created_at >= start,
                Quote.created_at < end,
                Quote.status.in_(workflow.status_values(workflow.REVENUE_STATUSES)),
            )
            .options(selectinload(Quote.client))
            .order_by(Quote.created_at.desc(), Quote.id.desc())
        )
        return list(result.scalars().all())

    async def _monthly_shipments(self, db: AsyncSession, start: datetime, end: datetime) -> List[Tracking]:
        result = await db.execute(
            select(Tracking)
            .where(Tracking.created_at >= start, Tracking.created_at < end)
            .options(selectinload(Tracking.client), selectinload(Tracking.quotes))
            .order_by(Tracking.created_at.desc(), Tracking.id.desc())
        )
        return list(result.scalars().all())

    async def get_monthly_sales(self, db: AsyncSession, month: Optional[str] = None) -> dict:
        """指定月份（默认本月）的营收订单和物流单"""
        month_start = periods.parse_month(month)
        start, end = periods.month_range(month_start)
        orders = await self._monthly_orders(db, start, end)
        trackings = await self._monthly_shipments(db, start, end)
        return {
            "month": month_start.strftime("%Y-%m"),
            "orders": orders,
            "shipments": [shipment_as_order(t) for t in trackings],
        }

    async def get_monthly_summary(self, db: AsyncSession, month: Optional[str] = None) -> dict:
        """月度汇总：订单数、成本、营收、利润及状态分布"""
        month_start = periods.parse_month(month)
        start, end = periods.month_range(month_start)
        conditions = (
            Quote.created_at >= start,
            Quote.created_at < end,
            Quote.status.in_(workflow.status_values(workflow.REVENUE_STATUSES)),
        )

        totals = (await db.execute(
            select(
                func.count(Quote.id),
                func.sum(Quote.cost),
                func.sum(Quote.charged_amount),
            ).where(*conditions)
        )).one()
        total_orders, total_cost, total_revenue = totals
        total_cost = workflow.to_decimal(total_cost)
        total_revenue = workflow.to_decimal(total_revenue)

        breakdown = await db.execute(
            select(Quote.status, func.count(Quote.id))
            .where(*conditions)
            .group_by(Quote.status)
            .order_by(Quote.status)
        )

        return {
            "month": month_start.strftime("%Y-%m"),
            "total_orders": total_orders or 0,
            "total_cost": total_cost,
            "total_revenue": total_revenue,
            "profit": total_revenue - total_cost,
            "status_breakdown": [{"status": s, "count": c} for s, c in breakdown.all()],
        }

    async def update_order(self, db: AsyncSession, order_id: int, data: QuoteUpdateRequest) -> Quote:
        """
        更新订单

        传入已收款金额时记录一条 "Partial Payment" 动态，否则记录 "Order <status>"
        """
        quote = await quote_service.get_quote(db, order_id)

        update_data = quote_service.update_fields(data)
        if not update_data:
            raise BusinessException("没有需要更新的字段")

        amount_paid_given = data.amount_paid is not None
        try:
            quote_service.apply_update(quote, update_data)
            db.add(Activity(
                quote_id=quote.id,
                type=workflow.sales_update_activity_type(quote.status, amount_paid_given),
                amount=data.amount_paid if amount_paid_given else quote.charged_amount,
                status=workflow.activity_status_for(quote.status),
            ))
            await db.commit()
        except BusinessException:
            await db.rollback()
            raise
        except Exception as e:
            await db.rollback()
            logger.error(f"更新订单失败: {e}")
            raise

        logger.info(f"订单已更新: id={order_id}, 字段={list(update_data)}")
        return await quote_service.get_quote(db, order_id)

    # ===== 未付款订单 =====

    async def _unpaid_quotes(self, db: AsyncSession) -> List[Quote]:
        result = await db.execute(
            select(Quote)
            .where(Quote.status.notin_([QuoteStatus.PAID.value, workflow.LEGACY_SHIPMENT_STATUS]))
            .options(selectinload(Quote.client))
        )
        return list(result.scalars().all())

    async def _unpaid_trackings(self, db: AsyncSession) -> List[Tracking]:
        result = await db.execute(
            select(Tracking)
            .where(Tracking.status != TrackingStatus.PAID.value)
            .options(selectinload(Tracking.client))
        )
        return list(result.scalars().all())

    @staticmethod
    def _quote_item(quote: Quote, now: datetime) -> dict:
        charged = workflow.to_decimal(quote.charged_amount)
        paid = workflow.to_decimal(quote.amount_paid)
        return {
            "item_type": UnpaidItemType.ORDER,
            "id": quote.id,
            "order_number": str(quote.id),
            "client_id": quote.client_id,
            "client": quote.client,
            "product": quote.product,
            "platform": quote.platform or NOT_SPECIFIED,
            "status": quote.status,
            "payment_method": quote.payment_method or NOT_SPECIFIED,
            "cost": quote.cost,
            "charged_amount": charged,
            "amount_paid": paid,
            "remaining_amount": charged - paid,
            "days_overdue": periods.days_since(quote.created_at, now),
            "notes": quote.notes,
            "created_at": quote.created_at,
        }

    @staticmethod
    def _tracking_item(tracking: Tracking, now: datetime) -> dict:
        total = workflow.to_decimal(tracking.total_value)
        paid = workflow.to_decimal(tracking.amount_paid)
        return {
            "item_type": UnpaidItemType.SHIPMENT,
            "id": tracking.id,
            "order_number": shipment_order_number(tracking.id),
            "client_id": tracking.client_id,
            "client": tracking.client,
            "product": tracking.tracking_number,
            "platform": SHIPMENT_PLATFORM,
            "status": tracking.status,
            "payment_method": SHIPMENT_PAYMENT_METHOD,
            "cost": tracking.shipping_cost,
            "charged_amount": total,
            "amount_paid": paid,
            "remaining_amount": total - paid,
            "days_overdue": periods.days_since(tracking.created_at, now),
            "notes": f"Tracking: {tracking.tracking_number}",
            "created_at": tracking.created_at,
        }

    @staticmethod
    def sort_items(items: List[dict], sort_by: UnpaidSortField, order: SortOrder) -> List[dict]:
        key = "days_overdue" if sort_by == UnpaidSortField.DAYS_OVERDUE else "charged_amount"
        return sorted(items, key=lambda item: item[key], reverse=order == SortOrder.DESC)

    @staticmethod
    def unpaid_metrics(items: List[dict], alert_days: Optional[int] = None) -> dict:
        """未付款汇总，超过 alert_days 天的计入逾期和重点催收金额"""
        alert_days = settings.OVERDUE_ALERT_DAYS if alert_days is None else alert_days
        zero = workflow.to_decimal(0)

        overdue = [i for i in items if i["days_overdue"] > alert_days]
        partially_paid = [i for i in items if i["amount_paid"] > 0]
        platforms = Counter(i["platform"] or NOT_SPECIFIED for i in items)

        return {
            "total_unpaid": sum((i["remaining_amount"] for i in items), zero),
            "overdue_count": len(overdue),
            "average_days_overdue": (
                sum(i["days_overdue"] for i in items) / len(items) if items else 0.0
            ),
            "critical_amount": sum((i["remaining_amount"] for i in overdue), zero),
            "orders_count": len(items),
            "partially_paid_count": len(partially_paid),
            "total_partial_payments": sum((i["amount_paid"] for i in partially_paid), zero),
            "total_amount_due": sum((i["charged_amount"] for i in items), zero),
            "top_platform": platforms.most_common(1)[0][0] if platforms else NOT_SPECIFIED,
        }

    async def get_unpaid_items(
        self,
        db: AsyncSession,
        sort_by: UnpaidSortField = UnpaidSortField.DAYS_OVERDUE,
        order: SortOrder = SortOrder.DESC,
        now: Optional[datetime] = None,
    ) -> List[dict]:
        """未付款的订单和物流单"""
        now = now or periods.utcnow()
        items = [self._quote_item(q, now) for q in await self._unpaid_quotes(db)]
        items.extend(self._tracking_item(t, now) for t in await self._unpaid_trackings(db))
        return self.sort_items(items, sort_by, order)

    async def get_unpaid_orders(
        self,
        db: AsyncSession,
        sort_by: UnpaidSortField = UnpaidSortField.DAYS_OVERDUE,
        order: SortOrder = SortOrder.DESC,
        now: Optional[datetime] = None,
    ) -> dict:
        items = await self.get_unpaid_items(db, sort_by, order, now)
        return {"items": items, "metrics": self.unpaid_metrics(items)}


sales_service = SalesService()
