"""
仪表盘统计服务

所有统计按请求实时计算，月份为UTC自然月
"""
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizmanager.models import Quote, Activity
from bizmanager.schemas.quote import QuoteStatus
from bizmanager.services import periods, workflow


class DashboardService:
    """仪表盘统计服务"""

    async def _count_quotes(
        self,
        db: AsyncSession,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Sequence[QuoteStatus]] = None,
    ) -> int:
        query = select(func.count(Quote.id))
        if start is not None:
            query = query.where(Quote.created_at >= start, Quote.created_at < end)
        if statuses is not None:
            query = query.where(Quote.status.in_(workflow.status_values(statuses)))
        return (await db.execute(query)).scalar() or 0

    async def _sum_revenue(self, db: AsyncSession, start: datetime, end: datetime):
        query = select(func.sum(Quote.charged_amount)).where(
            Quote.status.in_(workflow.status_values(workflow.REVENUE_STATUSES)),
            Quote.created_at >= start,
            Quote.created_at < end,
        )
        return workflow.to_decimal((await db.execute(query)).scalar())

    @staticmethod
    def conversion_rate(total: int, pending: int) -> float:
        """(总数 - 待处理) / 总数 * 100，总数为0时返回0"""
        if total <= 0:
            return 0.0
        return (total - pending) / total * 100

    async def _month_metrics(self, db: AsyncSession, month: datetime) -> dict:
        start, end = periods.month_range(month)
        total = await self._count_quotes(db, start, end)
        pending = await self._count_quotes(db, start, end, workflow.PENDING_STATUSES)
        revenue = await self._sum_revenue(db, start, end)
        return {
            "total_quotes": total,
            "pending_quotes": pending,
            "revenue": revenue,
            "conversion_rate": self.conversion_rate(total, pending),
        }

    async def get_metrics(self, db: AsyncSession, now: Optional[datetime] = None) -> dict:
        """本月与上月的报价数、待处理数、营收和转化率"""
        now = now or periods.utcnow()
        current = await self._month_metrics(db, periods.month_start(now))
        previous = await self._month_metrics(db, periods.shift_months(now, -1))
        return {
            **current,
            "previous_total_quotes": previous["total_quotes"],
            "previous_pending_quotes": previous["pending_quotes"],
            "previous_revenue": previous["revenue"],
            "previous_conversion_rate": previous["conversion_rate"],
        }

    async def get_revenue_data(self, db: AsyncSession, now: Optional[datetime] = None) -> dict:
        """最近12个月营收趋势"""
        months = periods.last_n_months(12, now)
        data = []
        for month in months:
            start, end = periods.month_range(month)
            data.append(await self._sum_revenue(db, start, end))
        return {
            "labels": [periods.month_label(m) for m in months],
            "data": data,
        }

    async def get_quote_status_distribution(self, db: AsyncSession) -> dict:
        """报价单状态分布（全部时间）"""
        result = await db.execute(
            select(Quote.status, func.count(Quote.id))
            .where(Quote.status.in_(workflow.status_values(workflow.DISTRIBUTION_STATUSES)))
            .group_by(Quote.status)
        )
        counts = {status: count for status, count in result.all()}
        return {
            "labels": [workflow.STATUS_LABELS[s] for s in workflow.DISTRIBUTION_STATUSES],
            "statuses": workflow.status_values(workflow.DISTRIBUTION_STATUSES),
            "data": [counts.get(s.value, 0) for s in workflow.DISTRIBUTION_STATUSES],
        }

    async def get_quotes_comparison(self, db: AsyncSession, now: Optional[datetime] = None) -> dict:
        """最近6个月新增报价单与其中已付款数量"""
        months = periods.last_n_months(6, now)
        new_quotes, completed_quotes = [], []
        for month in months:
            start, end = periods.month_range(month)
            new_quotes.append(await self._count_quotes(db, start, end))
            completed_quotes.append(await self._count_quotes(db, start, end, (QuoteStatus.PAID,)))
        return {
            "labels": [periods.month_label(m) for m in months],
            "new_quotes": new_quotes,
            "completed_quotes": completed_quotes,
        }

    async def get_recent_activity(self, db: AsyncSession, limit: int = 5) -> list:
        """最近的动态记录"""
        result = await db.execute(
            select(Activity)
            .options(selectinload(Activity.quote).selectinload(Quote.client))
            .order_by(Activity.created_at.desc(), Activity.id.desc())
            .limit(limit)
        )
        items = []
        for activity in result.scalars().all():
            client = activity.quote.client if activity.quote else None
            items.append({
                "id": activity.id,
                "quote_id": activity.quote_id,
                "client": client.name if client else "",
                "type": activity.type,
                "amount": activity.amount,
                "date": periods.as_utc(activity.created_at).strftime("%Y-%m-%d") if activity.created_at else "",
                "status": activity.status,
            })
        return items


dashboard_service = DashboardService()
