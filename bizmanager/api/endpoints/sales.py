"""
销售统计API端点
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import get_db
from bizmanager.schemas.quote import QuoteUpdateRequest, QuoteResponse
from bizmanager.schemas.sales import (
    MonthlySalesResponse, MonthlySummaryResponse, UnpaidOrdersResponse,
    UnpaidSortField, SortOrder,
)
from bizmanager.services.sales_service import sales_service


router = APIRouter()


@router.get("", response_model=MonthlySalesResponse, summary="月度销售")
async def get_monthly_sales(
    month: Optional[str] = Query(None, description="月份 YYYY-MM，默认本月"),
    db: AsyncSession = Depends(get_db),
):
    """营收状态的订单，以及当月创建的物流单（以订单形式展示）"""
    return await sales_service.get_monthly_sales(db, month)


@router.get("/summary", response_model=MonthlySummaryResponse, summary="月度汇总")
async def get_monthly_summary(
    month: Optional[str] = Query(None, description="月份 YYYY-MM，默认本月"),
    db: AsyncSession = Depends(get_db),
):
    return await sales_service.get_monthly_summary(db, month)


@router.get("/unpaid", response_model=UnpaidOrdersResponse, summary="未付款订单")
async def get_unpaid_orders(
    sort_by: UnpaidSortField = Query(UnpaidSortField.DAYS_OVERDUE, alias="sortBy", description="排序字段"),
    order: SortOrder = Query(SortOrder.DESC, description="asc/desc"),
    db: AsyncSession = Depends(get_db),
):
    return await sales_service.get_unpaid_orders(db, sort_by, order)


@router.put("/{order_id}", response_model=QuoteResponse, summary="更新订单")
async def update_order(order_id: int, request: QuoteUpdateRequest, db: AsyncSession = Depends(get_db)):
    """传入已收款金额时记录部分付款动态"""
    return await sales_service.update_order(db, order_id, request)
