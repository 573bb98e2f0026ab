"""
仪表盘API端点
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import get_db
from bizmanager.schemas.dashboard import (
    MetricsResponse, ChartDataResponse, StatusDistributionResponse,
    QuotesComparisonResponse, RecentActivityItem,
)
from bizmanager.services.dashboard_service import dashboard_service


router = APIRouter()


@router.get("/metrics", response_model=MetricsResponse, summary="本月与上月关键指标")
async def get_metrics(db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_metrics(db)


@router.get("/revenue", response_model=ChartDataResponse, summary="最近12个月营收")
async def get_revenue(db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_revenue_data(db)


@router.get("/quote-status", response_model=StatusDistributionResponse, summary="报价单状态分布")
async def get_quote_status(db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_quote_status_distribution(db)


@router.get("/quotes-comparison", response_model=QuotesComparisonResponse, summary="新增与已付款报价单对比")
async def get_quotes_comparison(db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_quotes_comparison(db)


@router.get("/recent-activity", response_model=List[RecentActivityItem], summary="最近动态")
async def get_recent_activity(db: AsyncSession = Depends(get_db)):
    return await dashboard_service.get_recent_activity(db)
