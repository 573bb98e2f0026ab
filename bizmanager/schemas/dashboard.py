"""
仪表盘统计相关的Pydantic模式
"""
from typing import List

from bizmanager.schemas.base import CamelModel


class MetricsResponse(CamelModel):
    """本月与上月关键指标"""
    total_quotes: int
    revenue: float
    pending_quotes: int
    conversion_rate: float
    previous_total_quotes: int
    previous_revenue: float
    previous_pending_quotes: int
    previous_conversion_rate: float


class ChartDataResponse(CamelModel):
    """图表数据"""
    labels: List[str]
    data: List[float]


class QuotesComparisonResponse(CamelModel):
    """新增报价单与已付款报价单对比"""
    labels: List[str]
    new_quotes: List[int]
    completed_quotes: List[int]


class RecentActivityItem(CamelModel):
    """最近动态"""
    id: int
    quote_id: int
    client: str
    type: str
    amount: float
    date: str
    status: str


class StatusDistributionResponse(CamelModel):
    """报价单状态分布"""
    labels: List[str]
    statuses: List[str]
    data: List[int]
