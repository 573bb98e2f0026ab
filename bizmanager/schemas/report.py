"""
客户详情与客户报表相关的Pydantic模式
"""
from typing import List, Optional
from datetime import date

from pydantic import Field

from bizmanager.schemas.base import CamelModel
from bizmanager.schemas.client import ClientResponse
from bizmanager.schemas.quote import QuoteResponse
from bizmanager.schemas.sales import StatusCount
from bizmanager.schemas.tracking import TrackingResponse, TrackingSummary


class ClientDetailResponse(ClientResponse):
    """客户详情，包含订单和物流单"""
    quotes: List[QuoteResponse] = Field(default_factory=list)
    trackings: List[TrackingSummary] = Field(default_factory=list)


class ClientReportMetrics(CamelModel):
    total_quotes: int
    total_shipments: int
    total_charged: float
    total_paid: float
    total_unpaid: float
    total_shipping_value: float
    total_declared_value: float
    status_breakdown: List[StatusCount]


class ClientReportResponse(CamelModel):
    """客户对账报表"""
    client: ClientResponse
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    statuses: List[str]
    quotes: List[QuoteResponse]
    shipments: List[TrackingResponse]
    metrics: ClientReportMetrics
