"""
物流单相关的Pydantic模式
"""
from enum import Enum
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from bizmanager.schemas.base import CamelModel
from bizmanager.schemas.client import ClientBrief
from bizmanager.schemas.quote import QuoteSummary


class TrackingStatus(str, Enum):
    """物流单状态（与报价单状态相互独立）"""
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    PAID = "paid"


def _unique_ids(v: List[int]) -> List[int]:
    seen = []
    for quote_id in v:
        if quote_id not in seen:
            seen.append(quote_id)
    return seen


# ===== 请求 Schema =====
class TrackingCreateRequest(CamelModel):
    """创建物流单请求"""
    tracking_number: str = Field(..., min_length=1, max_length=100, description="物流单号")
    client_id: int = Field(..., ge=1, description="客户ID")
    quote_ids: List[int] = Field(..., min_length=1, description="包含的报价单ID")
    declared_value: Decimal = Field(default=Decimal("0"), ge=0, description="申报价值")
    shipping_cost: Decimal = Field(default=Decimal("0"), ge=0, description="运费")
    status: TrackingStatus = Field(default=TrackingStatus.PENDING, description="状态")

    @field_validator("tracking_number")
    @classmethod
    def strip_tracking_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("物流单号不能为空")
        return v

    @field_validator("quote_ids")
    @classmethod
    def dedupe_quote_ids(cls, v: List[int]) -> List[int]:
        return _unique_ids(v)


class TrackingUpdateRequest(TrackingCreateRequest):
    """更新物流单请求，报价单集合整体替换"""
    status: Optional[TrackingStatus] = Field(None, description="状态")


class TrackingStatusUpdateRequest(CamelModel):
    """更新物流单状态"""
    status: TrackingStatus = Field(..., description="状态")


class TrackingPaymentUpdateRequest(CamelModel):
    """登记物流单收款"""
    amount_paid: Decimal = Field(..., ge=0, description="已收款金额")
    status: Optional[TrackingStatus] = Field(None, description="显式指定状态")


class BatchShipmentRequest(CamelModel):
    """批量发货：创建物流单并将报价单标记为已发货（同一事务）"""
    tracking_number: str = Field(..., min_length=1, max_length=100, description="物流单号")
    client_id: int = Field(..., ge=1, description="客户ID")
    quote_ids: List[int] = Field(..., min_length=1, description="发货的报价单ID")
    shipping_cost: Decimal = Field(default=Decimal("0"), ge=0, description="运费")
    declared_value: Optional[Decimal] = Field(None, ge=0, description="申报价值，默认取报价单收费合计")
    status: TrackingStatus = Field(default=TrackingStatus.PENDING, description="物流单状态")

    @field_validator("tracking_number")
    @classmethod
    def strip_tracking_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("物流单号不能为空")
        return v

    @field_validator("quote_ids")
    @classmethod
    def dedupe_quote_ids(cls, v: List[int]) -> List[int]:
        return _unique_ids(v)


# ===== 响应 Schema =====
class TrackingSummary(CamelModel):
    """物流单摘要"""
    id: int
    tracking_number: str
    client_id: int
    status: str
    declared_value: float
    shipping_cost: float
    total_value: float
    amount_paid: float
    created_at: Optional[datetime] = None


class TrackingResponse(TrackingSummary):
    """物流单响应，包含客户和报价单"""
    client_name: str
    client: Optional[ClientBrief] = None
    quotes: List[QuoteSummary] = Field(default_factory=list)
    updated_at: Optional[datetime] = None
