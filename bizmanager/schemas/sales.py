"""
销售统计与未付款订单相关的Pydantic模式
"""
from enum import Enum
from typing import Optional, List
from datetime import datetime

from bizmanager.schemas.base import CamelModel
from bizmanager.schemas.client import ClientBrief
from bizmanager.schemas.quote import QuoteResponse


class UnpaidItemType(str, Enum):
    ORDER = "order"
    SHIPMENT = "shipment"


class UnpaidSortField(str, Enum):
    DAYS_OVERDUE = "daysOverdue"
    AMOUNT = "amount"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ShipmentOrderResponse(CamelModel):
    """以订单形式展示的物流单"""
    id: int
    order_number: str
    tracking_number: str
    client_id: int
    client: Optional[ClientBrief] = None
    product: str
    platform: str
    status: str
    cost: float
    charged_amount: float
    amount_paid: float
    created_at: Optional[datetime] = None


class MonthlySalesResponse(CamelModel):
    """月度销售：订单与物流单"""
    month: str
    orders: List[QuoteResponse]
    shipments: List[ShipmentOrderResponse]


class StatusCount(CamelModel):
    status: str
    count: int


class MonthlySummaryResponse(CamelModel):
    """月度汇总"""
    month: str
    total_orders: int
    total_cost: float
    total_revenue: float
    profit: float
    status_breakdown: List[StatusCount]


class UnpaidItem(CamelModel):
    """未付款订单/物流单"""
    item_type: UnpaidItemType
    id: int
    order_number: str
    client_id: int
    client: Optional[ClientBrief] = None
    product: str
    platform: str
    status: str
    payment_method: str
    cost: float
    charged_amount: float
    amount_paid: float
    remaining_amount: float
    days_overdue: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class UnpaidMetrics(CamelModel):
    """未付款汇总指标"""
    total_unpaid: float
    overdue_count: int
    average_days_overdue: float
    critical_amount: float
    orders_count: int
    partially_paid_count: int
    total_partial_payments: float
    total_amount_due: float
    top_platform: str


class UnpaidOrdersResponse(CamelModel):
    items: List[UnpaidItem]
    metrics: UnpaidMetrics
