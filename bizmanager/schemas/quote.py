"""
报价单（订单）相关的Pydantic模式
"""
from enum import Enum
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from pydantic import Field

from bizmanager.schemas.base import CamelModel
from bizmanager.schemas.client import ClientBrief


# ===== 枚举值定义 =====
class QuoteStatus(str, Enum):
    """报价单状态，按销售流程顺序排列（不强制单向流转）"""
    QUOTE = "quote"
    QUOTED = "quoted"
    PURCHASE = "purchase"
    PURCHASED = "purchased"
    RECEIVED = "received"
    READY_TO_SHIP = "ready_to_ship"
    HELD = "held"
    SHIPPED = "shipped"
    PAID = "paid"


class ActivityStatus(str, Enum):
    """动态记录状态"""
    PENDING = "pending"
    COMPLETED = "completed"


# ===== 请求 Schema =====
class QuoteCreateRequest(CamelModel):
    """创建报价单请求"""
    client_id: int = Field(..., ge=1, description="客户ID")
    product: str = Field(..., min_length=1, max_length=255, description="产品描述")
    platform: str = Field(default="", max_length=100, description="采购平台")
    status: QuoteStatus = Field(default=QuoteStatus.PURCHASED, description="初始状态")
    cost: Decimal = Field(default=Decimal("0"), ge=0, description="成本")
    charged_amount: Decimal = Field(default=Decimal("0"), ge=0, description="向客户收取金额")
    amount_paid: Decimal = Field(default=Decimal("0"), ge=0, description="已收款金额")
    payment_method: Optional[str] = Field(None, max_length=100, description="付款方式")
    notes: Optional[str] = Field(None, description="备注")


class QuoteUpdateRequest(CamelModel):
    """更新报价单请求，仅更新传入的字段"""
    product: Optional[str] = Field(None, min_length=1, max_length=255, description="产品描述")
    platform: Optional[str] = Field(None, max_length=100, description="采购平台")
    status: Optional[QuoteStatus] = Field(None, description="状态")
    cost: Optional[Decimal] = Field(None, ge=0, description="成本")
    charged_amount: Optional[Decimal] = Field(None, ge=0, description="向客户收取金额")
    amount_paid: Optional[Decimal] = Field(None, ge=0, description="已收款金额")
    payment_method: Optional[str] = Field(None, max_length=100, description="付款方式")
    notes: Optional[str] = Field(None, description="备注")


# ===== 响应 Schema =====
class ActivityResponse(CamelModel):
    """动态记录响应"""
    id: int
    quote_id: int
    type: str
    amount: float
    status: str
    created_at: Optional[datetime] = None


class QuoteSummary(CamelModel):
    """嵌套在物流单中的报价单摘要"""
    id: int
    client_id: int
    product: str
    platform: str
    status: str
    cost: float
    charged_amount: float
    amount_paid: float


class QuoteResponse(CamelModel):
    """报价单响应"""
    id: int
    client_id: int
    tracking_id: Optional[int] = None
    product: str
    platform: str
    status: str
    cost: float
    charged_amount: float
    amount_paid: float
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[ClientBrief] = None


class QuoteDetailResponse(QuoteResponse):
    """报价单详情，包含动态记录"""
    activities: List[ActivityResponse] = Field(default_factory=list)


class ChargedAmountResponse(CamelModel):
    """加价计算结果"""
    cost: float
    percentage: float
    charged_amount: float
    percentage_options: List[int]
