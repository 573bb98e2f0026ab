"""
客户相关的Pydantic模式
"""
from enum import Enum
from typing import Optional
from datetime import datetime

from pydantic import EmailStr, Field

from bizmanager.schemas.base import CamelModel


class ClientStatus(str, Enum):
    """客户状态"""
    ACTIVE = "active"
    INACTIVE = "inactive"


# ===== 请求 Schema =====
class ClientCreateRequest(CamelModel):
    """创建客户请求"""
    name: str = Field(..., min_length=1, max_length=255, description="客户名称")
    email: EmailStr = Field(..., description="客户邮箱")
    phone: Optional[str] = Field(None, max_length=50, description="联系电话")
    company: Optional[str] = Field(None, max_length=255, description="公司名称")
    status: ClientStatus = Field(default=ClientStatus.ACTIVE, description="状态")
    id_number: Optional[str] = Field(None, max_length=100, description="证件号")
    address: Optional[str] = Field(None, max_length=255, description="地址")
    city: Optional[str] = Field(None, max_length=100, description="城市")
    state: Optional[str] = Field(None, max_length=100, description="州/省")
    zip_code: Optional[str] = Field(None, max_length=20, description="邮编")
    country: Optional[str] = Field(None, max_length=100, description="国家")
    tax_id: Optional[str] = Field(None, max_length=100, description="税号")


class ClientUpdateRequest(CamelModel):
    """更新客户请求，仅更新传入的字段"""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="客户名称")
    email: Optional[EmailStr] = Field(None, description="客户邮箱")
    phone: Optional[str] = Field(None, max_length=50, description="联系电话")
    company: Optional[str] = Field(None, max_length=255, description="公司名称")
    status: Optional[ClientStatus] = Field(None, description="状态")
    id_number: Optional[str] = Field(None, max_length=100, description="证件号")
    address: Optional[str] = Field(None, max_length=255, description="地址")
    city: Optional[str] = Field(None, max_length=100, description="城市")
    state: Optional[str] = Field(None, max_length=100, description="州/省")
    zip_code: Optional[str] = Field(None, max_length=20, description="邮编")
    country: Optional[str] = Field(None, max_length=100, description="国家")
    tax_id: Optional[str] = Field(None, max_length=100, description="税号")


# ===== 响应 Schema =====
class ClientBrief(CamelModel):
    """嵌套在订单/物流单中的客户摘要"""
    id: int
    name: str
    email: str
    company: Optional[str] = None


class ClientResponse(CamelModel):
    """客户响应"""
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    status: str
    id_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    tax_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
