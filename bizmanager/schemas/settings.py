"""
系统设置相关的Pydantic模式
"""
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from bizmanager.schemas.base import CamelModel


class SettingsUpdateRequest(CamelModel):
    """更新系统设置，仅更新传入的字段"""
    company_name: Optional[str] = Field(None, max_length=255, description="公司名称")
    email: Optional[str] = Field(None, max_length=255, description="公司邮箱")
    phone: Optional[str] = Field(None, max_length=50, description="公司电话")
    address: Optional[str] = Field(None, max_length=500, description="公司地址")
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100, description="税率(%)")
    currency: Optional[str] = Field(None, min_length=1, max_length=10, description="币种")
    default_platform_fee: Optional[Decimal] = Field(None, ge=0, description="默认平台费用")
    notification_email: Optional[str] = Field(None, max_length=255, description="通知邮箱")
    auto_generate_invoices: Optional[bool] = Field(None, description="自动生成发票")
    platform_options: Optional[List[str]] = Field(None, description="平台选项")
    payment_options: Optional[List[str]] = Field(None, description="付款方式选项")

    @field_validator("platform_options", "payment_options")
    @classmethod
    def clean_options(cls, v):
        if v is None:
            return v
        cleaned = []
        for option in v:
            option = option.strip()
            if option and option not in cleaned:
                cleaned.append(option)
        return cleaned


class SettingsResponse(CamelModel):
    """系统设置响应"""
    id: int
    company_name: str
    email: str
    phone: str
    address: str
    tax_rate: float
    currency: str
    default_platform_fee: float
    notification_email: str
    auto_generate_invoices: bool
    platform_options: List[str]
    payment_options: List[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
