"""
系统设置数据模型（单行）
"""
from sqlalchemy import Column, String, DateTime, Integer, Numeric, Boolean, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from bizmanager.core.database import Base


class SystemSettings(Base):
    """系统设置表，全局只有一行"""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(255), nullable=False, default="", comment="公司名称")
    email = Column(String(255), nullable=False, default="", comment="公司邮箱")
    phone = Column(String(50), nullable=False, default="", comment="公司电话")
    address = Column(String(500), nullable=False, default="", comment="公司地址")
    tax_rate = Column(Numeric(6, 3), nullable=False, default=0, comment="税率")
    currency = Column(String(10), nullable=False, default="USD", comment="币种")
    default_platform_fee = Column(Numeric(12, 2), nullable=False, default=0, comment="默认平台费用")
    notification_email = Column(String(255), nullable=False, default="", comment="通知邮箱")
    auto_generate_invoices = Column(Boolean, nullable=False, default=False, comment="自动生成发票")
    platform_options = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list, comment="平台选项")
    payment_options = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list, comment="付款方式选项")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")
