"""
客户数据模型
"""
from sqlalchemy import Column, String, DateTime, Integer, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bizmanager.core.database import Base


class Client(Base):
    """客户表"""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True, comment="客户ID")
    name = Column(String(255), nullable=False, comment="客户名称")
    email = Column(String(255), nullable=False, unique=True, comment="客户邮箱")
    phone = Column(String(50), comment="联系电话")
    company = Column(String(255), comment="公司名称")
    status = Column(String(20), nullable=False, default="active", comment="状态: active/inactive")
    id_number = Column(String(100), comment="证件号")
    address = Column(String(255), comment="地址")
    city = Column(String(100), comment="城市")
    state = Column(String(100), comment="州/省")
    zip_code = Column(String(20), comment="邮编")
    country = Column(String(100), comment="国家")
    tax_id = Column(String(100), comment="税号")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    quotes = relationship(
        "Quote",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="(Quote.created_at.desc(), Quote.id.desc())",
    )
    trackings = relationship(
        "Tracking",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="(Tracking.created_at.desc(), Tracking.id.desc())",
    )

    __table_args__ = (
        Index('ix_client_name', 'name'),
        Index('ix_client_status', 'status'),
        {'comment': '客户表'}
    )
