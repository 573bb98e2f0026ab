"""
报价单（订单）数据模型
"""
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index, Numeric, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bizmanager.core.database import Base


class Quote(Base):
    """报价单/订单表"""
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, autoincrement=True, comment="报价单ID")
    client_id = Column(Integer, ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, comment="所属客户")
    tracking_id = Column(Integer, ForeignKey('trackings.id', ondelete='SET NULL'), nullable=True, comment="所属物流单")
    product = Column(String(255), nullable=False, comment="产品描述")
    platform = Column(String(100), nullable=False, default="", comment="采购平台")
    status = Column(String(30), nullable=False, default="purchased", comment="状态")
    cost = Column(Numeric(12, 2), nullable=False, default=0, comment="成本")
    charged_amount = Column(Numeric(12, 2), nullable=False, default=0, comment="向客户收取金额")
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0, comment="已收款金额")
    payment_method = Column(String(100), comment="付款方式")
    notes = Column(Text, comment="备注")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    client = relationship("Client", back_populates="quotes")
    tracking = relationship("Tracking", back_populates="quotes")
    activities = relationship(
        "Activity",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="(Activity.created_at.desc(), Activity.id.desc())",
    )

    __table_args__ = (
        Index('ix_quote_client', 'client_id'),
        Index('ix_quote_tracking', 'tracking_id'),
        Index('ix_quote_status', 'status'),
        Index('ix_quote_created_at', 'created_at'),
        {'comment': '报价单/订单表'}
    )


class Activity(Base):
    """报价单动态记录表（只追加）"""
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, autoincrement=True, comment="动态ID")
    quote_id = Column(Integer, ForeignKey('quotes.id', ondelete='CASCADE'), nullable=False, comment="所属报价单")
    type = Column(String(100), nullable=False, comment="事件描述")
    amount = Column(Numeric(12, 2), nullable=False, default=0, comment="金额")
    status = Column(String(20), nullable=False, default="pending", comment="状态: pending/completed")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")

    quote = relationship("Quote", back_populates="activities")

    __table_args__ = (
        Index('ix_activity_quote', 'quote_id'),
        Index('ix_activity_created_at', 'created_at'),
        {'comment': '报价单动态记录表'}
    )
