"""
物流跟踪（发货单）数据模型
"""
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Index, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from bizmanager.core.database import Base


class Tracking(Base):
    """物流单表，一个物流单合并同一客户的多个报价单"""
    __tablename__ = "trackings"

    id = Column(Integer, primary_key=True, autoincrement=True, comment="物流单ID")
    tracking_number = Column(String(100), nullable=False, unique=True, comment="物流单号")
    client_id = Column(Integer, ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, comment="所属客户")
    status = Column(String(30), nullable=False, default="pending", comment="状态")
    declared_value = Column(Numeric(12, 2), nullable=False, default=0, comment="申报价值")
    shipping_cost = Column(Numeric(12, 2), nullable=False, default=0, comment="运费")
    # 写入时计算 declared_value + shipping_cost 并保存
    total_value = Column(Numeric(12, 2), nullable=False, default=0, comment="总价值")
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0, comment="已收款金额")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), comment="更新时间")

    client = relationship("Client", back_populates="trackings")
    quotes = relationship("Quote", back_populates="tracking", order_by="Quote.id")

    __table_args__ = (
        Index('ix_tracking_client', 'client_id'),
        Index('ix_tracking_status', 'status'),
        Index('ix_tracking_created_at', 'created_at'),
        {'comment': '物流单表'}
    )

    @property
    def client_name(self) -> str:
        return self.client.name if self.client is not None else "No Client"
