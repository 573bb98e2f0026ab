"""
物流单管理服务

物流单把同一客户的多个报价单合并发货，并独立记录收款状态
"""
from typing import List, Optional, Sequence

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizmanager.core.middleware import NotFoundException, BusinessException
from bizmanager.models import Client, Quote, Activity, Tracking
from bizmanager.schemas.quote import QuoteStatus
from bizmanager.schemas.tracking import (
    TrackingCreateRequest, TrackingUpdateRequest,
    TrackingStatusUpdateRequest, TrackingPaymentUpdateRequest,
    BatchShipmentRequest, TrackingStatus,
)
from bizmanager.services import workflow


class TrackingService:
    """物流单管理服务"""

    @staticmethod
    def _base_query():
        return select(Tracking).options(
            selectinload(Tracking.client),
            selectinload(Tracking.quotes),
        )

    async def list_trackings(
        self,
        db: AsyncSession,
        status: Optional[TrackingStatus] = None,
        client_id: Optional[int] = None,
    ) -> List[Tracking]:
        query = self._base_query().order_by(Tracking.created_at.desc(), Tracking.id.desc())
        if status:
            query = query.where(Tracking.status == status.value)
        if client_id:
            query = query.where(Tracking.client_id == client_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_tracking(self, db: AsyncSession, tracking_id: int) -> Tracking:
        result = await db.execute(
            self._base_query()
            .where(Tracking.id == tracking_id)
            .execution_options(populate_existing=True)
        )
        tracking = result.scalars().first()
        if not tracking:
            raise NotFoundException("物流单", tracking_id)
        return tracking

    async def list_eligible_quotes(self, db: AsyncSession, client_id: Optional[int] = None) -> List[Quote]:
        """可以合并进物流单的报价单：状态符合且尚未关联物流单"""
        query = (
            select(Quote)
            .where(
                Quote.status.in_(workflow.status_values(workflow.SHIPMENT_ELIGIBLE_STATUSES)),
                Quote.tracking_id.is_(None),
            )
            .options(selectinload(Quote.client))
            .order_by(Quote.created_at.desc(), Quote.id.desc())
        )
        if client_id:
            query = query.where(Quote.client_id == client_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    # ===== 校验 =====

    async def _ensure_client(self, db: AsyncSession, client_id: int) -> Client:
        client = await db.get(Client, client_id)
        if not client:
            raise NotFoundException("客户", client_id)
        return client

    async def _ensure_tracking_number_available(
        self,
        db: AsyncSession,
        tracking_number: str,
        exclude_id: Optional[int] = None,
    ):
        query = select(Tracking.id).where(Tracking.tracking_number == tracking_number)
        if exclude_id is not None:
            query = query.where(Tracking.id != exclude_id)
        if (await db.execute(query)).scalars().first():
            raise BusinessException(
                "物流单号已存在",
                error_code="DUPLICATE_TRACKING_NUMBER",
                details={"tracking_number": tracking_number},
            )

    async def _load_quotes_for_shipment(
        self,
        db: AsyncSession,
        quote_ids: Sequence[int],
        client_id: int,
        allowed_statuses: Sequence[QuoteStatus],
        tracking_id: Optional[int] = None,
    ) -> List[Quote]:
        """
        加载并校验待发货报价单

        报价单必须存在、属于同一客户、状态符合、且未关联其他物流单；
        已关联到当前物流单的报价单不校验状态
        """
        result = await db.execute(select(Quote).where(Quote.id.in_(list(quote_ids))))
        quotes = {q.id: q for q in result.scalars().all()}

        missing = [qid for qid in quote_ids if qid not in quotes]
        if missing:
            raise NotFoundException("报价单", ", ".join(str(qid) for qid in missing))

        allowed = workflow.status_values(allowed_statuses)
        for qid in quote_ids:
            quote = quotes[qid]
            if quote.client_id != client_id:
                raise BusinessException(
                    f"报价单 {qid} 不属于客户 {client_id}",
                    error_code="QUOTE_CLIENT_MISMATCH",
                    details={"quote_id": qid, "client_id": quote.client_id},
                )
            already_attached = tracking_id is not None and quote.tracking_id == tracking_id
            if quote.tracking_id is not None and not already_attached:
                raise BusinessException(
                    f"报价单 {qid} 已关联其他物流单",
                    error_code="QUOTE_ALREADY_SHIPPED",
                    details={"quote_id": qid, "tracking_id": quote.tracking_id},
                )
            if not already_attached and quote.status not in allowed:
                raise BusinessException(
                    f"报价单 {qid} 当前状态 {quote.status} 不能发货，允许的状态: {', '.join(allowed)}",
                    error_code="QUOTE_NOT_ELIGIBLE",
                    details={"quote_id": qid, "status": quote.status},
                )

        return [quotes[qid] for qid in quote_ids]

    async def _commit_unique(self, db: AsyncSession, tracking_number: str):
        """提交事务，唯一约束冲突转换为业务异常"""
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"物流单号唯一约束冲突: {tracking_number} | {e.orig}")
            raise BusinessException(
                "物流单号已存在",
                error_code="DUPLICATE_TRACKING_NUMBER",
                details={"tracking_number": tracking_number},
            )
        except Exception:
            await db.rollback()
            raise

    # ===== 写操作 =====

    async def create_tracking(self, db: AsyncSession, data: TrackingCreateRequest) -> Tracking:
        """创建物流单并关联报价单"""
        await self._ensure_client(db, data.client_id)
        await self._ensure_tracking_number_available(db, data.tracking_number)
        quotes = await self._load_quotes_for_shipment(
            db, data.quote_ids, data.client_id, workflow.SHIPMENT_ELIGIBLE_STATUSES
        )

        total_value = workflow.calculate_total_value(data.declared_value, data.shipping_cost)
        status = data.status.value
        tracking = Tracking(
            tracking_number=data.tracking_number,
            client_id=data.client_id,
            status=status,
            declared_value=data.declared_value,
            shipping_cost=data.shipping_cost,
            total_value=total_value,
            amount_paid=workflow.tracking_status_settlement(status, total_value, 0),
            quotes=quotes,
        )
        db.add(tracking)

        await self._commit_unique(db, data.tracking_number)

        logger.info(
            f"物流单已创建: id={tracking.id}, number={tracking.tracking_number}, "
            f"quotes={data.quote_ids}, total={total_value}"
        )
        return await self.get_tracking(db, tracking.id)

    async def update_tracking(self, db: AsyncSession, tracking_id: int, data: TrackingUpdateRequest) -> Tracking:
        """更新物流单，报价单集合整体替换（移出的报价单仅解除关联）"""
        tracking = await self.get_tracking(db, tracking_id)
        await self._ensure_client(db, data.client_id)
        await self._ensure_tracking_number_available(db, data.tracking_number, exclude_id=tracking_id)
        quotes = await self._load_quotes_for_shipment(
            db, data.quote_ids, data.client_id, workflow.SHIPMENT_ELIGIBLE_STATUSES,
            tracking_id=tracking_id,
        )

        total_value = workflow.calculate_total_value(data.declared_value, data.shipping_cost)
        status = data.status.value if data.status else tracking.status

        tracking.tracking_number = data.tracking_number
        tracking.client_id = data.client_id
        tracking.declared_value = data.declared_value
        tracking.shipping_cost = data.shipping_cost
        tracking.total_value = total_value
        tracking.status = status
        tracking.amount_paid = workflow.tracking_status_settlement(status, total_value, tracking.amount_paid)

        # 整体替换，移出的报价单外键置空
        tracking.quotes = quotes

        await self._commit_unique(db, data.tracking_number)

        logger.info(f"物流单已更新: id={tracking_id}, quotes={data.quote_ids}, total={total_value}")
        return await self.get_tracking(db, tracking_id)

    async def update_status(
        self,
        db: AsyncSession,
        tracking_id: int,
        data: TrackingStatusUpdateRequest,
    ) -> Tracking:
        """更新物流单状态，改为 paid 时收款金额等于总价值"""
        tracking = await self.get_tracking(db, tracking_id)
        status = data.status.value

        tracking.status = status
        tracking.amount_paid = workflow.tracking_status_settlement(
            status, tracking.total_value, tracking.amount_paid
        )
        try:
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"更新物流单状态失败: {e}")
            raise

        logger.info(f"物流单状态已更新: id={tracking_id}, status={status}")
        return await self.get_tracking(db, tracking_id)

    async def update_payment(
        self,
        db: AsyncSession,
        tracking_id: int,
        data: TrackingPaymentUpdateRequest,
    ) -> Tracking:
        """登记物流单收款，收齐自动标记为已付款"""
        tracking = await self.get_tracking(db, tracking_id)

        amount_paid, status = workflow.resolve_tracking_payment(
            amount_paid=data.amount_paid,
            total_value=tracking.total_value,
            explicit_status=data.status.value if data.status else None,
            current_status=tracking.status,
        )
        if amount_paid < workflow.to_decimal(data.amount_paid):
            logger.info(
                f"物流单收款超出总价值，超出部分不记录: id={tracking_id}, "
                f"提交={data.amount_paid}, 记录={amount_paid}"
            )

        tracking.amount_paid = amount_paid
        tracking.status = status
        try:
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"更新物流单收款失败: {e}")
            raise

        logger.info(f"物流单收款已更新: id={tracking_id}, amount_paid={amount_paid}, status={status}")
        return await self.get_tracking(db, tracking_id)

    async def delete_tracking(self, db: AsyncSession, tracking_id: int) -> None:
        """删除物流单，关联的报价单解除关联但保留"""
        tracking = await self.get_tracking(db, tracking_id)
        try:
            for quote in list(tracking.quotes):
                quote.tracking_id = None
            await db.delete(tracking)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"删除物流单失败: {e}")
            raise

        logger.info(f"物流单已删除: id={tracking_id}")

    async def create_batch_shipment(self, db: AsyncSession, data: BatchShipmentRequest) -> Tracking:
        """
        批量发货

        在同一事务中创建物流单、关联报价单并将其标记为 shipped，
        每个报价单追加一条状态变更动态；任一步失败整体回滚
        """
        await self._ensure_client(db, data.client_id)
        await self._ensure_tracking_number_available(db, data.tracking_number)
        quotes = await self._load_quotes_for_shipment(
            db, data.quote_ids, data.client_id, workflow.BATCH_POOL_STATUSES
        )

        declared_value = data.declared_value
        if declared_value is None:
            declared_value = sum((workflow.to_decimal(q.charged_amount) for q in quotes), workflow.to_decimal(0))
        total_value = workflow.calculate_total_value(declared_value, data.shipping_cost)
        status = data.status.value

        shipped = QuoteStatus.SHIPPED.value
        tracking = Tracking(
            tracking_number=data.tracking_number,
            client_id=data.client_id,
            status=status,
            declared_value=declared_value,
            shipping_cost=data.shipping_cost,
            total_value=total_value,
            amount_paid=workflow.tracking_status_settlement(status, total_value, 0),
            quotes=quotes,
        )
        db.add(tracking)
        for quote in quotes:
            quote.status = shipped
            db.add(Activity(
                quote_id=quote.id,
                type=workflow.status_change_activity_type(shipped),
                amount=quote.charged_amount,
                status=workflow.activity_status_for(shipped),
            ))

        # 物流单、报价单状态和动态记录在同一次提交中写入
        await self._commit_unique(db, data.tracking_number)

        logger.info(
            f"批量发货完成: tracking_id={tracking.id}, number={tracking.tracking_number}, "
            f"quotes={data.quote_ids}, declared={declared_value}, total={total_value}"
        )
        return await self.get_tracking(db, tracking.id)


tracking_service = TrackingService()
