"""
报价单（订单）管理服务
"""
from typing import List, Optional
from decimal import Decimal

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizmanager.core.middleware import NotFoundException, BusinessException, ValidationException
from bizmanager.models import Client, Quote, Activity
from bizmanager.schemas.quote import QuoteCreateRequest, QuoteUpdateRequest, QuoteStatus
from bizmanager.services import workflow


class QuoteService:
    """报价单管理服务"""

    # 允许通过显式 null 清空的字段
    CLEARABLE_FIELDS = ("payment_method", "notes")

    async def list_quotes(
        self,
        db: AsyncSession,
        status: Optional[QuoteStatus] = None,
        client_id: Optional[int] = None,
    ) -> List[Quote]:
        """报价单列表，新的在前"""
        query = (
            select(Quote)
            .options(selectinload(Quote.client))
            .order_by(Quote.created_at.desc(), Quote.id.desc())
        )
        if status:
            query = query.where(Quote.status == status.value)
        if client_id:
            query = query.where(Quote.client_id == client_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_missing_quotes(
        self,
        db: AsyncSession,
        status: Optional[QuoteStatus] = None,
    ) -> List[Quote]:
        """缺少报价的报价单：状态为 quote/quoted，可进一步限定为单一状态"""
        allowed = workflow.status_values(workflow.MISSING_QUOTE_STATUSES)
        if status is not None:
            if status.value not in allowed:
                raise ValidationException(
                    f"状态必须是以下之一: {', '.join(allowed)}",
                    details={"status": status.value},
                )
            allowed = [status.value]

        result = await db.execute(
            select(Quote)
            .where(Quote.status.in_(allowed))
            .options(selectinload(Quote.client))
            .order_by(Quote.created_at.desc(), Quote.id.desc())
        )
        return list(result.scalars().all())

    async def get_quote(self, db: AsyncSession, quote_id: int) -> Quote:
        result = await db.execute(
            select(Quote)
            .where(Quote.id == quote_id)
            .options(selectinload(Quote.client))
            .execution_options(populate_existing=True)
        )
        quote = result.scalars().first()
        if not quote:
            raise NotFoundException("报价单", quote_id)
        return quote

    async def get_quote_detail(self, db: AsyncSession, quote_id: int) -> Quote:
        """报价单详情，包含客户和动态记录"""
        result = await db.execute(
            select(Quote)
            .where(Quote.id == quote_id)
            .options(selectinload(Quote.client), selectinload(Quote.activities))
            .execution_options(populate_existing=True)
        )
        quote = result.scalars().first()
        if not quote:
            raise NotFoundException("报价单", quote_id)
        return quote

    @staticmethod
    def _check_amount_paid(charged_amount, amount_paid):
        if workflow.to_decimal(amount_paid) > workflow.to_decimal(charged_amount):
            raise BusinessException(
                "已收款金额不能大于收费金额",
                error_code="OVERPAYMENT",
                details={
                    "charged_amount": str(charged_amount),
                    "amount_paid": str(amount_paid),
                },
            )

    async def create_quote(self, db: AsyncSession, data: QuoteCreateRequest) -> Quote:
        """创建报价单，同时生成一条动态记录"""
        client = await db.get(Client, data.client_id)
        if not client:
            raise NotFoundException("客户", data.client_id)

        status = data.status.value
        amount_paid = workflow.settle_quote_payment(status, data.charged_amount, data.amount_paid)
        self._check_amount_paid(data.charged_amount, amount_paid)

        try:
            quote = Quote(
                client_id=data.client_id,
                product=data.product,
                platform=data.platform,
                status=status,
                cost=data.cost,
                charged_amount=data.charged_amount,
                amount_paid=amount_paid,
                payment_method=data.payment_method,
                notes=data.notes,
            )
            db.add(quote)
            await db.flush()

            db.add(Activity(
                quote_id=quote.id,
                type=workflow.creation_activity_type(status),
                amount=data.charged_amount,
                status=workflow.activity_status_for(status),
            ))

            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"创建报价单失败: {e}")
            raise

        logger.info(f"报价单已创建: id={quote.id}, client_id={quote.client_id}, status={status}")
        return await self.get_quote(db, quote.id)

    def update_fields(self, data: QuoteUpdateRequest) -> dict:
        """取出请求中传入的字段，非空字段传 null 视为未传"""
        return {
            k: v for k, v in data.model_dump(exclude_unset=True).items()
            if v is not None or k in self.CLEARABLE_FIELDS
        }

    def apply_update(self, quote: Quote, update_data: dict) -> None:
        """
        将更新字段写入报价单

        状态改为 paid 时收款金额等于（更新后的）收费金额
        """
        for key, value in update_data.items():
            if isinstance(value, QuoteStatus):
                value = value.value
            setattr(quote, key, value)

        quote.amount_paid = workflow.settle_quote_payment(
            quote.status, quote.charged_amount, quote.amount_paid
        )
        self._check_amount_paid(quote.charged_amount, quote.amount_paid)

    async def update_quote(self, db: AsyncSession, quote_id: int, data: QuoteUpdateRequest) -> Quote:
        """
        更新报价单

        任意状态之间都可以直接切换；传入状态时追加一条动态记录
        """
        quote = await self.get_quote(db, quote_id)

        update_data = self.update_fields(data)
        if not update_data:
            raise BusinessException("没有需要更新的字段")

        try:
            self.apply_update(quote, update_data)

            if data.status is not None:
                status = data.status.value
                activity_amount = (
                    data.amount_paid if data.amount_paid is not None and status != QuoteStatus.PAID.value
                    else quote.charged_amount
                )
                db.add(Activity(
                    quote_id=quote.id,
                    type=workflow.status_change_activity_type(status),
                    amount=activity_amount,
                    status=workflow.activity_status_for(status),
                ))

            await db.commit()
        except BusinessException:
            await db.rollback()
            raise
        except Exception as e:
            await db.rollback()
            logger.error(f"更新报价单失败: {e}")
            raise

        logger.info(f"报价单已更新: id={quote_id}, 字段={list(update_data)}")
        return await self.get_quote(db, quote_id)

    async def delete_quote(self, db: AsyncSession, quote_id: int) -> None:
        """删除报价单及其动态记录"""
        result = await db.execute(
            select(Quote)
            .where(Quote.id == quote_id)
            .options(selectinload(Quote.activities))
        )
        quote = result.scalars().first()
        if not quote:
            raise NotFoundException("报价单", quote_id)

        try:
            await db.delete(quote)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"删除报价单失败: {e}")
            raise

        logger.info(f"报价单已删除: id={quote_id}")

    def charged_amount(self, cost: Decimal, percentage: Decimal) -> dict:
        """按加价百分比计算收费金额"""
        return {
            "cost": cost,
            "percentage": percentage,
            "charged_amount": workflow.calculate_charged_amount(cost, percentage),
            "percentage_options": workflow.MARKUP_PERCENTAGE_OPTIONS,
        }


quote_service = QuoteService()
