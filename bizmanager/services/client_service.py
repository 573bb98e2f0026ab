"""
客户管理服务
"""
from typing import List, Optional

from loguru import logger
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizmanager.core.middleware import NotFoundException, BusinessException
from bizmanager.models import Client, Quote, Tracking
from bizmanager.schemas.client import ClientCreateRequest, ClientUpdateRequest


class ClientService:
    """客户管理服务"""

    async def list_clients(
        self,
        db: AsyncSession,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Client]:
        """客户列表，按名称排序"""
        query = select(Client).order_by(Client.name)
        if status:
            query = query.where(Client.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Client.name.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.company.ilike(pattern),
                )
            )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_client(self, db: AsyncSession, client_id: int) -> Client:
        result = await db.execute(
            select(Client)
            .where(Client.id == client_id)
            .execution_options(populate_existing=True)
        )
        client = result.scalars().first()
        if not client:
            raise NotFoundException("客户", client_id)
        return client

    async def get_client_detail(self, db: AsyncSession, client_id: int) -> Client:
        """
        客户详情，包含报价单（新的在前）和物流单

        报价单的 client 即当前客户，由 identity map 提供，不做嵌套加载
        """
        result = await db.execute(
            select(Client)
            .where(Client.id == client_id)
            .options(
                selectinload(Client.quotes),
                selectinload(Client.trackings),
            )
            .execution_options(populate_existing=True)
        )
        client = result.scalars().first()
        if not client:
            raise NotFoundException("客户", client_id)
        return client

    async def _ensure_email_available(self, db: AsyncSession, email: str, exclude_id: Optional[int] = None):
        query = select(Client.id).where(Client.email == email)
        if exclude_id is not None:
            query = query.where(Client.id != exclude_id)
        existing = (await db.execute(query)).scalars().first()
        if existing:
            raise BusinessException("该邮箱已被其他客户使用", error_code="DUPLICATE_EMAIL", details={"email": email})

    async def create_client(self, db: AsyncSession, data: ClientCreateRequest) -> Client:
        """创建客户"""
        await self._ensure_email_available(db, data.email)

        values = data.model_dump()
        values["status"] = data.status.value
        client = Client(**values)
        db.add(client)
        try:
            await db.commit()
        except IntegrityError as e:
            # 并发创建时以唯一约束为准
            await db.rollback()
            logger.warning(f"创建客户违反唯一约束: {e.orig}")
            raise BusinessException("该邮箱已被其他客户使用", error_code="DUPLICATE_EMAIL", details={"email": data.email})

        logger.info(f"客户已创建: id={client.id}, email={client.email}")
        return await self.get_client(db, client.id)

    async def update_client(self, db: AsyncSession, client_id: int, data: ClientUpdateRequest) -> Client:
        """更新客户，仅更新传入字段"""
        client = await self.get_client(db, client_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            raise BusinessException("没有需要更新的字段")
        if update_data.get("email") and update_data["email"] != client.email:
            await self._ensure_email_available(db, update_data["email"], exclude_id=client_id)
        if "status" in update_data and update_data["status"] is not None:
            update_data["status"] = data.status.value

        for key, value in update_data.items():
            if value is None and key in ("name", "email", "status"):
                continue
            setattr(client, key, value)

        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"更新客户违反唯一约束: {e.orig}")
            raise BusinessException("该邮箱已被其他客户使用", error_code="DUPLICATE_EMAIL")

        logger.info(f"客户已更新: id={client_id}, 字段={list(update_data)}")
        return await self.get_client(db, client_id)

    async def delete_client(self, db: AsyncSession, client_id: int) -> None:
        """删除客户，级联删除其报价单、动态记录和物流单"""
        result = await db.execute(
            select(Client)
            .where(Client.id == client_id)
            .options(
                selectinload(Client.quotes).selectinload(Quote.activities),
                selectinload(Client.trackings).selectinload(Tracking.quotes),
            )
        )
        client = result.scalars().first()
        if not client:
            raise NotFoundException("客户", client_id)

        try:
            await db.delete(client)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"删除客户失败: {e}")
            raise

        logger.info(f"客户已删除: id={client_id}")


client_service = ClientService()
