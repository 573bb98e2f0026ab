"""
系统设置服务

设置表只有一行，首次读取时按默认值创建
"""
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.models import SystemSettings
from bizmanager.schemas.settings import SettingsUpdateRequest


DEFAULT_SETTINGS = {
    "company_name": "",
    "email": "",
    "phone": "",
    "address": "",
    "tax_rate": 0,
    "currency": "USD",
    "default_platform_fee": 0,
    "notification_email": "",
    "auto_generate_invoices": False,
    "platform_options": [],
    "payment_options": [],
}


class SettingsService:
    """系统设置服务"""

    async def _first(self, db: AsyncSession):
        result = await db.execute(
            select(SystemSettings)
            .order_by(SystemSettings.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_settings(self, db: AsyncSession) -> SystemSettings:
        """读取设置，不存在时创建默认设置"""
        settings_row = await self._first(db)
        if settings_row:
            return settings_row

        settings_row = SystemSettings(**DEFAULT_SETTINGS)
        db.add(settings_row)
        try:
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"创建默认设置失败: {e}")
            raise

        logger.info("已创建默认系统设置")
        return await self._first(db)

    async def update_settings(self, db: AsyncSession, data: SettingsUpdateRequest) -> SystemSettings:
        """更新设置，仅写入传入的字段，后写覆盖先写；传 null 恢复默认值"""
        settings_row = await self.get_settings(db)

        update_data = {
            k: DEFAULT_SETTINGS[k] if v is None else v
            for k, v in data.model_dump(exclude_unset=True).items()
        }
        for key, value in update_data.items():
            setattr(settings_row, key, value)

        try:
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"更新系统设置失败: {e}")
            raise

        logger.info(f"系统设置已更新: 字段={list(update_data)}")
        return await self._first(db)


settings_service = SettingsService()
