"""
系统设置API端点
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import get_db
from bizmanager.schemas.settings import SettingsUpdateRequest, SettingsResponse
from bizmanager.services.settings_service import settings_service


router = APIRouter()


@router.get("", response_model=SettingsResponse, summary="获取系统设置")
async def get_settings(db: AsyncSession = Depends(get_db)):
    """首次读取时创建默认设置"""
    return await settings_service.get_settings(db)


@router.put("", response_model=SettingsResponse, summary="更新系统设置")
async def update_settings(request: SettingsUpdateRequest, db: AsyncSession = Depends(get_db)):
    return await settings_service.update_settings(db, request)
