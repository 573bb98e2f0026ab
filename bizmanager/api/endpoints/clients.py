"""
客户管理API端点
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import get_db
from bizmanager.schemas.client import (
    ClientCreateRequest, ClientUpdateRequest, ClientResponse, ClientStatus,
)
from bizmanager.schemas.report import ClientDetailResponse, ClientReportResponse
from bizmanager.services.client_service import client_service
from bizmanager.services.report_service import report_service, parse_statuses


router = APIRouter()


@router.get("", response_model=List[ClientResponse], summary="客户列表")
async def list_clients(
    client_status: Optional[ClientStatus] = Query(None, alias="status", description="按状态过滤"),
    search: Optional[str] = Query(None, description="按名称/邮箱/公司模糊搜索"),
    db: AsyncSession = Depends(get_db),
):
    return await client_service.list_clients(
        db, status=client_status.value if client_status else None, search=search
    )


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED, summary="创建客户")
async def create_client(request: ClientCreateRequest, db: AsyncSession = Depends(get_db)):
    """邮箱必须唯一，重复返回400"""
    return await client_service.create_client(db, request)


@router.get("/{client_id}", response_model=ClientDetailResponse, summary="客户详情")
async def get_client(client_id: int, db: AsyncSession = Depends(get_db)):
    """包含客户的报价单（新的在前）和物流单"""
    return await client_service.get_client_detail(db, client_id)


@router.get("/{client_id}/report", response_model=ClientReportResponse, summary="客户对账报表")
async def get_client_report(
    client_id: int,
    start_date: Optional[date] = Query(None, alias="startDate", description="开始日期 YYYY-MM-DD"),
    end_date: Optional[date] = Query(None, alias="endDate", description="结束日期 YYYY-MM-DD（含）"),
    statuses: Optional[str] = Query(None, description="逗号分隔的状态，shipment 表示物流单"),
    db: AsyncSession = Depends(get_db),
):
    return await report_service.get_client_report(
        db, client_id, start_date, end_date, parse_statuses(statuses)
    )


@router.put("/{client_id}", response_model=ClientResponse, summary="更新客户")
async def update_client(client_id: int, request: ClientUpdateRequest, db: AsyncSession = Depends(get_db)):
    return await client_service.update_client(db, client_id, request)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT, summary="删除客户")
async def delete_client(client_id: int, db: AsyncSession = Depends(get_db)):
    """级联删除客户的报价单、动态记录和物流单"""
    await client_service.delete_client(db, client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
