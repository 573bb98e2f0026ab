"""
物流单API端点
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import get_db
from bizmanager.schemas.quote import QuoteResponse
from bizmanager.schemas.tracking import (
    TrackingCreateRequest, TrackingUpdateRequest, TrackingStatusUpdateRequest,
    TrackingPaymentUpdateRequest, BatchShipmentRequest, TrackingResponse, TrackingStatus,
)
from bizmanager.services.tracking_service import tracking_service


router = APIRouter()


@router.get("", response_model=List[TrackingResponse], summary="物流单列表")
async def list_trackings(
    tracking_status: Optional[TrackingStatus] = Query(None, alias="status", description="按状态过滤"),
    client_id: Optional[int] = Query(None, alias="clientId", description="按客户过滤"),
    db: AsyncSession = Depends(get_db),
):
    return await tracking_service.list_trackings(db, status=tracking_status, client_id=client_id)


@router.get("/eligible-quotes", response_model=List[QuoteResponse], summary="可发货的报价单")
async def list_eligible_quotes(
    client_id: Optional[int] = Query(None, alias="clientId", description="按客户过滤"),
    db: AsyncSession = Depends(get_db),
):
    return await tracking_service.list_eligible_quotes(db, client_id)


@router.post("", response_model=TrackingResponse, status_code=status.HTTP_201_CREATED, summary="创建物流单")
async def create_tracking(request: TrackingCreateRequest, db: AsyncSession = Depends(get_db)):
    """总价值 = 申报价值 + 运费；物流单号重复返回400"""
    return await tracking_service.create_tracking(db, request)


@router.post(
    "/batch-shipment",
    response_model=TrackingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="批量发货",
)
async def create_batch_shipment(request: BatchShipmentRequest, db: AsyncSession = Depends(get_db)):
    """
    创建物流单并将报价单标记为 shipped

    - 报价单必须属于同一客户，状态为 ready_to_ship/held/received
    - 未传申报价值时取报价单收费金额合计
    - 任一步失败整体回滚
    """
    return await tracking_service.create_batch_shipment(db, request)


@router.get("/{tracking_id}", response_model=TrackingResponse, summary="物流单详情")
async def get_tracking(tracking_id: int, db: AsyncSession = Depends(get_db)):
    return await tracking_service.get_tracking(db, tracking_id)


@router.put("/{tracking_id}", response_model=TrackingResponse, summary="更新物流单")
async def update_tracking(tracking_id: int, request: TrackingUpdateRequest, db: AsyncSession = Depends(get_db)):
    """报价单集合整体替换，未包含的报价单解除关联"""
    return await tracking_service.update_tracking(db, tracking_id, request)


@router.patch("/{tracking_id}/status", response_model=TrackingResponse, summary="更新物流单状态")
async def update_tracking_status(
    tracking_id: int,
    request: TrackingStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await tracking_service.update_status(db, tracking_id, request)


@router.patch("/{tracking_id}/payment", response_model=TrackingResponse, summary="登记物流单收款")
async def update_tracking_payment(
    tracking_id: int,
    request: TrackingPaymentUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """未指定状态且收款不低于总价值时自动标记为 paid"""
    return await tracking_service.update_payment(db, tracking_id, request)


@router.delete("/{tracking_id}", status_code=status.HTTP_204_NO_CONTENT, summary="删除物流单")
async def delete_tracking(tracking_id: int, db: AsyncSession = Depends(get_db)):
    await tracking_service.delete_tracking(db, tracking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
