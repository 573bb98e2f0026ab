"""
报价单（订单）API端点
"""
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import get_db
from bizmanager.schemas.quote import (
    QuoteCreateRequest, QuoteUpdateRequest, QuoteResponse, QuoteDetailResponse,
    QuoteStatus, ChargedAmountResponse,
)
from bizmanager.services.quote_service import quote_service


router = APIRouter()


@router.get("", response_model=List[QuoteResponse], summary="报价单列表")
async def list_quotes(
    quote_status: Optional[QuoteStatus] = Query(None, alias="status", description="按状态过滤"),
    client_id: Optional[int] = Query(None, alias="clientId", description="按客户过滤"),
    db: AsyncSession = Depends(get_db),
):
    return await quote_service.list_quotes(db, status=quote_status, client_id=client_id)


@router.get("/missing", response_model=List[QuoteResponse], summary="缺少报价的报价单")
async def list_missing_quotes(
    quote_status: Optional[QuoteStatus] = Query(None, alias="status", description="quote 或 quoted"),
    db: AsyncSession = Depends(get_db),
):
    """状态为 quote/quoted 的报价单，可限定为单一状态"""
    return await quote_service.list_missing_quotes(db, status=quote_status)


@router.get("/charged-amount", response_model=ChargedAmountResponse, summary="按加价比例计算收费金额")
async def calculate_charged_amount(
    cost: Decimal = Query(..., ge=0, description="成本"),
    percentage: Decimal = Query(..., ge=0, description="加价百分比"),
):
    return quote_service.charged_amount(cost, percentage)


@router.post("", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED, summary="创建报价单")
async def create_quote(request: QuoteCreateRequest, db: AsyncSession = Depends(get_db)):
    """默认状态为 purchased，同时生成一条动态记录"""
    return await quote_service.create_quote(db, request)


@router.get("/{quote_id}", response_model=QuoteDetailResponse, summary="报价单详情")
async def get_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    return await quote_service.get_quote_detail(db, quote_id)


@router.put("/{quote_id}", response_model=QuoteResponse, summary="更新报价单")
async def update_quote(quote_id: int, request: QuoteUpdateRequest, db: AsyncSession = Depends(get_db)):
    """状态可任意切换，改为 paid 时已收款等于收费金额"""
    return await quote_service.update_quote(db, quote_id, request)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT, summary="删除报价单")
async def delete_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    await quote_service.delete_quote(db, quote_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
