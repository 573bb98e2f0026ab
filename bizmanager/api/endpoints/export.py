"""
导出服务API端点

直接返回 xlsx 文件流
"""
from datetime import date
from io import BytesIO
from typing import Optional
from urllib.parse import quote as url_quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.core.database import get_db
from bizmanager.schemas.sales import UnpaidSortField, SortOrder
from bizmanager.services.excel_exporter import get_excel_exporter
from bizmanager.services.report_service import report_service, parse_statuses
from bizmanager.services.sales_service import sales_service


router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _xlsx_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{url_quote(filename)}"},
    )


@router.get("/monthly-sales", summary="导出月度销售")
async def export_monthly_sales(
    month: Optional[str] = Query(None, description="月份 YYYY-MM，默认本月"),
    db: AsyncSession = Depends(get_db),
):
    sales = await sales_service.get_monthly_sales(db, month)
    summary = await sales_service.get_monthly_summary(db, month)
    content = await get_excel_exporter().generate_monthly_sales(sales, summary)
    return _xlsx_response(content, f"monthly_sales_{sales['month']}.xlsx")


@router.get("/clients/{client_id}/report", summary="导出客户报表")
async def export_client_report(
    client_id: int,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    statuses: Optional[str] = Query(None, description="逗号分隔的状态，shipment 表示物流单"),
    db: AsyncSession = Depends(get_db),
):
    report = await report_service.get_client_report(
        db, client_id, start_date, end_date, parse_statuses(statuses)
    )
    content = await get_excel_exporter().generate_client_report(report)
    logger.info(f"客户报表导出完成: client_id={client_id}, size={len(content)}")
    return _xlsx_response(content, f"client_report_{client_id}.xlsx")


@router.get("/unpaid", summary="导出未付款订单")
async def export_unpaid(
    sort_by: UnpaidSortField = Query(UnpaidSortField.DAYS_OVERDUE, alias="sortBy"),
    order: SortOrder = Query(SortOrder.DESC),
    db: AsyncSession = Depends(get_db),
):
    unpaid = await sales_service.get_unpaid_orders(db, sort_by, order)
    content = await get_excel_exporter().generate_unpaid_orders(unpaid)
    return _xlsx_response(content, "unpaid_orders.xlsx")
