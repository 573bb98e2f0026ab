"""
API路由汇总
"""
from fastapi import APIRouter

from bizmanager.api.endpoints import clients, dashboard, export, quotes, sales, settings, tracking


api_router = APIRouter()

api_router.include_router(clients.router, prefix="/clients", tags=["客户"])
api_router.include_router(quotes.router, prefix="/quotes", tags=["报价单"])
api_router.include_router(sales.router, prefix="/sales", tags=["销售"])
api_router.include_router(tracking.router, prefix="/tracking", tags=["物流单"])
api_router.include_router(settings.router, prefix="/settings", tags=["系统设置"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["仪表盘"])
api_router.include_router(export.router, prefix="/export", tags=["导出"])
