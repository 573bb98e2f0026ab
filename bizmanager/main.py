"""
业务管理后台 FastAPI 应用入口

启动: uvicorn bizmanager.main:app --reload
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from bizmanager.api.router import api_router
from bizmanager.core.config import settings
from bizmanager.core.database import init_db, close_db
from bizmanager.core.middleware import setup_error_handling


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} 启动中 | 环境: {settings.ENVIRONMENT}")
    await init_db()
    yield
    await close_db()
    logger.info(f"{settings.APP_NAME} 已停止")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="客户、报价单、物流单与收款对账管理接口",
        version="0.1.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["系统"])
    async def health_check():
        return {"status": "ok", "app": settings.APP_NAME}

    return app


app = create_app()
