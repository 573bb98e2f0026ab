"""
应用配置

从环境变量（支持 .env 文件）加载配置项
"""
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    APP_NAME: str = os.getenv("APP_NAME", "business-manager")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "dev")
    DEBUG: bool = os.getenv("DEBUG", "0") == "1"

    # 数据库：生产环境使用 postgresql+asyncpg://...
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./business_manager.db")
    DB_ECHO: bool = os.getenv("DB_ECHO", "0") == "1"

    API_PREFIX: str = os.getenv("API_PREFIX", "/api")
    CORS_ORIGINS: List[str] = _split_csv(os.getenv("CORS_ORIGINS", "http://localhost:5173"))

    # 日志
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "1") == "1"

    # 未付款订单超过该天数视为严重逾期
    OVERDUE_ALERT_DAYS: int = int(os.getenv("OVERDUE_ALERT_DAYS", "30"))


settings = Settings()
