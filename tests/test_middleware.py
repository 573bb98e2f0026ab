"""
错误处理中间件测试
"""
import json

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.requests import Request

from bizmanager.core.middleware import (
    BusinessException, NotFoundException, app_exception_handler, database_exception_handler,
)


def _request(path: str = "/api/tracking") -> Request:
    request = Request({"type": "http", "method": "POST", "path": path, "headers": [], "query_string": b""})
    request.state.request_id = "abc12345"
    return request


class TestErrorResponses:
    """统一错误响应测试"""

    @pytest.mark.asyncio
    async def test_business_exception(self):
        response = await app_exception_handler(
            _request(), BusinessException("物流单号已存在", error_code="DUPLICATE_TRACKING_NUMBER")
        )
        body = json.loads(response.body)

        assert response.status_code == 400
        assert body["success"] is False
        assert body["error"]["code"] == "DUPLICATE_TRACKING_NUMBER"
        assert body["error"]["request_id"] == "abc12345"
        assert body["error"]["path"] == "/api/tracking"

    @pytest.mark.asyncio
    async def test_not_found(self):
        response = await app_exception_handler(_request(), NotFoundException("客户", 7))
        body = json.loads(response.body)

        assert response.status_code == 404
        assert body["error"]["details"] == {"resource": "客户", "resource_id": 7}

    @pytest.mark.asyncio
    async def test_integrity_error_returns_400(self):
        exc = IntegrityError("INSERT INTO trackings ...", {}, Exception("UNIQUE constraint failed"))
        response = await database_exception_handler(_request(), exc)
        body = json.loads(response.body)

        assert response.status_code == 400
        assert body["error"]["code"] == "INTEGRITY_ERROR"
        assert "UNIQUE" in body["error"]["details"]["constraint"]

    @pytest.mark.asyncio
    async def test_other_database_error_returns_500(self):
        exc = OperationalError("SELECT 1", {}, Exception("database is locked"))
        response = await database_exception_handler(_request("/api/clients"), exc)
        body = json.loads(response.body)

        assert response.status_code == 500
        assert body["error"]["code"] == "DATABASE_ERROR"
        assert body["error"]["details"] == {"exception_type": "OperationalError"}
