"""
Excel导出服务测试
"""
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from io import BytesIO

from openpyxl import load_workbook

from bizmanager.schemas.sales import UnpaidItemType
from bizmanager.services.excel_exporter import ExcelExporter, get_excel_exporter


class MockClient:
    """模拟客户对象"""
    def __init__(self, **kwargs):
        self.id = kwargs.get("id", 1)
        self.name = kwargs.get("name", "Acme Corp")
        self.email = kwargs.get("email", "acme@example.com")
        self.company = kwargs.get("company", "Acme Inc")


class MockQuote:
    """模拟报价单对象"""
    def __init__(self, **kwargs):
        self.id = kwargs.get("id", 1)
        self.client = kwargs.get("client", MockClient())
        self.product = kwargs.get("product", "Camera")
        self.platform = kwargs.get("platform", "Amazon")
        self.status = kwargs.get("status", "purchased")
        self.cost = kwargs.get("cost", Decimal("100.00"))
        self.charged_amount = kwargs.get("charged_amount", Decimal("130.00"))
        self.amount_paid = kwargs.get("amount_paid", Decimal("0.00"))
        self.created_at = kwargs.get("created_at", datetime(2025, 3, 3, 12, tzinfo=timezone.utc))


class MockTracking:
    """模拟物流单对象"""
    def __init__(self, **kwargs):
        self.tracking_number = kwargs.get("tracking_number", "1Z999")
        self.status = kwargs.get("status", "pending")
        self.declared_value = kwargs.get("declared_value", Decimal("300.00"))
        self.shipping_cost = kwargs.get("shipping_cost", Decimal("20.00"))
        self.total_value = kwargs.get("total_value", Decimal("320.00"))
        self.amount_paid = kwargs.get("amount_paid", Decimal("0.00"))
        self.created_at = kwargs.get("created_at", datetime(2025, 3, 5, 8))


def _column_values(ws, column: int):
    return [row[column - 1] for row in ws.iter_rows(values_only=True)]


class TestExcelExporter:
    """Excel导出服务测试"""

    def setup_method(self):
        self.exporter = ExcelExporter()

    @pytest.mark.asyncio
    async def test_monthly_sales(self):
        """月度销售包含订单、物流单和汇总三个工作表"""
        sales = {
            "month": "2025-03",
            "orders": [MockQuote(id=7), MockQuote(id=8, product="Lens")],
            "shipments": [{
                "order_number": "S-1", "tracking_number": "1Z999", "created_at": None,
                "client": MockClient(), "product": "Camera, Lens", "status": "pending",
                "cost": Decimal("20"), "charged_amount": Decimal("320"), "amount_paid": Decimal("0"),
            }],
        }
        summary = {
            "month": "2025-03", "total_orders": 2, "total_cost": Decimal("200"),
            "total_revenue": Decimal("260"), "profit": Decimal("60"),
            "status_breakdown": [{"status": "purchased", "count": 2}],
        }

        excel_bytes = await self.exporter.generate_monthly_sales(sales, summary)

        wb = load_workbook(BytesIO(excel_bytes))
        assert wb.sheetnames == ["订单", "物流单", "汇总"]

        orders = wb["订单"]
        assert "2025-03" in str(orders["A1"].value)
        assert orders["A3"].value == "订单号"
        assert orders["A4"].value == 7
        assert orders["D5"].value == "Lens"
        assert orders["H4"].value == 130.0

        shipments = wb["物流单"]
        assert shipments["A2"].value == "S-1"
        assert shipments["E2"].value == "Camera, Lens"

        totals = wb["汇总"]
        assert totals["B5"].value == 60.0
        assert "purchased" in _column_values(totals, 1)

    @pytest.mark.asyncio
    async def test_client_report(self):
        report = {
            "client": MockClient(),
            "start_date": date(2025, 3, 1),
            "end_date": date(2025, 3, 31),
            "quotes": [MockQuote()],
            "shipments": [MockTracking()],
            "metrics": {
                "total_quotes": 1, "total_shipments": 1,
                "total_charged": Decimal("130"), "total_paid": Decimal("0"),
                "total_unpaid": Decimal("450"), "total_shipping_value": Decimal("320"),
                "total_declared_value": Decimal("300"),
                "status_breakdown": [{"status": "purchased", "count": 1}, {"status": "shipment", "count": 1}],
            },
        }

        excel_bytes = await self.exporter.generate_client_report(report)

        wb = load_workbook(BytesIO(excel_bytes))
        assert wb.sheetnames == ["客户报表", "报价单", "物流单"]
        ws = wb["客户报表"]
        assert "Acme Corp" in str(ws["A1"].value)
        assert "2025-03-01 ~ 2025-03-31" in _column_values(ws, 2)
        assert 450.0 in _column_values(ws, 2)
        assert wb["物流单"]["A2"].value == "1Z999"

    @pytest.mark.asyncio
    async def test_unpaid_orders(self):
        item = {
            "item_type": UnpaidItemType.SHIPMENT, "order_number": "S-3", "client": None,
            "product": "1Z999", "platform": "Shipment", "status": "delivered",
            "payment_method": "Shipping", "charged_amount": Decimal("320"),
            "amount_paid": Decimal("20"), "remaining_amount": Decimal("300"),
            "days_overdue": 12, "created_at": datetime(2025, 3, 1, tzinfo=timezone.utc),
        }
        unpaid = {
            "items": [item],
            "metrics": {"total_amount_due": Decimal("320"), "total_partial_payments": Decimal("20"),
                        "total_unpaid": Decimal("300")},
        }

        excel_bytes = await self.exporter.generate_unpaid_orders(unpaid, generated_at=datetime(2025, 3, 13))

        ws = load_workbook(BytesIO(excel_bytes)).active
        assert ws.title == "未付款订单"
        assert "2025-03-13" in str(ws["A1"].value)
        assert ws["A4"].value == "shipment"
        assert ws["K4"].value == 12
        assert ws["A5"].value == "合计"
        assert ws["J5"].value == 300.0

    @pytest.mark.asyncio
    async def test_empty_data(self):
        """没有数据时也能生成文件"""
        excel_bytes = await self.exporter.generate_unpaid_orders({"items": [], "metrics": {}})
        assert len(excel_bytes) > 0
        ws = load_workbook(BytesIO(excel_bytes)).active
        assert ws["A4"].value == "合计"

    def test_get_excel_exporter_singleton(self):
        """测试获取导出器单例"""
        assert get_excel_exporter() is get_excel_exporter()
