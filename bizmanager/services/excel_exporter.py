"""
Excel导出服务

使用 openpyxl 生成月度销售、客户报表和未付款订单表格，返回 xlsx 字节流
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from io import BytesIO
from typing import Any, Iterable, List, Optional

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet


MONEY_FORMAT = '#,##0.00'
DATE_FORMAT = 'yyyy-mm-dd'


def _value(obj: Any, name: str, default=None):
    """兼容 ORM 对象和字典"""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _client_name(obj: Any) -> str:
    client = _value(obj, "client")
    if client is None:
        return ""
    return _value(client, "name", "") or ""


class ExcelExporter:
    """Excel导出器"""

    def __init__(self):
        self.title_font = Font(name="Arial", size=14, bold=True)
        self.header_font = Font(name="Arial", size=11, bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
        self.total_font = Font(name="Arial", size=11, bold=True)
        thin = Side(style="thin", color="BFBFBF")
        self.border = Border(left=thin, right=thin, top=thin, bottom=thin)

    # ===== 通用写入 =====

    def _write_title(self, ws: Worksheet, title: str, width: int) -> int:
        ws.cell(row=1, column=1, value=title).font = self.title_font
        if width > 1:
            ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
        return 3

    def _write_table(
        self,
        ws: Worksheet,
        start_row: int,
        headers: List[str],
        rows: Iterable[List[Any]],
        money_columns: Iterable[int] = (),
    ) -> int:
        """写入表头和数据行，返回下一空行行号"""
        money_columns = set(money_columns)
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=start_row, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.border = self.border
            cell.alignment = Alignment(horizontal="center", vertical="center")

        row_idx = start_row + 1
        for row in rows:
            for col, value in enumerate(row, 1):
                cell = ws.cell(row=row_idx, column=col, value=self._cell_value(value))
                cell.border = self.border
                if col in money_columns:
                    cell.number_format = MONEY_FORMAT
                elif isinstance(value, (date, datetime)):
                    cell.number_format = DATE_FORMAT
            row_idx += 1
        return row_idx

    def _write_key_values(self, ws: Worksheet, start_row: int, pairs: List[tuple]) -> int:
        for label, value, is_money in pairs:
            ws.cell(row=start_row, column=1, value=label).font = self.total_font
            cell = ws.cell(row=start_row, column=2, value=self._cell_value(value))
            if is_money:
                cell.number_format = MONEY_FORMAT
            start_row += 1
        return start_row

    @staticmethod
    def _cell_value(value):
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, datetime):
            # Excel 不支持带时区的时间
            return value.replace(tzinfo=None)
        if isinstance(value, Enum):
            return value.value
        return value

    @staticmethod
    def _autosize(ws: Worksheet, min_width: int = 10, max_width: int = 50):
        widths = {}
        for row in ws.iter_rows():
            for cell in row:
                if cell.value is None:
                    continue
                length = len(str(cell.value))
                widths[cell.column] = max(widths.get(cell.column, 0), length)
        for col, length in widths.items():
            ws.column_dimensions[get_column_letter(col)].width = max(min_width, min(length + 2, max_width))

    @staticmethod
    def _to_bytes(wb: Workbook) -> bytes:
        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    # ===== 行格式 =====

    @staticmethod
    def _order_row(quote) -> List[Any]:
        return [
            _value(quote, "id"),
            _value(quote, "created_at"),
            _client_name(quote),
            _value(quote, "product"),
            _value(quote, "platform"),
            _value(quote, "status"),
            _value(quote, "cost"),
            _value(quote, "charged_amount"),
            _value(quote, "amount_paid"),
        ]

    @staticmethod
    def _tracking_row(tracking) -> List[Any]:
        return [
            _value(tracking, "tracking_number"),
            _value(tracking, "created_at"),
            _value(tracking, "status"),
            _value(tracking, "declared_value"),
            _value(tracking, "shipping_cost"),
            _value(tracking, "total_value"),
            _value(tracking, "amount_paid"),
        ]

    ORDER_HEADERS = ["订单号", "日期", "客户", "产品", "平台", "状态", "成本", "收费金额", "已收款"]

    # ===== 导出 =====

    async def generate_monthly_sales(self, sales: dict, summary: dict) -> bytes:
        """月度销售：订单、物流单和汇总三个工作表"""
        month = sales.get("month", "")
        wb = Workbook()

        ws = wb.active
        ws.title = "订单"
        row = self._write_title(ws, f"月度销售 {month}", len(self.ORDER_HEADERS))
        self._write_table(
            ws, row, self.ORDER_HEADERS,
            (self._order_row(q) for q in sales.get("orders", [])),
            money_columns=(7, 8, 9),
        )
        self._autosize(ws)

        ws = wb.create_sheet("物流单")
        headers = ["订单号", "物流单号", "日期", "客户", "产品", "状态", "运费", "总价值", "已收款"]
        rows = (
            [
                s["order_number"], s["tracking_number"], s["created_at"], _client_name(s),
                s["product"], s["status"], s["cost"], s["charged_amount"], s["amount_paid"],
            ]
            for s in sales.get("shipments", [])
        )
        self._write_table(ws, 1, headers, rows, money_columns=(7, 8, 9))
        self._autosize(ws)

        ws = wb.create_sheet("汇总")
        row = self._write_key_values(ws, 1, [
            ("月份", summary.get("month", month), False),
            ("订单数", summary.get("total_orders", 0), False),
            ("总成本", summary.get("total_cost", 0), True),
            ("总营收", summary.get("total_revenue", 0), True),
            ("利润", summary.get("profit", 0), True),
        ])
        self._write_table(
            ws, row + 1, ["状态", "数量"],
            ([b["status"], b["count"]] for b in summary.get("status_breakdown", [])),
        )
        self._autosize(ws)

        logger.info(f"月度销售导出完成: month={month}, orders={len(sales.get('orders', []))}")
        return self._to_bytes(wb)

    async def generate_client_report(self, report: dict) -> bytes:
        """客户对账报表"""
        client = report["client"]
        metrics = report["metrics"]
        wb = Workbook()

        ws = wb.active
        ws.title = "客户报表"
        row = self._write_title(ws, f"客户报表 - {_value(client, 'name')}", 4)
        period = " ~ ".join(
            str(d) if d else "-" for d in (report.get("start_date"), report.get("end_date"))
        )
        row = self._write_key_values(ws, row, [
            ("客户", _value(client, "name"), False),
            ("公司", _value(client, "company") or "-", False),
            ("邮箱", _value(client, "email"), False),
            ("期间", period, False),
            ("报价单数", metrics["total_quotes"], False),
            ("物流单数", metrics["total_shipments"], False),
            ("收费合计", metrics["total_charged"], True),
            ("已收款合计", metrics["total_paid"], True),
            ("未收款合计", metrics["total_unpaid"], True),
            ("物流总价值", metrics["total_shipping_value"], True),
            ("申报价值合计", metrics["total_declared_value"], True),
        ])
        self._write_table(
            ws, row + 1, ["状态", "数量"],
            ([b["status"], b["count"]] for b in metrics.get("status_breakdown", [])),
        )
        self._autosize(ws)

        ws = wb.create_sheet("报价单")
        self._write_table(
            ws, 1, self.ORDER_HEADERS,
            (self._order_row(q) for q in report.get("quotes", [])),
            money_columns=(7, 8, 9),
        )
        self._autosize(ws)

        ws = wb.create_sheet("物流单")
        self._write_table(
            ws, 1, ["物流单号", "日期", "状态", "申报价值", "运费", "总价值", "已收款"],
            (self._tracking_row(t) for t in report.get("shipments", [])),
            money_columns=(4, 5, 6, 7),
        )
        self._autosize(ws)

        return self._to_bytes(wb)

    async def generate_unpaid_orders(self, unpaid: dict, generated_at: Optional[datetime] = None) -> bytes:
        """未付款订单清单"""
        items = unpaid.get("items", [])
        metrics = unpaid.get("metrics", {})
        generated_at = generated_at or datetime.now()

        wb = Workbook()
        ws = wb.active
        ws.title = "未付款订单"
        headers = [
            "类型", "订单号", "客户", "产品", "平台", "状态", "付款方式",
            "收费金额", "已收款", "未收款", "逾期天数", "创建日期",
        ]
        row = self._write_title(ws, f"未付款订单 ({generated_at:%Y-%m-%d})", len(headers))
        rows = (
            [
                self._cell_value(i["item_type"]), i["order_number"], _client_name(i), i["product"],
                i["platform"], i["status"], i["payment_method"], i["charged_amount"],
                i["amount_paid"], i["remaining_amount"], i["days_overdue"], i["created_at"],
            ]
            for i in items
        )
        row = self._write_table(ws, row, headers, rows, money_columns=(8, 9, 10))

        ws.cell(row=row, column=1, value="合计").font = self.total_font
        for col, key in ((8, "total_amount_due"), (9, "total_partial_payments"), (10, "total_unpaid")):
            cell = ws.cell(row=row, column=col, value=self._cell_value(metrics.get(key, 0)))
            cell.font = self.total_font
            cell.number_format = MONEY_FORMAT
        self._autosize(ws)

        return self._to_bytes(wb)


_exporter: Optional[ExcelExporter] = None


def get_excel_exporter() -> ExcelExporter:
    """获取导出器单例"""
    global _exporter
    if _exporter is None:
        _exporter = ExcelExporter()
    return _exporter
