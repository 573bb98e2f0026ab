"""
状态流转与对账规则测试
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from bizmanager.core.middleware import ValidationException
from bizmanager.schemas.quote import QuoteStatus
from bizmanager.services import periods, workflow


class TestChargedAmount:
    """加价计算测试"""

    def test_thirty_percent_markup(self):
        assert workflow.calculate_charged_amount(1000, 30) == Decimal("1300.00")

    def test_rounds_half_up_to_cents(self):
        # 10.05 * 1.35 = 13.5675
        assert workflow.calculate_charged_amount(Decimal("10.05"), 35) == Decimal("13.57")

    def test_zero_percentage(self):
        assert workflow.calculate_charged_amount("99.99", 0) == Decimal("99.99")

    def test_standard_options(self):
        assert workflow.MARKUP_PERCENTAGE_OPTIONS == [10, 20, 30, 35, 40]


class TestQuoteRules:
    """报价单规则测试"""

    def test_paid_settles_amount(self):
        assert workflow.settle_quote_payment("paid", Decimal("150"), Decimal("20")) == Decimal("150")

    def test_other_status_keeps_amount(self):
        assert workflow.settle_quote_payment("received", Decimal("150"), Decimal("20")) == Decimal("20")

    def test_creation_activity_type(self):
        assert workflow.creation_activity_type("purchased") == "New Order"
        assert workflow.creation_activity_type("quote") == "New Quote"
        assert workflow.creation_activity_type("paid") == "New Quote"

    def test_status_change_activity_type(self):
        assert workflow.status_change_activity_type("paid") == "Payment Received"
        assert workflow.status_change_activity_type("held") == "Status changed to held"

    def test_sales_update_activity_type(self):
        assert workflow.sales_update_activity_type("received", True) == "Partial Payment"
        assert workflow.sales_update_activity_type("received", False) == "Order received"

    def test_activity_status(self):
        assert workflow.activity_status_for("paid") == "completed"
        assert workflow.activity_status_for("quoted") == "pending"

    def test_status_subsets(self):
        assert workflow.status_values(workflow.REVENUE_STATUSES) == ["purchase", "purchased", "received", "paid"]
        assert workflow.status_values(workflow.MISSING_QUOTE_STATUSES) == ["quote", "quoted"]
        assert set(workflow.status_values(workflow.BATCH_POOL_STATUSES)) <= set(
            workflow.status_values(workflow.SHIPMENT_ELIGIBLE_STATUSES)
        )
        assert len(workflow.DISTRIBUTION_STATUSES) == 6
        assert QuoteStatus.SHIPPED not in workflow.DISTRIBUTION_STATUSES

    def test_shipment_eligibility(self):
        assert workflow.is_shipment_eligible("held")
        assert workflow.is_shipment_eligible("purchased")
        assert not workflow.is_shipment_eligible("quote")
        assert not workflow.is_shipment_eligible("shipped")


class TestTrackingRules:
    """物流单收款规则测试"""

    def test_total_value(self):
        assert workflow.calculate_total_value(Decimal("300"), Decimal("20")) == Decimal("320")

    def test_payment_reaching_total_marks_paid(self):
        amount, status = workflow.resolve_tracking_payment(Decimal("320"), Decimal("320"), None, "in_transit")
        assert amount == Decimal("320")
        assert status == "paid"

    def test_overpayment_is_clamped(self):
        amount, status = workflow.resolve_tracking_payment(Decimal("500"), Decimal("320"), None, "pending")
        assert amount == Decimal("320")
        assert status == "paid"

    def test_partial_payment_keeps_status(self):
        amount, status = workflow.resolve_tracking_payment(Decimal("100"), Decimal("320"), None, "in_transit")
        assert amount == Decimal("100")
        assert status == "in_transit"

    def test_explicit_paid_settles_total(self):
        amount, status = workflow.resolve_tracking_payment(Decimal("10"), Decimal("320"), "paid", "pending")
        assert amount == Decimal("320")
        assert status == "paid"

    def test_explicit_status_with_full_amount_is_respected(self):
        amount, status = workflow.resolve_tracking_payment(Decimal("400"), Decimal("320"), "delivered", "pending")
        assert amount == Decimal("320")
        assert status == "delivered"

    def test_status_settlement(self):
        assert workflow.tracking_status_settlement("paid", Decimal("320"), 0) == Decimal("320")
        assert workflow.tracking_status_settlement("delivered", Decimal("320"), Decimal("50")) == Decimal("50")


class TestPeriods:
    """自然月区间测试"""

    def test_month_range_is_half_open(self):
        start, end = periods.month_range(datetime(2025, 3, 15, tzinfo=timezone.utc))
        assert start == datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert end == datetime(2025, 4, 1, tzinfo=timezone.utc)

    def test_shift_months_across_year(self):
        assert periods.shift_months(datetime(2025, 1, 31, tzinfo=timezone.utc), -1) == datetime(
            2024, 12, 1, tzinfo=timezone.utc
        )
        assert periods.shift_months(datetime(2025, 12, 5, tzinfo=timezone.utc), 1) == datetime(
            2026, 1, 1, tzinfo=timezone.utc
        )

    def test_last_n_months(self):
        months = periods.last_n_months(12, datetime(2025, 3, 10, tzinfo=timezone.utc))
        assert len(months) == 12
        assert months[0] == datetime(2024, 4, 1, tzinfo=timezone.utc)
        assert months[-1] == datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert periods.month_label(months[-1]) == "Mar 2025"

    def test_parse_month(self):
        assert periods.parse_month("2025-02") == datetime(2025, 2, 1, tzinfo=timezone.utc)
        assert periods.parse_month("2025-02-17") == datetime(2025, 2, 1, tzinfo=timezone.utc)

    def test_parse_month_invalid(self):
        with pytest.raises(ValidationException):
            periods.parse_month("February")

    def test_days_since_rounds_up(self):
        now = datetime(2025, 3, 10, 12, tzinfo=timezone.utc)
        assert periods.days_since(now - timedelta(days=3, hours=1), now) == 4
        assert periods.days_since(now - timedelta(days=3), now) == 3

    def test_days_since_naive_treated_as_utc(self):
        now = datetime(2025, 3, 10, 12, tzinfo=timezone.utc)
        assert periods.days_since(datetime(2025, 3, 8, 12), now) == 2
