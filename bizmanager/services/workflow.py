"""
订单/物流状态流转与收款对账规则

纯函数，不访问数据库，供各服务调用
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from bizmanager.schemas.quote import QuoteStatus, ActivityStatus
from bizmanager.schemas.tracking import TrackingStatus


CENT = Decimal("0.01")

# ===== 各查询/操作接受的状态子集 =====

# 计入营收/利润统计
REVENUE_STATUSES = (
    QuoteStatus.PURCHASE,
    QuoteStatus.PURCHASED,
    QuoteStatus.RECEIVED,
    QuoteStatus.PAID,
)

# 仪表盘“待处理”报价，以及“缺少报价”列表
PENDING_STATUSES = (QuoteStatus.QUOTE, QuoteStatus.QUOTED)
MISSING_QUOTE_STATUSES = PENDING_STATUSES

# 可以合并进物流单的报价单状态
SHIPMENT_ELIGIBLE_STATUSES = (
    QuoteStatus.PURCHASED,
    QuoteStatus.RECEIVED,
    QuoteStatus.READY_TO_SHIP,
    QuoteStatus.HELD,
)

# 批量发货候选池
BATCH_POOL_STATUSES = (
    QuoteStatus.READY_TO_SHIP,
    QuoteStatus.HELD,
    QuoteStatus.RECEIVED,
)

# 状态分布图只统计这6种状态
DISTRIBUTION_STATUSES = (
    QuoteStatus.QUOTE,
    QuoteStatus.QUOTED,
    QuoteStatus.PURCHASE,
    QuoteStatus.PURCHASED,
    QuoteStatus.RECEIVED,
    QuoteStatus.PAID,
)

STATUS_LABELS = {
    QuoteStatus.QUOTE: "Quote Needed",
    QuoteStatus.QUOTED: "Quoted",
    QuoteStatus.PURCHASE: "Purchase Needed",
    QuoteStatus.PURCHASED: "Purchased",
    QuoteStatus.RECEIVED: "Received",
    QuoteStatus.READY_TO_SHIP: "Ready to Ship",
    QuoteStatus.HELD: "Held",
    QuoteStatus.SHIPPED: "Shipped",
    QuoteStatus.PAID: "Paid",
}

# 旧版本前端使用的物流伪状态，未付款统计中排除
LEGACY_SHIPMENT_STATUS = "shipment"

MARKUP_PERCENTAGE_OPTIONS = [10, 20, 30, 35, 40]


def status_values(statuses) -> list:
    return [s.value for s in statuses]


def to_decimal(value) -> Decimal:
    """数据库聚合结果可能是 None/float/Decimal，统一转成 Decimal"""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_charged_amount(cost, percentage) -> Decimal:
    """按加价百分比计算收费金额，四舍五入到分"""
    cost = to_decimal(cost)
    amount = cost + cost * to_decimal(percentage) / Decimal("100")
    return money(amount)


def calculate_total_value(declared_value, shipping_cost) -> Decimal:
    """物流单总价值 = 申报价值 + 运费"""
    return to_decimal(declared_value) + to_decimal(shipping_cost)


def settle_quote_payment(status: str, charged_amount, amount_paid) -> Decimal:
    """报价单标记为已付款时收款金额等于收费金额"""
    if status == QuoteStatus.PAID.value:
        return to_decimal(charged_amount)
    return to_decimal(amount_paid)


def creation_activity_type(status: str) -> str:
    return "New Order" if status == QuoteStatus.PURCHASED.value else "New Quote"


def status_change_activity_type(status: str) -> str:
    if status == QuoteStatus.PAID.value:
        return "Payment Received"
    return f"Status changed to {status}"


def sales_update_activity_type(status: Optional[str], amount_paid_given: bool) -> str:
    if amount_paid_given:
        return "Partial Payment"
    return f"Order {status}"


def activity_status_for(quote_status: str) -> str:
    if quote_status == QuoteStatus.PAID.value:
        return ActivityStatus.COMPLETED.value
    return ActivityStatus.PENDING.value


def tracking_status_settlement(status: str, total_value, amount_paid) -> Decimal:
    """物流单状态改为已付款时收款金额等于总价值"""
    if status == TrackingStatus.PAID.value:
        return to_decimal(total_value)
    return min(to_decimal(amount_paid), to_decimal(total_value))


def resolve_tracking_payment(
    amount_paid,
    total_value,
    explicit_status: Optional[str],
    current_status: str,
) -> Tuple[Decimal, str]:
    """
    计算物流单收款后的 (已收金额, 状态)

    - 未指定状态时，已收金额 >= 总价值则自动变为 paid
    - 最终状态为 paid 时已收金额等于总价值，多付部分不记录
    - 已收金额不会超过总价值
    """
    amount = to_decimal(amount_paid)
    total = to_decimal(total_value)

    status = explicit_status
    if not status and amount >= total:
        status = TrackingStatus.PAID.value

    if status == TrackingStatus.PAID.value:
        amount = total

    return min(amount, total), status or current_status


def is_shipment_eligible(status: str) -> bool:
    return status in status_values(SHIPMENT_ELIGIBLE_STATUSES)
