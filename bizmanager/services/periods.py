"""
自然月区间计算（UTC）
"""
import math
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple

from bizmanager.core.middleware import ValidationException


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite 返回的时间不带时区，按UTC处理"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_start(value: datetime) -> datetime:
    return datetime(value.year, value.month, 1, tzinfo=timezone.utc)


def shift_months(value: datetime, months: int) -> datetime:
    """返回相对 value 偏移 months 个月的那个月的第一天"""
    index = value.year * 12 + (value.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=timezone.utc)


def month_range(value: datetime) -> Tuple[datetime, datetime]:
    """返回 [月初, 下月初) 半开区间"""
    start = month_start(value)
    return start, shift_months(start, 1)


def last_n_months(n: int, now: Optional[datetime] = None) -> List[datetime]:
    """最近 n 个自然月（含本月）的月初，按时间升序"""
    now = now or utcnow()
    return [shift_months(now, -(n - 1 - i)) for i in range(n)]


def month_label(value: datetime) -> str:
    return value.strftime("%b %Y")


def parse_month(month: Optional[str]) -> datetime:
    """解析 YYYY-MM 或 YYYY-MM-DD，缺省为本月"""
    if not month:
        return month_start(utcnow())
    text = month.strip()
    for fmt in ("%Y-%m", "%Y-%m-%d"):
        try:
            parsed = datetime.strptime(text, fmt)
            return datetime(parsed.year, parsed.month, 1, tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ValidationException(f"月份格式无效: {month}，应为 YYYY-MM", details={"month": month})


def day_bounds(start: Optional[date], end: Optional[date]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """日期区间转换为 [start 00:00, end+1 00:00)"""
    start_dt = datetime(start.year, start.month, start.day, tzinfo=timezone.utc) if start else None
    end_dt = None
    if end:
        end_dt = datetime.fromordinal(end.toordinal() + 1).replace(tzinfo=timezone.utc)
    if start_dt and end_dt and start_dt >= end_dt:
        raise ValidationException("开始日期不能晚于结束日期")
    return start_dt, end_dt


def days_since(created_at: Optional[datetime], now: Optional[datetime] = None) -> int:
    """距创建时间的天数，不足一天按一天计"""
    if created_at is None:
        return 0
    now = now or utcnow()
    delta = abs((now - as_utc(created_at)).total_seconds())
    return math.ceil(delta / 86400)
