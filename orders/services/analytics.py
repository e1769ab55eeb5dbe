"""
Read-only figures for the dashboard and the order list.

All helpers take already-fetched orders (models or serialized dicts) and do no
queries of their own.
"""

import calendar
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from django.utils import timezone

from orders.formatting import calculate_percentage, to_decimal
from orders.models import Order
from orders.statuses import (
    CLOSED_STATUSES,
    IN_PROGRESS_STATUSES,
    STATUS_PRIORITY,
    StatusLabel,
    resolve_main_status,
)

ORDER_FILTERS: Dict[str, str] = {
    "all": "All Orders",
    "active": "Active",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "urgent": "Urgent",
}
CALENDAR_DAYS = 42


def _get(order: Any, attr: str, key: str) -> Any:
    if isinstance(order, dict):
        return order.get(key)
    return getattr(order, attr, None)


def main_status_of(order: Any) -> str:
    if isinstance(order, dict):
        return order.get("mainStatus") or resolve_main_status(order.get("statuses") or [])
    statuses = getattr(order, "active_statuses", None)
    if statuses is None:
        statuses = order.statuses.filter(is_active=True)
    return resolve_main_status(statuses)


def priority_of(order: Any) -> Optional[str]:
    return _get(order, "priority", "priority")


def total_price_of(order: Any) -> Decimal:
    return to_decimal(_get(order, "total_price", "totalPrice"))


def due_date_of(order: Any) -> Optional[date]:
    value = _get(order, "due_date", "dueDate")
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        return value.date()
    return value


def matches_filter(order: Any, key: str) -> bool:
    if key == "active":
        return main_status_of(order) not in CLOSED_STATUSES
    if key == "completed":
        return main_status_of(order) == StatusLabel.DELIVERED
    if key == "cancelled":
        return main_status_of(order) == StatusLabel.CANCELLED
    if key == "urgent":
        return priority_of(order) == Order.Priority.URGENT
    return True


def filter_orders(orders: Iterable[Any], key: str) -> List[Any]:
    """Orders matching a list tab; unknown keys behave like ``all``."""
    return [order for order in orders if matches_filter(order, key)]


def filter_counts(orders: Sequence[Any]) -> Dict[str, int]:
    return {key: len(filter_orders(orders, key)) for key in ORDER_FILTERS}


def order_stats(orders: Sequence[Any]) -> Dict[str, Any]:
    main_statuses = [main_status_of(order) for order in orders]
    return {
        "total_orders": len(orders),
        "total_revenue": sum((total_price_of(order) for order in orders), Decimal("0")),
        "completed": sum(1 for status in main_statuses if status == StatusLabel.DELIVERED),
        "in_progress": sum(1 for status in main_statuses if status in IN_PROGRESS_STATUSES),
        "cancelled": sum(1 for status in main_statuses if status == StatusLabel.CANCELLED),
        "urgent": sum(1 for order in orders if priority_of(order) == Order.Priority.URGENT),
    }


def group_orders_by_due_date(orders: Iterable[Any]) -> Dict[date, List[Any]]:
    grouped: Dict[date, List[Any]] = {}
    for order in orders:
        due = due_date_of(order)
        if due is None:
            continue
        grouped.setdefault(due, []).append(order)
    return grouped


def calendar_days(year: int, month: int) -> List[date]:
    """Six full weeks, starting on the Sunday on or before the 1st."""
    first = date(year, month, 1)
    # date.weekday(): Monday=0 .. Sunday=6
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    return [start + timedelta(days=offset) for offset in range(CALENDAR_DAYS)]


def day_load_level(count: int) -> str:
    if count == 0:
        return "none"
    if count <= 2:
        return "low"
    if count <= 4:
        return "medium"
    return "high"


@dataclass
class CalendarDay:
    day: date
    in_month: bool
    is_today: bool
    orders: List[Any] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.orders)

    @property
    def load(self) -> str:
        return day_load_level(self.count)


def build_calendar(
    orders: Iterable[Any], year: int, month: int, today: Optional[date] = None
) -> List[List[CalendarDay]]:
    """Calendar weeks for one month with each day's due orders attached."""
    today = today or timezone.localdate()
    grouped = group_orders_by_due_date(orders)
    days = [
        CalendarDay(
            day=day,
            in_month=day.month == month,
            is_today=day == today,
            orders=grouped.get(day, []),
        )
        for day in calendar_days(year, month)
    ]
    return [days[index:index + 7] for index in range(0, len(days), 7)]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_name(month: int) -> str:
    return calendar.month_name[month]


def _distribution(counter: Counter, order: Sequence[str], total: int) -> List[Dict[str, Any]]:
    rows = []
    for key in order:
        count = counter.get(key, 0)
        if not count:
            continue
        rows.append(
            {"key": key, "count": count, "percentage": calculate_percentage(count, total)}
        )
    for key, count in counter.items():
        if key not in order:
            rows.append(
                {"key": key, "count": count, "percentage": calculate_percentage(count, total)}
            )
    return rows


def status_distribution(orders: Sequence[Any]) -> List[Dict[str, Any]]:
    counter = Counter(main_status_of(order) for order in orders)
    return _distribution(counter, [str(status) for status in STATUS_PRIORITY], len(orders))


def priority_distribution(orders: Sequence[Any]) -> List[Dict[str, Any]]:
    counter = Counter(priority_of(order) for order in orders)
    return _distribution(counter, list(Order.Priority.values), len(orders))
