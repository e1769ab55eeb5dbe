"""JSON payloads for the orders API, keyed the way the pages consume them."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from orders.models import Customer, Order, OrderItem, OrderStatus, OrderStatusLog
from orders.statuses import resolve_main_status


def _serialize_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize_customer(customer: Customer) -> Dict[str, Any]:
    return {
        "id": customer.pk,
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
        "company": customer.company,
        "createdAt": _serialize_value(customer.created_at),
        "updatedAt": _serialize_value(customer.updated_at),
    }


def serialize_item(item: OrderItem) -> Dict[str, Any]:
    return {
        "id": item.pk,
        "orderId": item.order_id,
        "name": item.name,
        "description": item.description,
        "quantity": item.quantity,
        "unitPrice": _serialize_value(item.unit_price),
        "totalPrice": _serialize_value(item.total_price),
        "createdAt": _serialize_value(item.created_at),
    }


def serialize_status(status: OrderStatus) -> Dict[str, Any]:
    return {
        "id": status.pk,
        "orderId": status.order_id,
        "status": status.status,
        "isActive": status.is_active,
        "notes": status.notes,
        "createdAt": _serialize_value(status.created_at),
        "updatedAt": _serialize_value(status.updated_at),
    }


def serialize_statuses(statuses: Iterable[OrderStatus]) -> List[Dict[str, Any]]:
    return [serialize_status(status) for status in statuses]


def serialize_log_entry(entry: OrderStatusLog) -> Dict[str, Any]:
    return {
        "id": entry.pk,
        "orderId": entry.order_id,
        "status": entry.status,
        "action": entry.action,
        "notes": entry.notes,
        "createdAt": _serialize_value(entry.created_at),
    }


def _active_statuses(order: Order) -> List[OrderStatus]:
    prefetched = getattr(order, "active_statuses", None)
    if prefetched is not None:
        return list(prefetched)
    return list(order.statuses.filter(is_active=True).order_by("-created_at", "-id"))


def serialize_order(order: Order, *, include_logs: bool = False) -> Dict[str, Any]:
    """
    Serialize an order with its customer, items and active statuses.

    ``mainStatus`` is resolved here so list views do not have to repeat the
    priority lookup.
    """

    statuses = _active_statuses(order)
    payload: Dict[str, Any] = {
        "id": order.pk,
        "orderNumber": order.order_number,
        "title": order.title,
        "description": order.description,
        "priority": order.priority,
        "dueDate": _serialize_value(order.due_date),
        "quantity": order.quantity,
        "unitPrice": _serialize_value(order.unit_price),
        "totalPrice": _serialize_value(order.total_price),
        "customerId": order.customer_id,
        "userId": order.created_by_id,
        "createdAt": _serialize_value(order.created_at),
        "updatedAt": _serialize_value(order.updated_at),
        "customer": serialize_customer(order.customer),
        "orderItems": [serialize_item(item) for item in order.items.all()],
        "statuses": serialize_statuses(statuses),
        "mainStatus": resolve_main_status(statuses),
    }
    if include_logs:
        entries = getattr(order, "log_entries", None)
        if entries is None:
            entries = order.status_logs.order_by("-created_at", "-id")
        payload["statusLogs"] = [serialize_log_entry(entry) for entry in entries]
    return payload
