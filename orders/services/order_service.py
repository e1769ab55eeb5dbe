"""
Mutations and reads for the Order aggregate.

Every write path runs inside one ``transaction.atomic()`` block so order
fields, line items, status rows and status log entries either all land or
none do.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F, Prefetch, QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from orders.formatting import CENTS, format_order_number
from orders.models import (
    Customer,
    Order,
    OrderItem,
    OrderNumberSequence,
    OrderStatus,
    OrderStatusLog,
)
from orders.statuses import StatusLabel, is_known_status

logger = logging.getLogger(__name__)


class OrderNotFound(LookupError):
    """Raised when the referenced order does not exist."""


class OrderValidationError(ValueError):
    """Raised when client supplied order data cannot be applied."""


DEFAULT_CUSTOMER_EMAIL = "unknown@example.com"
DEFAULT_CUSTOMER_NAME = "Unknown Customer"
DEFAULT_TITLE = "New Print Job"
DEFAULT_ITEM_NAME = "Custom Print Job"
DEFAULT_INITIAL_STATUSES = (StatusLabel.ENQUIRY.value,)

SYSTEM_USERNAME = "printtrack-admin"
SYSTEM_EMAIL = "admin@printtrack.com"

ORDER_SEQUENCE_NAME = "order"
UNIT_PRICE_PLACES = Decimal("0.0001")

# Column limits: PositiveIntegerField is safe up to 2**31 - 1 on every backend,
# and the price columns keep 10 integer digits (14,4 and 12,2).
MAX_QUANTITY = 2**31 - 1
MONEY_LIMIT = Decimal("1e10")
CUSTOMER_KEYS = ("name", "email", "phone", "company")


@dataclass(frozen=True)
class LineItem:
    name: str
    description: str
    quantity: int
    unit_price: Decimal

    @property
    def total_price(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    quantity: int
    unit_price: Decimal
    total_price: Decimal


def _coerce_quantity(value: Any) -> int:
    if value in (None, "", 0, "0"):
        return 1
    if isinstance(value, bool):
        raise OrderValidationError("Product quantity must be a whole number.")
    try:
        quantity = int(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise OrderValidationError("Product quantity must be a whole number.") from exc
    if quantity != Decimal(str(value)):
        raise OrderValidationError("Product quantity must be a whole number.")
    if quantity < 0:
        raise OrderValidationError("Product quantity cannot be negative.")
    if quantity > MAX_QUANTITY:
        raise OrderValidationError(f"Product quantity cannot exceed {MAX_QUANTITY}.")
    return quantity or 1


def _coerce_price(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    if isinstance(value, bool):
        raise OrderValidationError("Product price must be a number.")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise OrderValidationError("Product price must be a number.") from exc
    if not price.is_finite():
        raise OrderValidationError("Product price must be a number.")
    if price < 0:
        raise OrderValidationError("Product price cannot be negative.")
    if price >= MONEY_LIMIT:
        raise OrderValidationError("Product price is too large.")
    return price.quantize(UNIT_PRICE_PLACES, rounding=ROUND_HALF_UP)


def build_line_items(products: Optional[Iterable[Any]]) -> List[LineItem]:
    """
    Normalize raw product payloads into line items, filling the same defaults
    the order forms rely on. ``unitPrice`` is accepted as an alias of ``price``.
    """

    if products is None:
        return []
    if isinstance(products, (str, bytes, Mapping)):
        raise OrderValidationError("`products` must be a list.")

    items: List[LineItem] = []
    for product in products:
        if not isinstance(product, Mapping):
            raise OrderValidationError("Each product must be an object.")
        raw_price = product.get("price")
        if raw_price is None:
            raw_price = product.get("unitPrice")
        items.append(
            LineItem(
                name=str(product.get("name") or DEFAULT_ITEM_NAME),
                description=str(product.get("description") or ""),
                quantity=_coerce_quantity(product.get("quantity")),
                unit_price=_coerce_price(raw_price),
            )
        )
    return items


def compute_totals(items: Sequence[LineItem]) -> OrderTotals:
    """Derive quantity, unit price and total price of an order from its items."""
    quantity = sum(item.quantity for item in items) or 1
    total_price = sum((item.total_price for item in items), Decimal("0.00"))
    if quantity > MAX_QUANTITY:
        raise OrderValidationError(f"Order quantity cannot exceed {MAX_QUANTITY}.")
    if total_price >= MONEY_LIMIT:
        raise OrderValidationError("Order total is too large.")
    unit_price = (total_price / quantity).quantize(UNIT_PRICE_PLACES, rounding=ROUND_HALF_UP)
    return OrderTotals(quantity=quantity, unit_price=unit_price, total_price=total_price)


def normalize_status_labels(labels: Optional[Iterable[Any]], *, field: str = "statuses") -> List[str]:
    if labels is None:
        return []
    if isinstance(labels, (str, bytes, Mapping)):
        raise OrderValidationError(f"`{field}` must be a list of status names.")
    normalized: List[str] = []
    for label in labels:
        if not is_known_status(label):
            raise OrderValidationError(f"Unknown status {label!r} in `{field}`.")
        if label not in normalized:
            normalized.append(str(label))
    return normalized


def normalize_priority(value: Any) -> str:
    priority = str(value).strip().upper()
    if priority not in Order.Priority.values:
        raise OrderValidationError(
            f"`priority` must be one of {', '.join(Order.Priority.values)}."
        )
    return priority


def parse_due_date(value: Any) -> Optional[datetime]:
    """Accept ``None``, a date/datetime or an ISO 8601 string; return an aware datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            parsed = parse_datetime(value.strip())
            if parsed is None:
                day = parse_date(value.strip())
                parsed = datetime.combine(day, time.min) if day else None
        except ValueError as exc:
            raise OrderValidationError("`dueDate` is not a valid date.") from exc
        if parsed is None:
            raise OrderValidationError("`dueDate` is not a valid date.")
    else:
        raise OrderValidationError("`dueDate` is not a valid date.")

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def allocate_order_number() -> str:
    """
    Hand out the next ``PO`` number. Must run inside a transaction: the
    sequence row stays locked until commit.
    """

    sequence, _ = OrderNumberSequence.objects.select_for_update().get_or_create(
        name=ORDER_SEQUENCE_NAME,
        defaults={"last_value": Order.objects.count()},
    )
    OrderNumberSequence.objects.filter(pk=sequence.pk).update(last_value=F("last_value") + 1)
    sequence.refresh_from_db(fields=["last_value"])
    return format_order_number(sequence.last_value)


def clean_customer_fields(customer_data: Mapping[str, Any]) -> Dict[str, str]:
    """Stripped, non-empty client fields; anything but a string is rejected."""
    cleaned: Dict[str, str] = {}
    for key in CUSTOMER_KEYS:
        value = customer_data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise OrderValidationError(f"Client {key} must be a string.")
        if value.strip():
            cleaned[key] = value.strip()
    return cleaned


def _resolve_customer(customer_data: Mapping[str, str]) -> Customer:
    email = customer_data.get("email") or DEFAULT_CUSTOMER_EMAIL
    customer = Customer.objects.filter(email=email).first()
    if customer is None:
        customer = Customer.objects.create(
            name=customer_data.get("name") or DEFAULT_CUSTOMER_NAME,
            email=email,
            phone=customer_data.get("phone"),
            company=customer_data.get("company"),
        )
        logger.info("Created customer %s <%s>", customer.name, customer.email)
    return customer


def _resolve_system_user():
    user_model = get_user_model()
    user = user_model.objects.order_by("pk").first()
    if user is None:
        user = user_model(
            username=SYSTEM_USERNAME,
            email=SYSTEM_EMAIL,
            first_name="Print Track",
            last_name="Admin",
        )
        user.set_unusable_password()
        user.save()
        logger.info("Created fallback user %s", SYSTEM_USERNAME)
    return user


def _replace_items(order: Order, items: Sequence[LineItem]) -> OrderTotals:
    order.items.all().delete()
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                name=item.name,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
            )
            for item in items
        ]
    )
    return compute_totals(items)


def active_statuses(order: Order) -> QuerySet:
    return order.statuses.filter(is_active=True).order_by("-created_at", "-id")


def add_statuses(
    order: Order,
    labels: Sequence[str],
    *,
    created_note: str,
    reactivated_note: str,
    log_note: str,
) -> None:
    """
    Switch each label on, reusing an existing row for the pair when present.

    Every label gets an ``ADDED`` log entry, including labels that were
    already active. Notes may reference ``{status}``.
    """

    for label in labels:
        row, created = OrderStatus.objects.get_or_create(
            order=order,
            status=label,
            defaults={"is_active": True, "notes": created_note.format(status=label)},
        )
        if not created:
            row.is_active = True
            row.notes = reactivated_note.format(status=label)
            row.save(update_fields=["is_active", "notes", "updated_at"])

    OrderStatusLog.objects.bulk_create(
        [
            OrderStatusLog(
                order=order,
                status=label,
                action=OrderStatusLog.Action.ADDED,
                notes=log_note.format(status=label),
            )
            for label in labels
        ]
    )


def remove_statuses(order: Order, labels: Sequence[str], *, log_note: str) -> None:
    """Switch labels off; each requested label is logged as ``REMOVED`` whether or not it was on."""
    order.statuses.filter(status__in=labels).update(is_active=False, updated_at=timezone.now())
    OrderStatusLog.objects.bulk_create(
        [
            OrderStatusLog(
                order=order,
                status=label,
                action=OrderStatusLog.Action.REMOVED,
                notes=log_note.format(status=label),
            )
            for label in labels
        ]
    )


def _deactivate_all(order: Order) -> int:
    return order.statuses.filter(is_active=True).update(is_active=False, updated_at=timezone.now())


def _lock_order(order_id: Any) -> Order:
    order = Order.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise OrderNotFound(f"Order {order_id} not found.")
    return order


def create_order(
    *,
    customer: Optional[Mapping[str, Any]] = None,
    fields: Optional[Mapping[str, Any]] = None,
    products: Optional[Iterable[Any]] = None,
    initial_statuses: Optional[Iterable[Any]] = None,
) -> Order:
    """
    Create an order together with its items, initial statuses and their log
    entries. ``initial_statuses`` defaults to ``["ENQUIRY"]`` when omitted.
    """

    customer_data = clean_customer_fields(customer or {})
    fields = fields or {}
    items = build_line_items(products)
    totals = compute_totals(items)
    if initial_statuses is None:
        labels = list(DEFAULT_INITIAL_STATUSES)
    else:
        labels = normalize_status_labels(initial_statuses, field="initialStatuses")
    priority = normalize_priority(fields.get("priority") or Order.Priority.NORMAL)
    due_date = parse_due_date(fields.get("due_date"))

    with transaction.atomic():
        order = Order.objects.create(
            order_number=allocate_order_number(),
            customer=_resolve_customer(customer_data),
            created_by=_resolve_system_user(),
            title=fields.get("title") or DEFAULT_TITLE,
            description=fields.get("description") or "",
            priority=priority,
            due_date=due_date,
            quantity=totals.quantity,
            unit_price=totals.unit_price,
            total_price=totals.total_price,
        )
        _replace_items(order, items)
        add_statuses(
            order,
            labels,
            created_note="Initial status: {status}",
            reactivated_note="Initial status: {status}",
            log_note="Order created with status: {status}",
        )

    logger.info(
        "Created order %s (%s items, total %s, statuses %s)",
        order.order_number,
        len(items),
        totals.total_price,
        ",".join(labels) or "-",
    )
    return order


def update_order(
    order_id: Any,
    *,
    customer: Optional[Mapping[str, Any]] = None,
    fields: Optional[Mapping[str, Any]] = None,
    products: Optional[Iterable[Any]] = None,
    statuses_to_add: Optional[Iterable[Any]] = None,
    statuses_to_remove: Optional[Iterable[Any]] = None,
) -> None:
    """
    Apply a partial update. Only keys present in ``fields`` are considered;
    a ``products`` list (even an empty one) replaces every line item.
    Status removals are applied before additions.
    """

    customer_changes = clean_customer_fields(customer or {})
    fields = fields or {}
    items = build_line_items(products) if products is not None else None
    totals = compute_totals(items) if items is not None else None
    to_add = normalize_status_labels(statuses_to_add, field="statusesToAdd")
    to_remove = normalize_status_labels(statuses_to_remove, field="statusesToRemove")

    changes: Dict[str, Any] = {}
    if fields.get("title"):
        changes["title"] = fields["title"]
    if "description" in fields:
        changes["description"] = fields["description"] or ""
    if fields.get("priority"):
        changes["priority"] = normalize_priority(fields["priority"])
    if "due_date" in fields:
        changes["due_date"] = parse_due_date(fields["due_date"])

    with transaction.atomic():
        order = _lock_order(order_id)

        if customer_changes:
            Customer.objects.filter(pk=order.customer_id).update(
                updated_at=timezone.now(), **customer_changes
            )

        if items is not None:
            _replace_items(order, items)
            changes.update(
                quantity=totals.quantity,
                unit_price=totals.unit_price,
                total_price=totals.total_price,
            )

        for name, value in changes.items():
            setattr(order, name, value)
        order.save(update_fields=[*changes, "updated_at"])

        if to_remove:
            remove_statuses(order, to_remove, log_note="Status removed during order update")
        if to_add:
            add_statuses(
                order,
                to_add,
                created_note="Status added during order update",
                reactivated_note="Status reactivated during order update",
                log_note="Status added during order update",
            )

    logger.info(
        "Updated order %s (fields=%s, items=%s, +%s, -%s)",
        order.order_number,
        ",".join(sorted(changes)) or "-",
        "replaced" if items is not None else "kept",
        ",".join(to_add) or "-",
        ",".join(to_remove) or "-",
    )


def replace_statuses(order_id: Any, labels: Iterable[Any]) -> List[OrderStatus]:
    """Make ``labels`` exactly the active set of the order; return the active rows."""
    normalized = normalize_status_labels(labels)

    with transaction.atomic():
        order = _lock_order(order_id)
        _deactivate_all(order)
        add_statuses(
            order,
            normalized,
            created_note="Status updated to {status}",
            reactivated_note="Status updated to {status}",
            log_note="Status updated to {status}",
        )

    logger.info(
        "Replaced statuses of order %s with %s", order.order_number, ",".join(normalized) or "-"
    )
    return list(active_statuses(order))


def cancel_order(order_id: Any) -> None:
    """Deactivate every status and leave ``CANCELLED`` as the only active one."""
    with transaction.atomic():
        order = _lock_order(order_id)
        deactivated = _deactivate_all(order)
        add_statuses(
            order,
            [StatusLabel.CANCELLED.value],
            created_note="Order cancelled by user",
            reactivated_note="Order cancelled by user",
            log_note="Order cancelled by user",
        )

    logger.info("Cancelled order %s (%s statuses deactivated)", order.order_number, deactivated)


def hard_delete_order(order_id: Any) -> None:
    """Physically remove an order with its items, statuses and log. Not reversible."""
    with transaction.atomic():
        order = _lock_order(order_id)
        order_number = order.order_number
        order.delete()

    logger.warning("Hard-deleted order %s", order_number)


def _order_queryset(*, include_logs: bool = False) -> QuerySet:
    queryset = Order.objects.select_related("customer", "created_by").prefetch_related(
        Prefetch("items", queryset=OrderItem.objects.order_by("id")),
        Prefetch(
            "statuses",
            queryset=OrderStatus.objects.filter(is_active=True).order_by("-created_at", "-id"),
            to_attr="active_statuses",
        ),
    )
    if include_logs:
        queryset = queryset.prefetch_related(
            Prefetch(
                "status_logs",
                queryset=OrderStatusLog.objects.order_by("-created_at", "-id"),
                to_attr="log_entries",
            )
        )
    return queryset


def get_order(order_id: Any, *, include_logs: bool = True) -> Order:
    order = _order_queryset(include_logs=include_logs).filter(pk=order_id).first()
    if order is None:
        raise OrderNotFound(f"Order {order_id} not found.")
    return order


def list_orders() -> List[Order]:
    return list(_order_queryset().order_by("-created_at", "-id"))
