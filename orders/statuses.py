"""
Status catalog and the main-status resolver.

An order carries a *set* of active status labels. Summary views still need a
single label to show, so :func:`resolve_main_status` picks one using a fixed
business priority.
"""

from typing import Any, Dict, Iterable, List

from django.db import models


class StatusLabel(models.TextChoices):
    # Initial phase
    ENQUIRY = "ENQUIRY", "Enquiry"
    QUOTE_SENT = "QUOTE_SENT", "Quote Sent"
    QUOTE_APPROVED = "QUOTE_APPROVED", "Quote Approved"

    # Design phase
    DESIGN_BRIEF = "DESIGN_BRIEF", "Design Brief"
    IN_DESIGN = "IN_DESIGN", "In Design"
    DESIGN_PROOFING = "DESIGN_PROOFING", "Proofing"
    DESIGN_APPROVED = "DESIGN_APPROVED", "Design Approved"

    # Materials & payment
    MATERIALS_ORDERED = "MATERIALS_ORDERED", "Materials Ordered"
    MATERIALS_IN_STOCK = "MATERIALS_IN_STOCK", "Stock in Hand"
    PAYMENT_PENDING = "PAYMENT_PENDING", "Payment Pending"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED", "Paid"

    # Production phase
    IN_PRODUCTION = "IN_PRODUCTION", "In Production"
    QUALITY_CHECK = "QUALITY_CHECK", "Quality Check"

    # Delivery phase
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY", "Ready"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out for Delivery"
    DELIVERED = "DELIVERED", "Delivered"

    # Special states
    ON_HOLD = "ON_HOLD", "On Hold"
    CANCELLED = "CANCELLED", "Cancelled"


STATUS_DISPLAY: Dict[str, Dict[str, str]] = {
    StatusLabel.ENQUIRY: {"icon": "📞", "category": "initial"},
    StatusLabel.QUOTE_SENT: {"icon": "📄", "category": "initial"},
    StatusLabel.QUOTE_APPROVED: {"icon": "✅", "category": "initial"},
    StatusLabel.DESIGN_BRIEF: {"icon": "📝", "category": "design"},
    StatusLabel.IN_DESIGN: {"icon": "🎨", "category": "design"},
    StatusLabel.DESIGN_PROOFING: {"icon": "👀", "category": "design"},
    StatusLabel.DESIGN_APPROVED: {"icon": "✅", "category": "design"},
    StatusLabel.MATERIALS_ORDERED: {"icon": "📦", "category": "materials"},
    StatusLabel.MATERIALS_IN_STOCK: {"icon": "📦", "category": "materials"},
    StatusLabel.PAYMENT_PENDING: {"icon": "💳", "category": "payment"},
    StatusLabel.PAYMENT_RECEIVED: {"icon": "💰", "category": "payment"},
    StatusLabel.IN_PRODUCTION: {"icon": "🏭", "category": "production"},
    StatusLabel.QUALITY_CHECK: {"icon": "🔍", "category": "production"},
    StatusLabel.READY_FOR_DELIVERY: {"icon": "📦", "category": "delivery"},
    StatusLabel.OUT_FOR_DELIVERY: {"icon": "🚚", "category": "delivery"},
    StatusLabel.DELIVERED: {"icon": "✅", "category": "delivery"},
    StatusLabel.ON_HOLD: {"icon": "⏸️", "category": "special"},
    StatusLabel.CANCELLED: {"icon": "❌", "category": "special"},
}

DEFAULT_ICON = "📋"

# Terminal states first, ON_HOLD last: any other active label outranks a hold.
STATUS_PRIORITY: tuple[str, ...] = (
    StatusLabel.CANCELLED,
    StatusLabel.DELIVERED,
    StatusLabel.OUT_FOR_DELIVERY,
    StatusLabel.READY_FOR_DELIVERY,
    StatusLabel.IN_PRODUCTION,
    StatusLabel.QUALITY_CHECK,
    StatusLabel.PAYMENT_RECEIVED,
    StatusLabel.MATERIALS_IN_STOCK,
    StatusLabel.DESIGN_APPROVED,
    StatusLabel.IN_DESIGN,
    StatusLabel.DESIGN_PROOFING,
    StatusLabel.DESIGN_BRIEF,
    StatusLabel.QUOTE_APPROVED,
    StatusLabel.QUOTE_SENT,
    StatusLabel.ENQUIRY,
    StatusLabel.ON_HOLD,
)

IN_PROGRESS_STATUSES = frozenset(
    {
        StatusLabel.IN_DESIGN,
        StatusLabel.DESIGN_PROOFING,
        StatusLabel.IN_PRODUCTION,
        StatusLabel.QUALITY_CHECK,
    }
)
CLOSED_STATUSES = frozenset({StatusLabel.DELIVERED, StatusLabel.CANCELLED})


def is_known_status(label: Any) -> bool:
    return isinstance(label, str) and label in StatusLabel.values


def status_label(status: str) -> str:
    """Human readable name for a status code, or the code itself if unknown."""
    if is_known_status(status):
        return StatusLabel(status).label
    return status


def status_icon(status: str) -> str:
    return STATUS_DISPLAY.get(status, {}).get("icon", DEFAULT_ICON)


def status_category(status: str) -> str:
    return STATUS_DISPLAY.get(status, {}).get("category", "")


def _active_labels(statuses: Iterable[Any]) -> List[str]:
    # Accept plain labels, OrderStatus rows or serialized status dicts so the
    # same resolver serves the ORM layer, the JSON payloads and templates.
    labels: List[str] = []
    for entry in statuses:
        if isinstance(entry, str):
            label, active = entry, True
        elif isinstance(entry, dict):
            label = entry.get("status")
            active = entry.get("isActive", entry.get("is_active", True))
        else:
            label = getattr(entry, "status", None)
            active = getattr(entry, "is_active", True)
        if label and active and label not in labels:
            labels.append(str(label))
    return labels


def resolve_main_status(statuses: Iterable[Any]) -> str:
    """
    Pick the single status that represents an order's overall phase.

    Returns the highest-priority active label, otherwise the first active
    label that is not in the priority list, otherwise ``ENQUIRY``.
    """

    active = _active_labels(statuses)
    for candidate in STATUS_PRIORITY:
        if candidate in active:
            return str(candidate)
    if active:
        return active[0]
    return str(StatusLabel.ENQUIRY)
