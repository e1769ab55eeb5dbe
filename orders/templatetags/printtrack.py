from django import template

from orders import formatting, statuses
from orders.services.analytics import main_status_of

register = template.Library()

PRIORITY_CLASSES = {
    "LOW": "priority-low",
    "NORMAL": "priority-normal",
    "HIGH": "priority-high",
    "URGENT": "priority-urgent",
}


@register.filter
def euro(value):
    return formatting.format_euro(value)


@register.filter
def status_label(value):
    return statuses.status_label(value)


@register.filter
def status_icon(value):
    return statuses.status_icon(value)


@register.filter
def status_category(value):
    return statuses.status_category(value)


@register.filter
def main_status(order):
    return main_status_of(order)


@register.filter
def priority_class(value):
    return PRIORITY_CLASSES.get(value, "priority-unknown")


@register.filter
def percentage(value):
    return f"{float(value):.0f}%"


@register.filter
def truncate(value, length):
    return formatting.truncate_text(str(value or ""), int(length))
