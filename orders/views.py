import json
import logging
from datetime import date
from functools import wraps
from typing import Any, Callable, Dict

from django.http import Http404, HttpRequest, HttpResponseRedirect, JsonResponse
from django.shortcuts import render
from django.urls import reverse
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_http_methods

from orders import access
from orders.catalog import PRINTING_PRODUCTS
from orders.models import Order
from orders.serializers import serialize_order, serialize_statuses
from orders.services import analytics
from orders.services.order_service import (
    OrderNotFound,
    OrderValidationError,
    cancel_order,
    create_order,
    get_order,
    hard_delete_order,
    list_orders,
    replace_statuses,
    update_order,
)
from orders.statuses import STATUS_DISPLAY, StatusLabel

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = {
    "clientName": "name",
    "clientEmail": "email",
    "clientPhone": "phone",
    "clientCompany": "company",
}
ORDER_FIELDS = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "dueDate": "due_date",
}


def _json_error(message: str, *, status: int = 400, details: str | None = None) -> JsonResponse:
    payload: Dict[str, Any] = {"error": message}
    if details is not None:
        payload["details"] = details
    return JsonResponse(payload, status=status)


def _parse_request_body(request: HttpRequest) -> Dict[str, Any]:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise OrderValidationError("Invalid JSON payload.") from exc
    if not isinstance(data, dict):
        raise OrderValidationError("JSON payload must be an object.")
    return data


def _pick(payload: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    return {target: payload[source] for source, target in mapping.items() if source in payload}


def _api_errors(failure_message: str) -> Callable:
    """Map service exceptions onto the API's ``{error, details}`` responses."""

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(request: HttpRequest, *args, **kwargs):
            try:
                return view(request, *args, **kwargs)
            except OrderNotFound:
                return _json_error("Order not found", status=404)
            except OrderValidationError as exc:
                return _json_error("Invalid request", details=str(exc))
            except Exception as exc:
                logger.exception("%s (%s %s)", failure_message, request.method, request.path)
                return _json_error(failure_message, status=500, details=str(exc))

        return wrapper

    return decorator


@require_http_methods(["GET", "POST"])
def orders_api(request: HttpRequest) -> JsonResponse:
    """
    ``GET`` lists every order newest first; ``POST`` creates one.
    """

    if request.method == "POST":
        return _create_order(request)
    return _list_orders(request)


@_api_errors("Failed to fetch orders")
def _list_orders(request: HttpRequest) -> JsonResponse:
    return JsonResponse([serialize_order(order) for order in list_orders()], safe=False)


@_api_errors("Failed to create order")
def _create_order(request: HttpRequest) -> JsonResponse:
    payload = _parse_request_body(request)
    products = payload.get("products")
    order = create_order(
        customer=_pick(payload, CUSTOMER_FIELDS),
        fields=_pick(payload, ORDER_FIELDS),
        products=products,
        initial_statuses=payload.get("initialStatuses"),
    )
    created = get_order(order.pk, include_logs=False)
    return JsonResponse(serialize_order(created), status=201)


@require_http_methods(["GET", "PUT", "DELETE"])
def order_detail_api(request: HttpRequest, order_id: int) -> JsonResponse:
    if request.method == "PUT":
        return _update_order(request, order_id)
    if request.method == "DELETE":
        return _delete_order(request, order_id)
    return _fetch_order(request, order_id)


@_api_errors("Failed to fetch order")
def _fetch_order(request: HttpRequest, order_id: int) -> JsonResponse:
    return JsonResponse(serialize_order(get_order(order_id), include_logs=True))


@_api_errors("Failed to update order")
def _update_order(request: HttpRequest, order_id: int) -> JsonResponse:
    payload = _parse_request_body(request)
    update_order(
        order_id,
        customer=_pick(payload, CUSTOMER_FIELDS),
        fields=_pick(payload, ORDER_FIELDS),
        products=payload.get("products"),
        statuses_to_add=payload.get("statusesToAdd") or [],
        statuses_to_remove=payload.get("statusesToRemove") or [],
    )
    return JsonResponse(serialize_order(get_order(order_id, include_logs=False)))


@_api_errors("Failed to process request")
def _delete_order(request: HttpRequest, order_id: int) -> JsonResponse:
    action = request.GET.get("action") or "cancel"
    if action == "cancel":
        cancel_order(order_id)
        return JsonResponse(serialize_order(get_order(order_id, include_logs=False)))
    if action == "delete":
        hard_delete_order(order_id)
        return JsonResponse({"message": "Order deleted successfully"})
    raise OrderValidationError("`action` must be either `cancel` or `delete`.")


@require_http_methods(["PUT"])
@_api_errors("Failed to update order status")
def order_status_api(request: HttpRequest, order_id: int) -> JsonResponse:
    """Replace the whole active status set of an order."""
    payload = _parse_request_body(request)
    if "statuses" not in payload:
        raise OrderValidationError("`statuses` is required.")
    rows = replace_statuses(order_id, payload["statuses"])
    return JsonResponse(serialize_statuses(rows), safe=False)


def _selected_month(request: HttpRequest, today: date) -> tuple[int, int]:
    raw = request.GET.get("month") or ""
    parsed = None
    try:
        parsed = parse_date(f"{raw}-01") if raw else None
    except ValueError:
        parsed = None
    if parsed is None:
        return today.year, today.month
    return parsed.year, parsed.month


def _selected_day(request: HttpRequest) -> date | None:
    raw = request.GET.get("date") or ""
    try:
        return parse_date(raw) if raw else None
    except ValueError:
        return None


def _load_order_or_404(order_id: int) -> Order:
    try:
        return get_order(order_id)
    except OrderNotFound as exc:
        raise Http404("Order not found") from exc


@require_GET
def dashboard_page(request: HttpRequest):
    """
    Landing page: headline figures, the due-date calendar and distributions.
    """

    today = timezone.localdate()
    year, month = _selected_month(request, today)
    selected_day = _selected_day(request)
    orders = list_orders()
    grouped = analytics.group_orders_by_due_date(orders)
    prev_year, prev_month = analytics.shift_month(year, month, -1)
    next_year, next_month = analytics.shift_month(year, month, 1)

    context = {
        "orders": orders,
        "recent_orders": orders[:5],
        "stats": analytics.order_stats(orders),
        "weeks": analytics.build_calendar(orders, year, month, today=today),
        "month_label": f"{analytics.month_name(month)} {year}",
        "month_param": f"{year:04d}-{month:02d}",
        "prev_month_param": f"{prev_year:04d}-{prev_month:02d}",
        "next_month_param": f"{next_year:04d}-{next_month:02d}",
        "selected_day": selected_day,
        "selected_orders": grouped.get(selected_day, []) if selected_day else [],
        "status_distribution": analytics.status_distribution(orders),
        "priority_distribution": analytics.priority_distribution(orders),
    }
    return render(request, "orders/dashboard.html", context)


@require_GET
def order_list_page(request: HttpRequest):
    orders = list_orders()
    current = request.GET.get("filter") or "all"
    if current not in analytics.ORDER_FILTERS:
        current = "all"
    counts = analytics.filter_counts(orders)
    tabs = [
        {"key": key, "label": label, "count": counts[key], "active": key == current}
        for key, label in analytics.ORDER_FILTERS.items()
    ]
    context = {
        "orders": analytics.filter_orders(orders, current),
        "tabs": tabs,
        "current_filter": current,
    }
    return render(request, "orders/order_list.html", context)


@require_GET
def order_add_page(request: HttpRequest):
    context = {
        "catalog": PRINTING_PRODUCTS,
        "priorities": Order.Priority.choices,
    }
    return render(request, "orders/order_form.html", context)


def _status_options(active: set[str]) -> list[dict[str, Any]]:
    return [
        {
            "value": value,
            "label": label,
            "icon": STATUS_DISPLAY[value]["icon"],
            "category": STATUS_DISPLAY[value]["category"],
            "active": value in active,
        }
        for value, label in StatusLabel.choices
    ]


@require_GET
def order_detail_page(request: HttpRequest, order_id: int):
    order = _load_order_or_404(order_id)
    active = {status.status for status in order.active_statuses}
    context = {
        "order": order,
        "status_options": _status_options(active),
        "log_entries": order.log_entries,
    }
    return render(request, "orders/order_detail.html", context)


@require_GET
def order_edit_page(request: HttpRequest, order_id: int):
    order = _load_order_or_404(order_id)
    active = {status.status for status in order.active_statuses}
    context = {
        "order": order,
        "order_payload": serialize_order(order),
        "catalog": PRINTING_PRODUCTS,
        "priorities": Order.Priority.choices,
        "status_options": _status_options(active),
    }
    return render(request, "orders/order_form.html", context)


@require_http_methods(["GET", "POST"])
def access_gate_page(request: HttpRequest):
    next_url = request.POST.get("next") or request.GET.get("next")
    if access.is_unlocked(request):
        return HttpResponseRedirect(access.safe_next_url(request, next_url))

    error = None
    if request.method == "POST":
        if access.unlock(request, request.POST.get("password", "")):
            return HttpResponseRedirect(access.safe_next_url(request, next_url))
        error = "Incorrect password. Please try again."
    context = {"error": error, "next": next_url or ""}
    return render(request, "orders/access.html", context, status=401 if error else 200)


@require_GET
def access_leave(request: HttpRequest):
    access.lock(request)
    return HttpResponseRedirect(reverse("access-gate"))
