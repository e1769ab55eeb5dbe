from django.urls import path

from orders import views

urlpatterns = [
    path("", views.dashboard_page, name="dashboard"),
    path("orders/", views.order_list_page, name="order-list"),
    path("orders/add/", views.order_add_page, name="order-add"),
    path("orders/<int:order_id>/", views.order_detail_page, name="order-detail"),
    path("orders/<int:order_id>/edit/", views.order_edit_page, name="order-edit"),
    path("access/", views.access_gate_page, name="access-gate"),
    path("access/leave/", views.access_leave, name="access-leave"),
    path("api/orders", views.orders_api, name="orders-api"),
    path("api/orders/<int:order_id>", views.order_detail_api, name="order-detail-api"),
    path("api/orders/<int:order_id>/status", views.order_status_api, name="order-status-api"),
]
