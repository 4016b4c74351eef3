from django.urls import path

from .views import (
    AdminOrderDetailView,
    AdminOrdersView,
    AdminSessionDetailView,
    AdminSessionsView,
    ExpressPaymentsView,
    OrdersCollectionView,
    RetrieveOrderView,
    ValidateReferenceView,
)

app_name = "checkout"

urlpatterns = [
    path("orders/", OrdersCollectionView.as_view(), name="orders-collection"),
    path("orders/validate-reference/", ValidateReferenceView.as_view(), name="validate-reference"),
    path("orders/<uuid:oid>/", RetrieveOrderView.as_view(), name="orders-detail"),
    path("express-payments/", ExpressPaymentsView.as_view(), name="express-payments"),
    path("admin/sessions/", AdminSessionsView.as_view(), name="admin-sessions"),
    path("admin/sessions/<str:token>/", AdminSessionDetailView.as_view(), name="admin-session-detail"),
    path("admin/orders/", AdminOrdersView.as_view(), name="admin-orders"),
    path("admin/orders/<uuid:oid>/", AdminOrderDetailView.as_view(), name="admin-order-detail"),
]
