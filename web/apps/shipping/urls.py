from django.urls import path

from .views import (
    AdminLocationDetailView,
    AdminLocationsView,
    AdminPricingDetailView,
    AdminPricingView,
    AdminSessionSettingsView,
    CalculateShippingView,
    CheckoutLocationsView,
    SessionClearView,
    SessionStatusView,
    ShippingMethodsView,
)

app_name = "shipping"

urlpatterns = [
    path("shipping-methods/", ShippingMethodsView.as_view(), name="shipping-methods"),
    path("shipping/calculate/", CalculateShippingView.as_view(), name="shipping-calculate"),
    path("shipping/checkout-locations/", CheckoutLocationsView.as_view(), name="checkout-locations"),
    path("shipping-session/status/", SessionStatusView.as_view(), name="session-status"),
    path("shipping-session/clear/", SessionClearView.as_view(), name="session-clear"),
    path("admin/shipping/locations/", AdminLocationsView.as_view(), name="admin-locations"),
    path("admin/shipping/locations/<str:location_id>/", AdminLocationDetailView.as_view(), name="admin-location-detail"),
    path("admin/shipping/pricing/", AdminPricingView.as_view(), name="admin-pricing"),
    path("admin/shipping/pricing/<str:country>/", AdminPricingDetailView.as_view(), name="admin-pricing-detail"),
    path("admin/session-settings/", AdminSessionSettingsView.as_view(), name="admin-session-settings"),
]
