from django.urls import path, include

urlpatterns = [
    path("api/", include("apps.monitoring.urls")),
    path("api/", include("apps.checkout.urls")),
    path("api/", include("apps.shipping.urls")),
    path("api/", include("apps.payments.urls")),
]
