from django.urls import path

from .views import ExpressCheckoutParamsView, PaymentIntentsView, PaymentMethodsView

app_name = "payments"

urlpatterns = [
    path("payment-methods/", PaymentMethodsView.as_view(), name="payment-methods"),
    path("payment-intents/", PaymentIntentsView.as_view(), name="payment-intents"),
    path("express-checkout-params/", ExpressCheckoutParamsView.as_view(), name="express-checkout-params"),
]
