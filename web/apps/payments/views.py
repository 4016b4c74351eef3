"""HTTP views for payment methods and payment intents.

Status mapping for intent creation:

- 400 ``INVALID_AMOUNT`` / ``NO_STRIPE`` and pydantic validation errors
- 500 ``NO_KEY`` when the publishable key is not configured
- 502 ``PAYMENT_INTENT_FAILED`` when the provider rejects the request
- 503 ``UPSTREAM_UNAVAILABLE`` on transport failures
"""

import logging

import httpx
from django.conf import settings
from django.utils.translation import gettext as _
from pydantic import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.localization.locales import resolve_locale, use_locale
from apps.localization.providers import get_translation_packs

from . import providers
from .domain import PaymentProviderError
from .schemas import PaymentIntentIn

logger = logging.getLogger(__name__)

INTENT_ERROR_STATUS = {
    "INVALID_AMOUNT": status.HTTP_400_BAD_REQUEST,
    "NO_STRIPE": status.HTTP_400_BAD_REQUEST,
    "NO_KEY": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class PaymentMethodsView(APIView):
    """List enabled gateways with titles rendered in the requested locale."""

    def get(self, request):
        try:
            locale = resolve_locale(request.GET.get("locale"))
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        with use_locale(locale, get_translation_packs()):
            methods = []
            for gateway in providers.get_gateway_registry().enabled():
                data = gateway.to_dict()
                data["title"] = _(gateway.title)
                data["description"] = _(gateway.description) if gateway.description else ""
                methods.append(data)
        return Response(methods, status=status.HTTP_200_OK)


class PaymentIntentsView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "payment_intents"

    def post(self, request):
        try:
            dto = PaymentIntentIn.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        service = providers.get_payment_intent_service()
        try:
            intent = service.create(dto.amount_cents)
        except ValueError as e:
            code = str(e)
            return Response({"detail": code}, status=INTENT_ERROR_STATUS.get(code, status.HTTP_400_BAD_REQUEST))
        except PaymentProviderError as e:
            return Response(
                {
                    "detail": "PAYMENT_INTENT_FAILED",
                    "message": e.message,
                    "provider_code": e.code,
                    "provider_type": e.type,
                },
                status=status.HTTP_502_BAD_GATEWAY,
            )
        except httpx.RequestError:
            logger.exception("payment provider unreachable")
            return Response({"detail": "UPSTREAM_UNAVAILABLE"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        logger.info("payment intent created", extra={"payment_intent_id": intent.id, "amount_cents": intent.amount_cents})
        return Response(
            {
                "client_secret": intent.client_secret,
                "payment_intent_id": intent.id,
                "publishable_key": service.keys.publishable_key,
            },
            status=status.HTTP_200_OK,
        )


class ExpressCheckoutParamsView(APIView):
    def get(self, request):
        keys = providers.get_stripe_keys()
        if not keys.publishable_key:
            return Response({"detail": "NO_KEY"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(
            {
                "publishable_key": keys.publishable_key,
                "currency": settings.STORE_CURRENCY,
                "test_mode": keys.test_mode,
            },
            status=status.HTTP_200_OK,
        )
