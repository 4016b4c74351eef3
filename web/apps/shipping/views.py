"""HTTP views for pickup shipping and free shipping sessions.

Public views compute rates and report the caller's session from the
``checkout_shipping_session`` cookie. Admin views (staff only) manage pickup
locations, pricing tables and the session settings. Domain errors are raised
as ``ValueError("CODE")`` and answered as ``{"detail": CODE}``.
"""

import logging

from django.utils.decorators import method_decorator
from django.views.decorators.csrf import ensure_csrf_cookie
from pydantic import ValidationError
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.localization.locales import resolve_locale, use_locale
from apps.localization.providers import get_translation_packs

from . import providers
from .catalog import PickupCatalog, checkout_locations
from .config import OPT_SESSION_ENABLED, OPT_SESSION_HOURS
from .cookies import clear_session_cookie, session_from_request
from .domain import Provider, apply_session_discount, compute_rates
from .schemas import CalculateShippingIn, LocationIn, PricingRuleIn, SessionSettingsIn

logger = logging.getLogger(__name__)


def _bad_request(code: str) -> Response:
    return Response({"detail": code}, status=status.HTTP_400_BAD_REQUEST)


def quote_rates(request, config, country: str):
    """Rates for ``country`` with the caller's session applied.

    Returns:
        tuple: ``(rates, active, stale)`` as described by
        ``session_from_request``.
    """
    _, active, stale = session_from_request(request, config)
    rates = compute_rates(country, config.pricing, config.method_title)
    return apply_session_discount(rates, active is not None), active, stale


@method_decorator(ensure_csrf_cookie, name="dispatch")
class ShippingMethodsView(APIView):
    """List the shipping rates offered for a destination country."""

    def get(self, request):
        country = (request.GET.get("country") or "FR").upper()
        try:
            locale = resolve_locale(request.GET.get("locale"))
        except ValueError as e:
            return _bad_request(str(e))

        config = providers.get_shipping_config()
        with use_locale(locale, get_translation_packs()):
            rates, _, stale = quote_rates(request, config, country)
            body = [rate.to_dict() for rate in rates]

        resp = Response(body, status=status.HTTP_200_OK)
        if stale:
            clear_session_cookie(resp)
        return resp


class CalculateShippingView(APIView):
    """Quote an amount plus its cheapest-listed shipping rate.

    The first rate returned by the rate source is used for the line items and
    the total, matching what express checkout buttons display.
    """

    def post(self, request):
        try:
            dto = CalculateShippingIn.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        try:
            locale = resolve_locale(dto.locale)
        except ValueError as e:
            return _bad_request(str(e))

        config = providers.get_shipping_config()
        with use_locale(locale, get_translation_packs()):
            rates, _, stale = quote_rates(request, config, dto.country)
            shipping_rates = [{"id": r.id, "label": r.label, "amount_cents": r.cost_cents} for r in rates]
            line_items = [{"label": "Product", "amount_cents": dto.amount_cents}]

        total = dto.amount_cents
        if shipping_rates:
            first = shipping_rates[0]
            line_items.append({"label": first["label"], "amount_cents": first["amount_cents"]})
            total += first["amount_cents"]

        logger.info(
            "shipping calculated",
            extra={"country": dto.country, "rates": len(shipping_rates), "total_cents": total},
        )
        resp = Response(
            {
                "success": True,
                "shipping_rates": shipping_rates,
                "line_items": line_items,
                "total_cents": total,
            },
            status=status.HTTP_200_OK,
        )
        if stale:
            clear_session_cookie(resp)
        return resp


class CheckoutLocationsView(APIView):
    def get(self, request):
        try:
            provider = Provider.parse(request.GET.get("type"))
        except ValueError as e:
            return _bad_request(str(e))
        config = providers.get_shipping_config()
        return Response(checkout_locations(config, provider, request.GET.get("country")), status=status.HTTP_200_OK)


@method_decorator(ensure_csrf_cookie, name="dispatch")
class SessionStatusView(APIView):
    """Report the free shipping session named by the caller's cookie.

    Also issues the CSRF cookie: signed-in customers must echo it in
    ``X-CSRFToken`` on the checkout POSTs.
    """

    def get(self, request):
        config = providers.get_shipping_config()
        _, active, stale = session_from_request(request, config)
        if active is None:
            resp = Response({"active": False, "message": "No active shipping session"}, status=status.HTTP_200_OK)
            if stale:
                clear_session_cookie(resp)
            return resp

        session = active.session
        return Response(
            {
                "active": True,
                "session_id": session.session_id,
                "first_order_id": session.first_order_id,
                "order_count": session.order_count,
                "remaining_seconds": active.remaining_seconds,
                "remaining_formatted": active.remaining_formatted,
                "total_saved_cents": session.total_saved_cents,
            },
            status=status.HTTP_200_OK,
        )


class SessionClearView(APIView):
    """End the caller's session and drop the cookie."""

    def post(self, request):
        config = providers.get_shipping_config()
        manager, active, _ = session_from_request(request, config)
        if active is not None:
            manager.end(active.session_id)
            logger.info("shipping session cleared by customer", extra={"session_id": active.session_id})
            body = {"success": True, "message": "Session cleared successfully"}
        else:
            body = {"success": False, "message": "No active session to clear"}
        resp = Response(body, status=status.HTTP_200_OK)
        clear_session_cookie(resp)
        return resp


# ---- Admin ----
class AdminLocationsView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        catalog = PickupCatalog(providers.get_options_repository())
        return Response(catalog.overview(), status=status.HTTP_200_OK)

    def post(self, request):
        try:
            dto = LocationIn.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        if not dto.type:
            return _bad_request("MISSING_FIELD")
        try:
            provider = Provider.parse(dto.type)
            location = PickupCatalog(providers.get_options_repository()).add_location(provider, dto.model_dump())
        except ValueError as e:
            return _bad_request(str(e))
        return Response({"location": location.to_dict(), "type": provider.value}, status=status.HTTP_201_CREATED)


class AdminLocationDetailView(APIView):
    permission_classes = [IsAdminUser]

    def delete(self, request, location_id: str):
        try:
            provider = Provider.parse(request.GET.get("type"))
        except ValueError as e:
            return _bad_request(str(e))
        deleted = PickupCatalog(providers.get_options_repository()).delete_location(provider, location_id)
        if not deleted:
            return Response({"detail": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"deleted": True}, status=status.HTTP_200_OK)


class AdminPricingView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        try:
            dto = PricingRuleIn.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        if not dto.type or not dto.country:
            return _bad_request("MISSING_FIELD")
        try:
            provider = Provider.parse(dto.type)
            rule = PickupCatalog(providers.get_options_repository()).upsert_pricing(
                provider, dto.country, dto.express_cents, dto.normal_cents
            )
        except ValueError as e:
            return _bad_request(str(e))
        return Response(
            {"type": provider.value, "country": dto.country.upper(), "pricing": rule.to_dict()},
            status=status.HTTP_201_CREATED,
        )


class AdminPricingDetailView(APIView):
    permission_classes = [IsAdminUser]

    def delete(self, request, country: str):
        try:
            provider = Provider.parse(request.GET.get("type"))
        except ValueError as e:
            return _bad_request(str(e))
        deleted = PickupCatalog(providers.get_options_repository()).delete_pricing(provider, country)
        if not deleted:
            return Response({"detail": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)
        return Response({"deleted": True}, status=status.HTTP_200_OK)


class AdminSessionSettingsView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        config = providers.get_shipping_config()
        return Response(
            {"enabled": config.session_enabled, "duration_hours": config.session_hours},
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        try:
            dto = SessionSettingsIn.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        options = providers.get_options_repository()
        options.set(OPT_SESSION_ENABLED, dto.enabled)
        options.set(OPT_SESSION_HOURS, dto.duration_hours)
        logger.info(
            "session settings updated",
            extra={"enabled": dto.enabled, "duration_hours": dto.duration_hours},
        )
        return Response({"enabled": dto.enabled, "duration_hours": dto.duration_hours}, status=status.HTTP_200_OK)
