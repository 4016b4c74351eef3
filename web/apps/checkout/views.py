"""HTTP views for the checkout app.

Views validate requests (via Pydantic), map them to domain DTOs, delegate
to ``CheckoutService`` and return a response. The free shipping session is
carried by the ``checkout_shipping_session`` cookie: the view reads the
token, passes it explicitly to the service and applies the cookie
instructions of the ``CheckoutResult``.

Status mapping for order creation:

- 201 with the created order
- 400 with {detail: CODE} for ``INVALID_AMOUNT``, ``MISSING_REFERENCE``,
  ``INVALID_PAYMENT_METHOD``, ``INVALID_LOCALE`` and DTO validation errors

Express checkout wallets post to ``ExpressPaymentsView``, which builds the
same ``OrderRequest`` (card gateway, separate delivery address) and shares
the flow above.
"""

import logging

from pydantic import ValidationError
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.localization.locales import DEFAULT_LOCALE, resolve_locale, use_locale
from apps.localization.providers import get_translation_packs
from apps.payments.domain import CARD_GATEWAY_ID
from apps.shipping import providers as shipping_providers
from apps.shipping.cookies import clear_session_cookie, read_session_token, set_session_cookie

from . import providers
from .domain import Address, Customer, OrderRequest, PickupPoint, ShippingSelection
from .overview import group_orders, order_detail, pickup_point_of, session_overview
from .schemas import CreateOrderDTO, ExpressPaymentDTO, OrderReadDTO

logger = logging.getLogger(__name__)


def _order_body(order) -> dict:
    meta = order.meta
    dto = OrderReadDTO.model_validate(
        {
            "id": order.id,
            "number": order.number,
            "status": order.status.value,
            "reference": meta.get("reference", ""),
            "amount_cents": order.amount_cents,
            "shipping_cents": order.shipping_cents,
            "total_cents": order.total_cents,
            "currency": order.currency,
            "payment_method": order.payment_method,
            "locale": order.locale,
            "paid": bool(meta.get("paid", False)),
            "shipping_label": order.shipping_label or None,
            "pickup_point": pickup_point_of(meta),
            "session_id": meta.get("session_id"),
            "created_at": order.created_at,
        }
    )
    return dto.model_dump(mode="json", exclude_none=True)


def _user_id(request):
    user = getattr(request, "user", None)
    return user.pk if user is not None and user.is_authenticated else None


def _place_order(request, req: OrderRequest):
    """Run ``CheckoutService.place_order`` for a request.

    Returns:
        tuple: ``(result, None)`` on success, ``(None, Response)`` with a 400
        {detail: CODE} otherwise.
    """
    try:
        locale = resolve_locale(req.locale)
    except ValueError as e:
        return None, Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    config = shipping_providers.get_shipping_config()
    service = providers.get_checkout_service(config)
    try:
        with use_locale(locale, get_translation_packs()):
            result = service.place_order(req, config, read_session_token(request))
    except ValueError as e:
        return None, Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    order = result.order
    logger.info(
        "order created",
        extra={
            "order_id": order.id,
            "number": order.number,
            "status": order.status.value,
            "session_id": order.meta.get("session_id"),
            "express": req.express,
        },
    )
    return result, None


def _apply_cookie(request, resp, result):
    if result.session_token:
        set_session_cookie(resp, result.session_token, result.session_max_age, request.is_secure())
    elif result.clear_cookie:
        clear_session_cookie(resp)
    return resp


class OrdersCollectionView(APIView):
    """Create an order from the checkout page."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_create"

    def post(self, request):
        """Create a new order.

        Args:
            request (Request): DRF request with JSON body and the optional
                session cookie.

        Returns:
            Response: 201 with the order (and ``session`` when one was
            started or extended), or 400 with {detail: CODE}.
        """
        # 1) Pydantic validation
        try:
            dto = CreateOrderDTO.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        # 2) Domain input
        customer = Customer(**dto.customer.model_dump(), user_id=_user_id(request))
        req = OrderRequest(
            reference=dto.reference,
            amount_cents=dto.amount_cents,
            customer=customer,
            payment_method=dto.payment_method,
            payment_intent_id=dto.payment_intent_id or None,
            pickup_point=PickupPoint(**dto.pickup_point.model_dump()) if dto.pickup_point else None,
            shipping=(
                ShippingSelection(dto.shipping_method_id, dto.shipping_cost_cents)
                if dto.shipping_method_id
                else None
            ),
            locale=dto.locale,
        )

        # 3) Domain
        result, error = _place_order(request, req)
        if error is not None:
            return error

        # 4) Response + cookie
        body = _order_body(result.order)
        if result.session:
            body["session"] = result.session
        return _apply_cookie(request, Response(body, status=status.HTTP_201_CREATED), result)


class ExpressPaymentsView(APIView):
    """Turn an express checkout wallet payment into an order."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_create"

    def post(self, request):
        try:
            dto = ExpressPaymentDTO.model_validate(request.data)
        except ValidationError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        billing = dto.billing
        customer = Customer(
            email=dto.email,
            first_name=billing.first_name,
            last_name=billing.last_name,
            address_1=billing.address_1,
            address_2=billing.address_2,
            city=billing.city,
            state=billing.state,
            postcode=billing.postcode,
            country=billing.country or "FR",
            phone=dto.phone,
            user_id=_user_id(request),
        )
        shipping_address = None
        if dto.shipping_address is not None:
            s = dto.shipping_address
            # wallets often leave the recipient name out
            shipping_address = Address(
                first_name=s.first_name or billing.first_name,
                last_name=s.last_name or billing.last_name,
                address_1=s.address_1,
                address_2=s.address_2,
                city=s.city,
                state=s.state,
                postcode=s.postcode,
                country=s.country,
            )
        req = OrderRequest(
            reference=dto.reference,
            amount_cents=dto.amount_cents,
            customer=customer,
            payment_method=CARD_GATEWAY_ID,
            payment_intent_id=dto.payment_intent_id or None,
            shipping=(
                ShippingSelection(dto.shipping_method_id, dto.shipping_cost_cents)
                if dto.shipping_method_id
                else None
            ),
            locale=dto.locale,
            shipping_address=shipping_address,
            express=True,
        )

        result, error = _place_order(request, req)
        if error is not None:
            return error

        order = result.order
        body = {
            "success": True,
            "order_id": order.id,
            "number": order.number,
            "status": order.status.value,
            "total_cents": order.total_cents,
        }
        if result.session:
            body["session"] = result.session
        return _apply_cookie(request, Response(body, status=status.HTTP_201_CREATED), result)


class RetrieveOrderView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, oid):
        order = providers.get_order_repository().get(oid)
        if order is None:
            return Response({"detail": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)
        return Response(_order_body(order), status=status.HTTP_200_OK)


class ValidateReferenceView(APIView):
    """Tell the checkout page whether a reference is still unused."""

    def get(self, request):
        reference = (request.GET.get("reference") or "").strip()
        if not reference:
            return Response({"detail": "MISSING_REFERENCE"}, status=status.HTTP_400_BAD_REQUEST)
        if providers.get_order_repository().reference_exists(reference):
            return Response({"valid": False, "message": "This reference already exists"}, status=status.HTTP_200_OK)
        return Response({"valid": True, "message": "Reference is valid"}, status=status.HTTP_200_OK)


# ---- Admin ----
class AdminSessionsView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request):
        config = shipping_providers.get_shipping_config()
        manager = shipping_providers.get_session_manager(config)
        with use_locale(DEFAULT_LOCALE):
            sessions = session_overview(manager, providers.get_order_repository())
        return Response({"sessions": sessions, "total": len(sessions)}, status=status.HTTP_200_OK)


class AdminSessionDetailView(APIView):
    permission_classes = [IsAdminUser]

    def delete(self, request, token: str):
        config = shipping_providers.get_shipping_config()
        if not shipping_providers.get_session_manager(config).end(token):
            return Response({"detail": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)
        logger.info("shipping session deleted by admin", extra={"session_id": token})
        return Response({"deleted": True}, status=status.HTTP_200_OK)


class AdminOrdersView(APIView):
    """Checkout orders grouped by shipping session."""

    permission_classes = [IsAdminUser]

    def get(self, request):
        config = shipping_providers.get_shipping_config()
        manager = shipping_providers.get_session_manager(config)
        orders = providers.get_order_repository().all_orders()
        groups = group_orders(orders, lambda sid: manager.lookup(sid) is not None)
        return Response({"data": groups, "total_orders": len(orders)}, status=status.HTTP_200_OK)


class AdminOrderDetailView(APIView):
    """One order with every checkout annotation and its notes."""

    permission_classes = [IsAdminUser]

    def get(self, request, oid):
        repo = providers.get_order_repository()
        order = repo.get(oid)
        if order is None:
            return Response({"detail": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)
        config = shipping_providers.get_shipping_config()
        manager = shipping_providers.get_session_manager(config)
        body = order_detail(order, repo.notes(order.id), lambda sid: manager.lookup(sid) is not None)
        return Response(body, status=status.HTTP_200_OK)
