"""Admin read models over sessions and orders."""

from datetime import datetime, timezone as dt_timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from django.contrib.auth import get_user_model

from apps.shipping.sessions import ShippingSessionManager

from .domain import Order
from .repository import OrderRepository


def _lookup_user(user_id: str) -> Optional[Tuple[str, str]]:
    """(display name, email) of a user id, or None."""
    User = get_user_model()
    try:
        user = User.objects.filter(pk=int(user_id)).first()
    except (TypeError, ValueError):
        return None
    if user is None:
        return None
    return (user.get_full_name() or user.get_username(), user.email)


def session_overview(manager: ShippingSessionManager, orders: OrderRepository) -> List[dict]:
    """Every stored session with its customer and orders, newest first."""
    out = []
    for active in manager.all_sessions():
        session = active.session
        identifier = session.customer_identifier
        customer_email = identifier
        customer_name = ""

        if identifier.startswith("user_"):
            found = _lookup_user(identifier[len("user_"):])
            if found:
                customer_name, customer_email = found
        elif session.first_order_id:
            first = orders.get(session.first_order_id)
            if first is not None:
                customer_name = first.customer.full_name

        out.append(
            {
                "session_id": session.session_id,
                "customer_name": customer_name or "Unknown",
                "customer_email": customer_email,
                "customer_id": identifier[len("user_"):] if identifier.startswith("user_") else identifier,
                "first_order_id": session.first_order_id,
                "order_count": session.order_count,
                "order_ids": orders.ids_for_session(session.session_id),
                "total_saved_cents": session.total_saved_cents,
                "start_time": session.start_time,
                "remaining_seconds": active.remaining_seconds,
                "remaining_formatted": active.remaining_formatted,
                "created_at": datetime.fromtimestamp(session.start_time, tz=dt_timezone.utc).isoformat(),
            }
        )
    return out


def group_orders(orders: Iterable[Order], is_active: Callable[[str], bool]) -> List[dict]:
    """Group orders by session, then session-less orders by customer email.

    Session groups come first, in order of their newest order. Orders inside
    a group are sorted oldest first.
    """
    by_session: Dict[str, dict] = {}
    by_customer: Dict[str, dict] = {}

    for order in orders:
        session_id = order.meta.get("session_id")
        row = {
            "order_id": order.id,
            "number": order.number,
            "date": order.created_at.isoformat() if order.created_at else None,
            "total_cents": order.total_cents,
            "status": order.status.value,
            "paid_shipping": order.meta.get("shipping_paid") is not False,
            "_sort": (order.created_at, order.number or 0),
        }
        customer_name = order.customer.full_name or "Guest"

        if session_id:
            group = by_session.get(session_id)
            if group is None:
                group = by_session[session_id] = {
                    "session_id": session_id,
                    "customer_name": customer_name,
                    "customer_email": order.customer.email,
                    "session_active": is_active(session_id),
                    "orders": [],
                }
        else:
            key = order.customer.email or f"guest_{order.id}"
            group = by_customer.get(key)
            if group is None:
                group = by_customer[key] = {
                    "session_id": None,
                    "customer_name": customer_name,
                    "customer_email": order.customer.email,
                    "session_active": False,
                    "orders": [],
                }
        group["orders"].append(row)

    groups = list(by_session.values()) + list(by_customer.values())
    for group in groups:
        group["orders"].sort(key=lambda r: r["_sort"])
        for row in group["orders"]:
            del row["_sort"]
    return groups


def pickup_point_of(meta: dict) -> Optional[dict]:
    """The pickup point stored in order annotations, or None."""
    if not meta.get("pickup_point_id"):
        return None
    return {
        "id": meta["pickup_point_id"],
        "name": meta.get("pickup_point_name", ""),
        "address": meta.get("pickup_point_address", ""),
        "city": meta.get("pickup_point_city", ""),
        "postal_code": meta.get("pickup_point_zipcode", ""),
        "carrier": meta.get("pickup_point_carrier", ""),
    }


# Checkout annotations shown on the admin order page
ANNOTATION_KEYS = (
    "reference",
    "custom_amount_cents",
    "payment_intent_id",
    "transaction_id",
    "paid",
    "express_checkout",
    "shipping_method_id",
    "delivery_type",
    "shipping_original_cents",
    "shipping_paid",
    "session_id",
    "session_order_index",
    "first_order_id",
)


def order_detail(order: Order, notes: List[str], is_active: Callable[[str], bool]) -> dict:
    """Admin view of one order: addresses, every annotation and the notes.

    Keys missing from ``order.meta`` come back as None so the payload shape
    does not depend on the order's history.
    """
    annotations = {key: order.meta.get(key) for key in ANNOTATION_KEYS}
    session_id = order.meta.get("session_id")
    return {
        "order_id": order.id,
        "number": order.number,
        "status": order.status.value,
        "date": order.created_at.isoformat() if order.created_at else None,
        "amount_cents": order.amount_cents,
        "shipping_cents": order.shipping_cents,
        "total_cents": order.total_cents,
        "currency": order.currency,
        "payment_method": order.payment_method,
        "locale": order.locale,
        "shipping_label": order.shipping_label,
        "customer": order.customer.to_dict(),
        "shipping_address": order.shipping_address,
        "pickup_point": pickup_point_of(order.meta),
        "annotations": annotations,
        "session_active": bool(session_id) and is_active(session_id),
        "notes": notes,
    }
