"""Django ORM implementation of the ``OrderStore`` port."""

from typing import List, Optional

from .domain import Customer, Order, OrderStatus, OrderStore
from .models import OrderModel, OrderNoteModel


def _to_domain(m: OrderModel) -> Order:
    return Order(
        id=str(m.id),
        number=m.number,
        status=OrderStatus(m.status),
        amount_cents=m.amount_cents,
        shipping_cents=m.shipping_cents,
        currency=m.currency,
        payment_method=m.payment_method,
        customer=Customer.from_dict(m.customer),
        locale=m.locale,
        shipping_label=m.shipping_label,
        meta=dict(m.meta or {}),
        created_at=m.created_at,
        shipping_address=dict(m.shipping_address) if m.shipping_address else None,
    )


class OrderRepository(OrderStore):
    def create(self, order: Order) -> Order:
        m = OrderModel.objects.create(
            status=order.status.value,
            amount_cents=order.amount_cents,
            shipping_cents=order.shipping_cents,
            total_cents=order.total_cents,
            currency=order.currency,
            payment_method=order.payment_method,
            shipping_label=order.shipping_label,
            customer=order.customer.to_dict(),
            shipping_address=order.shipping_address or {},
            locale=order.locale,
            meta=dict(order.meta),
        )
        order.id = str(m.id)
        order.number = m.number
        order.created_at = m.created_at
        return order

    def update(self, order: Order) -> None:
        OrderModel.objects.filter(id=order.id).update(status=order.status.value, meta=dict(order.meta))

    def add_note(self, order_id: str, text: str) -> None:
        OrderNoteModel.objects.create(order_id=order_id, text=text)

    def reference_exists(self, reference: str) -> bool:
        return OrderModel.objects.filter(meta__reference=reference).exists()

    def get(self, order_id) -> Optional[Order]:
        m = OrderModel.objects.filter(id=order_id).first()
        return _to_domain(m) if m else None

    def get_by_reference(self, reference: str) -> Optional[Order]:
        m = OrderModel.objects.filter(meta__reference=reference).order_by("number").first()
        return _to_domain(m) if m else None

    def notes(self, order_id) -> List[str]:
        return list(OrderNoteModel.objects.filter(order_id=order_id).values_list("text", flat=True))

    def ids_for_session(self, session_id: str) -> List[str]:
        qs = OrderModel.objects.filter(meta__session_id=session_id).order_by("number")
        return [str(pk) for pk in qs.values_list("id", flat=True)]

    def all_orders(self) -> List[Order]:
        """Every order, newest first."""
        return [_to_domain(m) for m in OrderModel.objects.order_by("-created_at", "-number")]
