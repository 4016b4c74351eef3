"""Unit tests for ``CheckoutService``.

An in-memory ``OrderStore`` and ``InMemorySessionStore`` with a fake clock
drive the service, so the order flow and the session window are checked
without a database.
"""

import pytest

from apps.checkout.domain import (
    Address,
    CheckoutService,
    Customer,
    Order,
    OrderRequest,
    OrderStatus,
    PickupPoint,
    ShippingSelection,
)
from apps.payments.domain import GatewayRegistry, PaymentGateway, GatewayKind
from apps.shipping.adapters import InMemorySessionStore
from apps.shipping.config import ShippingConfig
from apps.shipping.domain import PricingRule, Provider
from apps.shipping.sessions import ShippingSessionManager

HOUR = 3600
EXPRESS = "pickup_shipping_chronopost_express"


class MemoryOrders:
    """OrderStore stub keeping orders and notes in dicts."""

    def __init__(self):
        self.orders = {}
        self.notes = {}
        self.fail_on_update = False

    def create(self, order: Order) -> Order:
        order.id = f"order-{len(self.orders) + 1}"
        order.number = len(self.orders) + 1
        self.orders[order.id] = order
        self.notes[order.id] = []
        return order

    def update(self, order: Order) -> None:
        if self.fail_on_update:
            raise RuntimeError("db down")
        self.orders[order.id] = order

    def add_note(self, order_id, text):
        self.notes[order_id].append(text)

    def reference_exists(self, reference):
        return any(o.meta.get("reference") == reference for o in self.orders.values())


class FakeClock:
    def __init__(self, now=1_700_000_000):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def orders():
    return MemoryOrders()


@pytest.fixture
def config():
    return ShippingConfig(
        session_enabled=True,
        session_hours=5,
        pricing={Provider.CHRONOPOST: {"FR": PricingRule(express_cents=1500, normal_cents=900)}},
    )


@pytest.fixture
def service(orders, store, clock):
    registry = GatewayRegistry([
        PaymentGateway(id="stripe", title="Credit card", kind=GatewayKind.CARD),
        PaymentGateway(id="cod", title="Cash on delivery", kind=GatewayKind.CASH),
        PaymentGateway(id="bacs", title="Bank transfer", kind=GatewayKind.OTHER),
        PaymentGateway(id="cheque", title="Cheque", kind=GatewayKind.MANUAL, enabled=False),
    ])
    return CheckoutService(orders, registry, ShippingSessionManager(store, 5 * HOUR, clock=clock), currency="EUR")


def _request(**overrides):
    data = dict(
        reference="REF-1",
        amount_cents=4000,
        customer=Customer(email="ann@example.com", first_name="Ann", last_name="Lee", country="FR"),
        payment_method="bacs",
        shipping=ShippingSelection(EXPRESS, 1500),
    )
    data.update(overrides)
    return OrderRequest(**data)


@pytest.mark.parametrize("amount", [0, -100])
def test_invalid_amount_persists_nothing(service, orders, config, amount):
    with pytest.raises(ValueError) as e:
        service.place_order(_request(amount_cents=amount), config)
    assert str(e.value) == "INVALID_AMOUNT"
    assert orders.orders == {}


@pytest.mark.parametrize("method", ["paypal", "cheque", ""])
def test_unknown_or_disabled_gateway(service, orders, config, method):
    with pytest.raises(ValueError) as e:
        service.place_order(_request(payment_method=method), config)
    assert str(e.value) == "INVALID_PAYMENT_METHOD"
    assert orders.orders == {}


def test_invalid_locale(service, orders, config):
    with pytest.raises(ValueError) as e:
        service.place_order(_request(locale="it"), config)
    assert str(e.value) == "INVALID_LOCALE"
    assert orders.orders == {}


def test_payment_intent_marks_order_paid(service, orders, config):
    result = service.place_order(_request(payment_method="stripe", payment_intent_id="pi_123"), config)
    order = result.order
    assert order.status is OrderStatus.PROCESSING
    assert order.meta["paid"] is True
    assert order.meta["payment_intent_id"] == "pi_123"
    assert orders.notes[order.id][0] == "Payment confirmed via Credit card"
    assert orders.notes[order.id][1] == "Order created. Reference: REF-1"


def test_cash_gateway_is_processing(service, orders, config):
    order = service.place_order(_request(payment_method="cod"), config).order
    assert order.status is OrderStatus.PROCESSING
    assert orders.notes[order.id][0] == "Payment via Cash on delivery"


def test_other_gateway_is_pending(service, orders, config):
    order = service.place_order(_request(), config).order
    assert order.status is OrderStatus.PENDING
    assert orders.notes[order.id][0] == "Awaiting payment confirmation"


def test_first_order_starts_session(service, orders, store, config):
    result = service.place_order(_request(), config)
    order = result.order

    assert order.shipping_cents == 1500
    assert order.total_cents == 5500
    assert order.meta["shipping_paid"] is True
    assert order.meta["session_order_index"] == 1
    assert order.meta["session_id"] == result.session_token
    assert result.session_max_age == 5 * HOUR
    assert store.ttl(result.session_token) == 5 * HOUR
    assert orders.notes[order.id][-1] == "New shipping session created. Free shipping on next orders for 5 hours."


def test_second_order_in_window_ships_free(service, orders, store, clock, config):
    first = service.place_order(_request(), config)
    token = first.session_token

    clock.now += 2 * HOUR
    second = service.place_order(_request(reference="REF-2"), config, session_token=token)
    order = second.order

    assert second.session_token is None
    assert order.shipping_cents == 0
    assert order.total_cents == 4000
    assert order.meta["shipping_paid"] is False
    assert order.meta["session_order_index"] == 2
    assert order.meta["first_order_id"] == first.order.id
    assert order.meta["shipping_original_cents"] == 1500
    assert second.session == {"session_id": token, "order_count": 2, "total_saved_cents": 1500}
    assert store.ttl(token) == 3 * HOUR
    assert "Free shipping applied (order 2 of session)" in orders.notes[order.id]


def test_foreign_rate_in_session_saves_nothing(service, config):
    token = service.place_order(_request(), config).session_token
    result = service.place_order(
        _request(reference="REF-2", shipping=ShippingSelection("flat_rate:1", 700)), config, session_token=token
    )
    assert result.order.shipping_cents == 700
    assert result.session["total_saved_cents"] == 0


def test_expired_session_starts_a_new_one(service, clock, config):
    token = service.place_order(_request(), config).session_token
    clock.now += 5 * HOUR
    result = service.place_order(_request(reference="REF-2"), config, session_token=token)
    assert result.order.shipping_cents == 1500
    assert result.session_token not in (None, token)


def test_unknown_token_asks_to_clear_cookie_without_shipping(service, config):
    result = service.place_order(_request(shipping=None), config, session_token="sess_gone")
    assert result.clear_cookie is True
    assert result.session_token is None
    assert "session_id" not in result.order.meta


def test_no_identifier_no_session(service, config):
    result = service.place_order(_request(customer=Customer(country="FR")), config)
    assert result.session_token is None
    assert result.order.meta["shipping_paid"] is True
    assert "session_id" not in result.order.meta


def test_authenticated_user_identifier(service, store, config):
    result = service.place_order(_request(customer=Customer(user_id=7, country="FR")), config)
    assert store.get(result.session_token)["customer_identifier"] == "user_7"


def test_sessions_disabled(service, store, config):
    disabled = ShippingConfig(session_enabled=False, pricing=config.pricing)
    result = service.place_order(_request(), disabled)
    assert result.session_token is None
    assert list(store.items()) == []


def test_pickup_point_annotations(service, config):
    pp = PickupPoint(id="loc_1", name="Relais", address="1 rue", city="Lyon", postal_code="69001", carrier="chronopost")
    order = service.place_order(_request(pickup_point=pp), config).order
    assert order.meta["pickup_point_id"] == "loc_1"
    assert order.meta["pickup_point_zipcode"] == "69001"
    assert order.meta["pickup_point_carrier"] == "chronopost"
    assert order.meta["delivery_type"] == "express"


def test_no_rollback_when_annotation_fails(service, orders, config):
    orders.fail_on_update = True
    with pytest.raises(RuntimeError):
        service.place_order(_request(), config)
    assert len(orders.orders) == 1


def test_validate_reference(service, config):
    assert service.validate_reference("REF-1") is True
    service.place_order(_request(), config)
    assert service.validate_reference("REF-1") is False
    with pytest.raises(ValueError) as e:
        service.validate_reference("  ")
    assert str(e.value) == "MISSING_REFERENCE"


def test_express_order_prices_shipping_for_delivery_country(service, config):
    req = _request(
        payment_method="stripe",
        shipping=ShippingSelection(EXPRESS, 999),
        shipping_address=Address(first_name="Ann", city="Madrid", country="ES"),
        express=True,
    )
    order = service.place_order(req, config).order
    # no ES pricing: the client cost is kept
    assert order.shipping_cents == 999
    assert order.shipping_address["country"] == "ES"
    assert order.meta["express_checkout"] is True
    assert order.status is OrderStatus.PENDING


def test_regular_order_has_no_delivery_address(service, config):
    order = service.place_order(_request(), config).order
    assert order.shipping_address is None
    assert "express_checkout" not in order.meta
