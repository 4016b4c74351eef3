"""Unit tests for pickup rate computation and the session discount."""

import pytest

from apps.shipping.domain import (
    METHOD_ID,
    PickupLocation,
    PricingRule,
    Provider,
    ShippingRate,
    apply_session_discount,
    compute_rates,
)

TITLE = "Pickup Point Delivery"


def _pricing(chrono=None, relay=None):
    return {
        Provider.CHRONOPOST: chrono or {},
        Provider.MONDIAL_RELAY: relay or {},
    }


def test_rates_follow_provider_then_speed_order():
    pricing = _pricing(
        chrono={"FR": PricingRule(express_cents=1500, normal_cents=900)},
        relay={"FR": PricingRule(express_cents=1200, normal_cents=500)},
    )
    rates = compute_rates("fr", pricing, TITLE)
    assert [r.id for r in rates] == [
        "pickup_shipping_chronopost_express",
        "pickup_shipping_chronopost_normal",
        "pickup_shipping_mondial_relay_express",
        "pickup_shipping_mondial_relay_normal",
    ]
    assert [r.cost_cents for r in rates] == [1500, 900, 1200, 500]
    assert rates[0].label == "Pickup Point Delivery - Chronopost Express"
    assert rates[3].label == "Pickup Point Delivery - Mondial Relay Normal"
    assert rates[2].meta == {"delivery_type": "express", "shipping_method": "mondial_relay", "provider": "Mondial Relay"}


def test_zero_price_is_omitted():
    """express=0, normal=1500 yields exactly the normal rate."""
    pricing = _pricing(chrono={"BE": PricingRule(express_cents=0, normal_cents=1500)})
    rates = compute_rates("BE", pricing, TITLE)
    assert len(rates) == 1
    assert rates[0].id == "pickup_shipping_chronopost_normal"
    assert rates[0].cost_cents == 1500


def test_unknown_country_has_no_rates():
    pricing = _pricing(chrono={"FR": PricingRule(express_cents=1500, normal_cents=900)})
    assert compute_rates("DE", pricing, TITLE) == []


def test_session_discount_zeroes_pickup_rates_only():
    pickup = ShippingRate(id=f"{METHOD_ID}_chronopost_express", label="Pickup - Chronopost Express", cost_cents=1500)
    flat = ShippingRate(id="flat_rate:1", label="Flat rate", cost_cents=700, method_id="flat_rate")

    out = apply_session_discount([pickup, flat], session_active=True)

    assert out[0].cost_cents == 0
    assert out[0].label == "Pickup - Chronopost Express (Free - Active Session)"
    assert out[0].meta["original_cost"] == 1500
    assert out[0].meta["session_discount"] == 1500
    assert out[0].original_cost_cents == 1500
    assert out[1] == flat


def test_no_discount_without_session():
    pickup = ShippingRate(id=f"{METHOD_ID}_chronopost_express", label="x", cost_cents=1500)
    out = apply_session_discount([pickup], session_active=False)
    assert out[0].cost_cents == 1500
    assert out[0].original_cost_cents == 0


@pytest.mark.parametrize("raw,expected", [
    ("chronopost", Provider.CHRONOPOST),
    ("mondial_relay", Provider.MONDIAL_RELAY),
    ("mondial-relay", Provider.MONDIAL_RELAY),
    (" Chronopost ", Provider.CHRONOPOST),
])
def test_provider_parse(raw, expected):
    assert Provider.parse(raw) is expected


@pytest.mark.parametrize("raw", ["", None, "ups"])
def test_provider_parse_rejects_unknown(raw):
    with pytest.raises(ValueError) as e:
        Provider.parse(raw)
    assert str(e.value) == "INVALID_TYPE"


def test_location_display_name():
    loc = PickupLocation(id="loc_1", name="Relais Gare", address="1 rue de la Gare", city="Lyon", postal_code="69001", country="FR")
    assert loc.display_name == "Relais Gare - 1 rue de la Gare, 69001 Lyon (FR)"
    assert PickupLocation.from_dict(loc.to_dict()) == loc
