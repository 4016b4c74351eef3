"""API tests for rates, pickup locations, pricing and session endpoints.

Admin endpoints are exercised with pytest-django's ``admin_client``; the
public ones with the anonymous ``client``. Session state is seeded through
the real session manager so cookie handling is covered end to end.
"""

import pytest

from apps.shipping import providers

LOCATIONS_URL = "/api/admin/shipping/locations/"
PRICING_URL = "/api/admin/shipping/pricing/"
SETTINGS_URL = "/api/admin/session-settings/"
COOKIE = "checkout_shipping_session"


def _set_pricing(admin_client, type_="chronopost", country="FR", express=1500, normal=900):
    r = admin_client.post(
        PRICING_URL,
        data={"type": type_, "country": country, "express_cents": express, "normal_cents": normal},
        content_type="application/json",
    )
    assert r.status_code == 201, r.content
    return r


def _start_session(order_id="order-1", identifier="ann@example.com"):
    config = providers.get_shipping_config()
    return providers.get_session_manager(config).start(order_id, identifier)


@pytest.mark.django_db
def test_admin_endpoints_require_staff(client):
    assert client.get(LOCATIONS_URL).status_code == 403
    assert client.post(PRICING_URL, data={}, content_type="application/json").status_code == 403
    assert client.get(SETTINGS_URL).status_code == 403


@pytest.mark.django_db
def test_add_list_and_delete_location(admin_client):
    payload = {
        "type": "mondial-relay",
        "name": "Relais Gare",
        "address": "1 rue de la Gare",
        "city": "Lyon",
        "postal_code": "69001",
        "country": "fr",
    }
    r = admin_client.post(LOCATIONS_URL, data=payload, content_type="application/json")
    assert r.status_code == 201
    location = r.json()["location"]
    assert location["id"].startswith("loc_")
    assert len(location["id"]) == len("loc_") + 13
    assert location["country"] == "FR"

    listed = admin_client.get(LOCATIONS_URL).json()
    assert [loc["id"] for loc in listed["mondial_relay"]["locations"]] == [location["id"]]
    assert listed["chronopost"]["locations"] == []

    r = admin_client.delete(f"{LOCATIONS_URL}{location['id']}/?type=mondial_relay")
    assert r.status_code == 200
    r = admin_client.delete(f"{LOCATIONS_URL}{location['id']}/?type=mondial_relay")
    assert r.status_code == 404


@pytest.mark.django_db
def test_add_location_validation(admin_client):
    r = admin_client.post(LOCATIONS_URL, data={"type": "chronopost", "name": "X"}, content_type="application/json")
    assert r.status_code == 400
    assert r.json()["detail"] == "MISSING_FIELD"

    payload = {"type": "ups", "name": "X", "address": "a", "city": "c", "postal_code": "1", "country": "FR"}
    r = admin_client.post(LOCATIONS_URL, data=payload, content_type="application/json")
    assert r.status_code == 400
    assert r.json()["detail"] == "INVALID_TYPE"

    r = admin_client.delete(f"{LOCATIONS_URL}loc_x/")
    assert r.json()["detail"] == "INVALID_TYPE"


@pytest.mark.django_db
def test_pricing_requires_a_price(admin_client):
    r = admin_client.post(
        PRICING_URL,
        data={"type": "chronopost", "country": "FR", "express_cents": 0, "normal_cents": 0},
        content_type="application/json",
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "MISSING_PRICE"


@pytest.mark.django_db
def test_pricing_upsert_and_delete(admin_client):
    _set_pricing(admin_client, express=1500, normal=900)
    r = _set_pricing(admin_client, express=0, normal=1100)
    assert r.json()["pricing"]["normal_cents"] == 1100

    overview = admin_client.get(LOCATIONS_URL).json()
    assert overview["chronopost"]["pricing"]["FR"]["express_cents"] == 0

    assert admin_client.delete(f"{PRICING_URL}FR/?type=chronopost").status_code == 200
    assert admin_client.delete(f"{PRICING_URL}FR/?type=chronopost").status_code == 404


@pytest.mark.django_db
def test_checkout_locations_join_prices(admin_client, client):
    _set_pricing(admin_client, express=1500, normal=900)
    for country in ("FR", "BE"):
        admin_client.post(
            LOCATIONS_URL,
            data={"type": "chronopost", "name": f"Shop {country}", "address": "2 av. Foch",
                  "city": "Paris", "postal_code": "75016", "country": country},
            content_type="application/json",
        )

    r = client.get("/api/shipping/checkout-locations/?type=chronopost&country=FR")
    assert r.status_code == 200
    body = r.json()
    assert len(body) == 1
    assert body[0]["express_cents"] == 1500
    assert body[0]["normal_cents"] == 900
    assert body[0]["display_name"] == "Shop FR - 2 av. Foch, 75016 Paris (FR)"

    everything = client.get("/api/shipping/checkout-locations/?type=chronopost").json()
    assert {loc["country"] for loc in everything} == {"FR", "BE"}
    be = [loc for loc in everything if loc["country"] == "BE"][0]
    assert be["express_cents"] == 0

    assert client.get("/api/shipping/checkout-locations/").status_code == 400


@pytest.mark.django_db
def test_shipping_methods_without_session(admin_client, client):
    _set_pricing(admin_client, express=0, normal=1500)
    r = client.get("/api/shipping-methods/?country=FR")
    assert r.status_code == 200
    rates = r.json()
    assert [rate["id"] for rate in rates] == ["pickup_shipping_chronopost_normal"]
    assert rates[0]["cost_cents"] == 1500


@pytest.mark.django_db
def test_shipping_methods_with_active_session_are_free(admin_client, client):
    _set_pricing(admin_client, express=1500, normal=900)
    session = _start_session()
    client.cookies[COOKIE] = session.session_id

    rates = client.get("/api/shipping-methods/?country=FR&locale=en").json()
    assert all(rate["cost_cents"] == 0 for rate in rates)
    assert rates[0]["label"].endswith("(Free - Active Session)")
    assert rates[0]["meta"]["original_cost"] == 1500


@pytest.mark.django_db
def test_shipping_methods_invalid_locale(client):
    r = client.get("/api/shipping-methods/?country=FR&locale=xx")
    assert r.status_code == 400
    assert r.json()["detail"] == "INVALID_LOCALE"


@pytest.mark.django_db
def test_calculate_shipping(admin_client, client):
    _set_pricing(admin_client, express=1500, normal=900)
    r = client.post(
        "/api/shipping/calculate/",
        data={"amount_cents": 4000, "country": "fr", "city": "Paris", "postal_code": "75001"},
        content_type="application/json",
    )
    assert r.status_code == 200
    body = r.json()
    assert len(body["shipping_rates"]) == 2
    assert body["shipping_rates"][0] == {
        "id": "pickup_shipping_chronopost_express",
        "label": "Pickup Point Delivery - Chronopost Express",
        "amount_cents": 1500,
    }
    assert body["line_items"][0] == {"label": "Product", "amount_cents": 4000}
    assert body["total_cents"] == 5500


@pytest.mark.django_db
def test_calculate_shipping_without_rates(client):
    r = client.post("/api/shipping/calculate/", data={"amount_cents": 4000, "country": "DE"}, content_type="application/json")
    body = r.json()
    assert body["shipping_rates"] == []
    assert len(body["line_items"]) == 1
    assert body["total_cents"] == 4000


@pytest.mark.django_db
def test_session_status_and_clear(client):
    r = client.get("/api/shipping-session/status/")
    assert r.json() == {"active": False, "message": "No active shipping session"}

    session = _start_session()
    client.cookies[COOKIE] = session.session_id
    body = client.get("/api/shipping-session/status/").json()
    assert body["active"] is True
    assert body["session_id"] == session.session_id
    assert body["order_count"] == 1
    assert 0 < body["remaining_seconds"] <= 5 * 3600
    assert "hours" in body["remaining_formatted"]

    r = client.post("/api/shipping-session/clear/")
    assert r.json()["success"] is True
    assert r.cookies[COOKIE].value == ""

    client.cookies[COOKIE] = session.session_id
    r = client.post("/api/shipping-session/clear/")
    assert r.json()["success"] is False


@pytest.mark.django_db
def test_status_clears_cookie_for_unknown_session(client):
    client.cookies[COOKIE] = "sess_unknown"
    r = client.get("/api/shipping-session/status/")
    assert r.json()["active"] is False
    assert r.cookies[COOKIE].value == ""
    assert r.cookies[COOKIE]["max-age"] == 0


@pytest.mark.django_db
def test_session_settings_roundtrip(admin_client):
    assert admin_client.get(SETTINGS_URL).json() == {"enabled": True, "duration_hours": 5}

    r = admin_client.post(SETTINGS_URL, data={"enabled": False, "duration_hours": 12}, content_type="application/json")
    assert r.status_code == 200
    assert admin_client.get(SETTINGS_URL).json() == {"enabled": False, "duration_hours": 12}


@pytest.mark.django_db
@pytest.mark.parametrize("hours", [0, 49])
def test_session_settings_bounds(admin_client, hours):
    r = admin_client.post(SETTINGS_URL, data={"enabled": True, "duration_hours": hours}, content_type="application/json")
    assert r.status_code == 400


@pytest.mark.django_db
def test_disabled_sessions_never_zero_rates(admin_client, client):
    _set_pricing(admin_client, express=1500, normal=900)
    session = _start_session()
    admin_client.post(SETTINGS_URL, data={"enabled": False, "duration_hours": 5}, content_type="application/json")

    client.cookies[COOKIE] = session.session_id
    rates = client.get("/api/shipping-methods/?country=FR").json()
    assert [rate["cost_cents"] for rate in rates] == [1500, 900]
    assert client.get("/api/shipping-session/status/").json()["active"] is False
