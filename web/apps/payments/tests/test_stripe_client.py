"""Unit tests for the payment intent HTTP client.

``httpx.Client.post`` is monkeypatched so the tests assert on the exact form
sent to the provider and on how answers are mapped.
"""

import httpx
import pytest

from apps.payments.domain import PaymentProviderError
from apps.payments.http_adapters import StripeIntentClient


class DummyResp:
    """Minimal httpx-like response stub.

    Args:
        status_code (int): HTTP status code to simulate.
        json_data (dict | None): JSON body to return from ``json()``.
    """

    def __init__(self, status_code=200, json_data=None):
        self.status_code = status_code
        self._json = json_data or {}

    def json(self):
        return self._json


def test_create_intent_sends_form(monkeypatch):
    seen = {}

    def fake_post(self, url, data=None, headers=None, **kw):
        seen.update(url=url, data=data, headers=headers)
        return DummyResp(200, {"id": "pi_1", "client_secret": "pi_1_secret_2", "amount": 2599, "currency": "eur"})

    monkeypatch.setattr(httpx.Client, "post", fake_post, raising=True)
    client = StripeIntentClient(base_url="https://api.stripe.test/")
    intent = client.create_intent(2599, "eur", "sk_test_abc")

    assert seen["url"] == "https://api.stripe.test/v1/payment_intents"
    assert seen["data"] == {
        "amount": "2599",
        "currency": "eur",
        "automatic_payment_methods[enabled]": "true",
        "capture_method": "automatic",
    }
    assert seen["headers"]["Authorization"] == "Bearer sk_test_abc"
    assert intent.id == "pi_1"
    assert intent.client_secret == "pi_1_secret_2"
    assert intent.amount_cents == 2599


def test_create_intent_provider_error(monkeypatch):
    def fake_post(self, url, data=None, headers=None, **kw):
        return DummyResp(402, {"error": {"message": "Your card was declined.", "code": "card_declined", "type": "card_error"}})

    monkeypatch.setattr(httpx.Client, "post", fake_post, raising=True)
    with pytest.raises(PaymentProviderError) as e:
        StripeIntentClient().create_intent(1000, "eur", "sk")
    assert e.value.code == "card_declined"
    assert e.value.type == "card_error"
    assert e.value.status_code == 402
    assert str(e.value) == "Your card was declined."


def test_create_intent_without_client_secret(monkeypatch):
    def fake_post(self, url, data=None, headers=None, **kw):
        return DummyResp(200, {"id": "pi_1"})

    monkeypatch.setattr(httpx.Client, "post", fake_post, raising=True)
    with pytest.raises(PaymentProviderError) as e:
        StripeIntentClient().create_intent(1000, "eur", "sk")
    assert e.value.code == "unknown"


def test_create_intent_network_error_is_not_retried(monkeypatch):
    calls = []

    def fake_post(self, url, data=None, headers=None, **kw):
        calls.append(url)
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(httpx.Client, "post", fake_post, raising=True)
    with pytest.raises(httpx.ConnectError):
        StripeIntentClient().create_intent(1000, "eur", "sk")
    assert len(calls) == 1
