import json
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests
from requests.auth import HTTPBasicAuth

from apps.boosts import services
from apps.boosts.errors import ErrorKind
from apps.boosts.gateway import GatewayResult
from apps.boosts.models import Boost

pytestmark = [pytest.mark.django_db, pytest.mark.payment]

PAY_URL = "/api/boosts/pay/"
CALLBACK_URL = "/api/boosts/pay/callback/"
PAYHERO_BODY = '{"success": true, "status": "QUEUED", "reference": "E8UWT7CLUW", "CheckoutRequestID": "ws_CO_1"}'


@pytest.fixture
def payhero_post(payhero_response):
    with patch("apps.boosts.gateway.requests.post", return_value=payhero_response(201, PAYHERO_BODY)) as post:
        yield post


def test_pay_success(api_client, payhero_post):
    resp = api_client.post(
        PAY_URL,
        {"phone": "0712 345 678", "fee": 150.75, "customer_name": "Jane Doe"},
        format="json",
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Payment initiated successfully"
    assert data["data"] == PAYHERO_BODY
    assert data["reference"].startswith("BOOST-")
    assert "boost_id" not in data

    _, kwargs = payhero_post.call_args
    assert kwargs["json"] == {
        "amount": 150,
        "phone_number": "254712345678",
        "channel_id": 911,
        "provider": "m-pesa",
        "external_reference": data["reference"],
        "customer_name": "Jane Doe",
        "callback_url": "https://example.com/api/boosts/pay/callback/",
    }
    assert kwargs["auth"] == HTTPBasicAuth("test-user", "test-pass")


def test_pay_defaults_customer_name(api_client, payhero_post):
    resp = api_client.post(PAY_URL, {"phone": "712345678", "fee": 20}, format="json")

    assert resp.status_code == 200
    assert payhero_post.call_args.kwargs["json"]["customer_name"] == "Customer"


def test_pay_truncates_fee_with_extra_precision(api_client, payhero_post):
    resp = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 150.999}, format="json")

    assert resp.status_code == 200
    assert payhero_post.call_args.kwargs["json"]["amount"] == 150


def test_pay_accepts_float_noise_in_fee(api_client, payhero_post):
    resp = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 0.1 + 0.2}, format="json")

    assert resp.status_code == 200
    assert payhero_post.call_args.kwargs["json"]["amount"] == 0


def test_pay_generates_fresh_references(api_client, payhero_post):
    first = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 20}, format="json").json()
    second = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 20}, format="json").json()
    assert first["reference"] != second["reference"]


def test_pay_without_boost_does_not_touch_records(api_client, make_boost, payhero_post):
    boost = make_boost()
    api_client.post(PAY_URL, {"phone": "0712345678", "fee": 20}, format="json")
    boost.refresh_from_db()
    assert boost.external_reference is None


@pytest.mark.parametrize(
    "phone, message",
    [
        ("123", "Invalid phone number"),
        ("", "Invalid phone number"),
        ("254812345678", "Invalid Safaricom number"),
    ],
)
def test_pay_invalid_phone(api_client, phone, message):
    with patch("apps.boosts.gateway.requests.post") as post:
        resp = api_client.post(PAY_URL, {"phone": phone, "fee": 20}, format="json")

    post.assert_not_called()
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": message}


def test_pay_requires_fee_without_boost(api_client):
    resp = api_client.post(PAY_URL, {"phone": "0712345678"}, format="json")
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert "fee" in resp.json()["details"]


def test_pay_gateway_client_error(api_client, payhero_response):
    upstream = '{"error_message": "insufficient balance"}'
    with patch("apps.boosts.gateway.requests.post", return_value=payhero_response(403, upstream)):
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 20}, format="json")

    assert resp.status_code == 403
    assert resp.json() == {"success": False, "error": "PayHero API error", "details": upstream}


def test_pay_gateway_server_error_hides_details(api_client, payhero_response):
    with patch("apps.boosts.gateway.requests.post", return_value=payhero_response(502, "bad gateway")):
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 20}, format="json")

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Payment initiation failed"}


def test_pay_network_error_exposes_message_when_enabled(api_client, settings):
    settings.BOOSTS_EXPOSE_ERROR_DETAILS = True
    with patch("apps.boosts.gateway.requests.post", side_effect=requests.Timeout("read timed out")):
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 20}, format="json")

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "read timed out"}


def test_pay_unexpected_exception(api_client):
    with patch("apps.boosts.views.services.initiate_boost_payment", side_effect=RuntimeError("kaboom")):
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "fee": 20}, format="json")

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Payment initiation failed"}


def test_pay_for_boost_links_reference(api_client, make_boost, payhero_post):
    boost = make_boost(fee="250.00")

    resp = api_client.post(PAY_URL, {"phone": "0712345678", "boost_id": boost.pk}, format="json")

    assert resp.status_code == 200
    data = resp.json()
    assert data["boost_id"] == boost.pk
    assert payhero_post.call_args.kwargs["json"]["amount"] == 250

    boost.refresh_from_db()
    assert boost.external_reference == data["reference"]
    assert boost.paid is False


def test_pay_for_boost_gateway_failure_keeps_boost_unlinked(api_client, make_boost, payhero_response):
    boost = make_boost()
    with patch("apps.boosts.gateway.requests.post", return_value=payhero_response(400, "{}")):
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "boost_id": boost.pk}, format="json")

    assert resp.status_code == 400
    boost.refresh_from_db()
    assert boost.external_reference is None


def test_pay_for_unknown_boost(api_client):
    with patch("apps.boosts.gateway.requests.post") as post:
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "boost_id": 999}, format="json")

    post.assert_not_called()
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_pay_for_boost_already_initiated(api_client, make_boost):
    boost = make_boost(external_reference="BOOST-existing")
    with patch("apps.boosts.gateway.requests.post") as post:
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "boost_id": boost.pk}, format="json")

    post.assert_not_called()
    assert resp.status_code == 409
    boost.refresh_from_db()
    assert boost.external_reference == "BOOST-existing"


def test_callback_marks_boost_paid(api_client, make_boost):
    boost = make_boost(external_reference="BOOST-123")

    resp = api_client.post(CALLBACK_URL, {"success": True, "reference": "BOOST-123"}, format="json")

    assert resp.status_code == 200
    assert resp.json() == "Callback received"
    boost.refresh_from_db()
    assert boost.paid is True
    assert boost.payment_date is not None


def test_callback_is_safe_to_repeat(api_client, make_boost):
    boost = make_boost(external_reference="BOOST-123")
    payload = {"success": True, "reference": "BOOST-123"}

    api_client.post(CALLBACK_URL, payload, format="json")
    resp = api_client.post(CALLBACK_URL, payload, format="json")

    assert resp.status_code == 200
    boost.refresh_from_db()
    assert boost.paid is True
    assert boost.payment_date is not None


@pytest.mark.parametrize(
    "payload",
    [
        {"success": False, "reference": "BOOST-123"},
        {"success": True, "reference": "BOOST-unknown"},
        {"success": "true", "reference": "BOOST-123"},
        {"reference": "BOOST-123"},
        {"success": True},
        {},
        [{"success": True, "reference": "BOOST-123"}],
        "BOOST-123",
    ],
)
def test_callback_ignored_cases_still_acknowledged(api_client, make_boost, payload):
    boost = make_boost(external_reference="BOOST-123")

    resp = api_client.post(CALLBACK_URL, payload, format="json")

    assert resp.status_code == 200
    assert resp.json() == "Callback received"
    boost.refresh_from_db()
    assert boost.paid is False
    assert boost.payment_date is None


def test_pay_then_callback_round_trip(api_client, make_boost, payhero_post):
    boost = make_boost()
    reference = api_client.post(
        PAY_URL, {"phone": "+254712345678", "boost_id": boost.pk}, format="json"
    ).json()["reference"]

    api_client.post(CALLBACK_URL, {"success": True, "reference": reference}, format="json")

    boost.refresh_from_db()
    assert boost.paid is True
    assert Decimal(api_client.get("/api/boosts/paid/total/").json()["total"]) == Decimal("150")
    assert api_client.get("/api/boosts/paid/count/").json() == {"count": 1}


def test_callback_accepts_raw_json_body(api_client, make_boost):
    boost = make_boost(external_reference="BOOST-raw")
    resp = api_client.generic(
        "POST",
        CALLBACK_URL,
        json.dumps({"success": True, "reference": "BOOST-raw"}),
        content_type="application/json",
    )
    assert resp.status_code == 200
    assert Boost.objects.get(pk=boost.pk).paid is True


def test_overlapping_pays_for_one_boost_charge_once(make_boost):
    boost = make_boost()
    first_copy = Boost.objects.get(pk=boost.pk)
    second_copy = Boost.objects.get(pk=boost.pk)
    gateway = Mock()
    gateway.initiate.return_value = GatewayResult(body="{}")

    first = services.initiate_boost_payment(gateway, "0712345678", boost=first_copy)
    second = services.initiate_boost_payment(gateway, "0712345678", boost=second_copy)

    assert first.ok
    assert second.error.kind == ErrorKind.ALREADY_INITIATED
    assert gateway.initiate.call_count == 1
    boost.refresh_from_db()
    assert boost.external_reference == first.reference


def test_gateway_exception_releases_boost_claim(make_boost):
    boost = make_boost()
    gateway = Mock()
    gateway.initiate.side_effect = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        services.initiate_boost_payment(gateway, "0712345678", boost=boost)

    boost.refresh_from_db()
    assert boost.external_reference is None


def test_pay_for_boost_can_retry_after_gateway_failure(api_client, make_boost, payhero_response):
    boost = make_boost()
    with patch("apps.boosts.gateway.requests.post", return_value=payhero_response(400, "{}")):
        api_client.post(PAY_URL, {"phone": "0712345678", "boost_id": boost.pk}, format="json")
    with patch("apps.boosts.gateway.requests.post", return_value=payhero_response(201, PAYHERO_BODY)):
        resp = api_client.post(PAY_URL, {"phone": "0712345678", "boost_id": boost.pk}, format="json")

    assert resp.status_code == 200
    boost.refresh_from_db()
    assert boost.external_reference == resp.json()["reference"]
