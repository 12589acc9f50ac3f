"""HTTP surface: uniform {success, ...} bodies, auth header, dependency-injected providers."""

import json
import time

import httpx

from bgremoval.core.config import get_settings
from bgremoval.core.security import sign_svix_payload
from bgremoval.deps import get_razorpay_gateway, get_removal_client, get_stripe_gateway
from bgremoval.main import app
from bgremoval.models.transaction import Transaction
from bgremoval.models.user import User
from bgremoval.services.removal import ClipdropClient
from conftest import FakeGateway, auth_headers


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_credits(client, make_user):
    await make_user(credit_balance=9)
    r = await client.get("/api/user/credits", headers=auth_headers())
    assert r.json() == {"success": True, "credits": 9}


async def test_missing_token(client):
    r = await client.get("/api/user/credits")
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Not Authorized Login Again"


async def test_bearer_token_accepted(client, make_user):
    await make_user(credit_balance=1)
    token = auth_headers()["token"]
    r = await client.get("/api/user/credits", headers={"Authorization": f"Bearer {token}"})
    assert r.json()["credits"] == 1


async def test_pay_then_verify_stripe_once(client, make_user):
    await make_user(credit_balance=20)
    gateway = FakeGateway(name="stripe")
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway

    r = await client.post(
        "/api/user/pay-stripe",
        json={"planId": "Advanced"},
        headers={**auth_headers(), "origin": "https://app.example.com"},
    )
    assert r.json()["success"] is True
    assert gateway.checkouts[0].origin == "https://app.example.com"
    tx = await Transaction.find_one(Transaction.clerk_id == "user_1")

    payload = {"transactionId": str(tx.id), "success": "true"}
    first = await client.post("/api/user/verify-stripe", json=payload, headers=auth_headers())
    second = await client.post("/api/user/verify-stripe", json=payload, headers=auth_headers())

    assert first.json() == {"success": True, "message": "Credits Added"}
    assert second.json()["success"] is False
    assert second.json()["message"] == "Payment Already Verified"
    assert (await User.find_one(User.clerk_id == "user_1")).credit_balance == 520


async def test_pay_razor_unknown_plan(client, make_user):
    await make_user()
    app.dependency_overrides[get_razorpay_gateway] = lambda: FakeGateway()
    r = await client.post("/api/user/pay-razor", json={"planId": "Gold"}, headers=auth_headers())
    assert r.json()["success"] is False
    assert r.json()["message"] == "plan not found"


async def test_pay_razor_returns_order(client, make_user):
    await make_user()
    app.dependency_overrides[get_razorpay_gateway] = lambda: FakeGateway()
    r = await client.post("/api/user/pay-razor", json={"planId": "Basic"}, headers=auth_headers())
    body = r.json()
    assert body["success"] is True
    assert body["order"]["id"].startswith("ref_")


async def test_verify_razor_failed_payment(client, make_user):
    await make_user()
    app.dependency_overrides[get_razorpay_gateway] = lambda: FakeGateway(paid=False)
    r = await client.post("/api/user/verify-razor", json={"razorpay_order_id": "order_1"}, headers=auth_headers())
    assert r.json()["success"] is False
    assert r.json()["message"] == "Payment Failed"


async def test_remove_bg(client, make_user):
    await make_user(credit_balance=2)
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, content=b"png", headers={"content-type": "image/png"})
    )
    app.dependency_overrides[get_removal_client] = lambda: ClipdropClient("k", "https://clipdrop.test", transport=transport)

    r = await client.post(
        "/api/image/remove-bg",
        files={"image": ("cat.jpg", b"jpegbytes", "image/jpeg")},
        headers=auth_headers(),
    )
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Background Removed"
    assert body["creditBalance"] == 1
    assert body["resultImage"].startswith("data:image/png;base64,")


async def test_remove_bg_no_credits(client, make_user):
    await make_user(credit_balance=0)
    app.dependency_overrides[get_removal_client] = lambda: ClipdropClient("k", "https://clipdrop.test")
    r = await client.post(
        "/api/image/remove-bg",
        files={"image": ("cat.jpg", b"jpegbytes", "image/jpeg")},
        headers=auth_headers(),
    )
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "No Credit Balance"
    assert body["creditBalance"] == 0


async def test_clerk_webhook_creates_user(client):
    event = {
        "type": "user.created",
        "data": {"id": "user_9", "email_addresses": [{"email_address": "n@example.com"}], "first_name": "N"},
    }
    body = json.dumps(event).encode()
    ts = str(int(time.time()))
    headers = {
        "svix-id": "msg_9",
        "svix-timestamp": ts,
        "svix-signature": sign_svix_payload(get_settings().clerk_webhook_secret, "msg_9", ts, body),
        "content-type": "application/json",
    }
    r = await client.post("/api/user/webhooks", content=body, headers=headers)
    assert r.json() == {}
    assert await User.find_one(User.clerk_id == "user_9") is not None


async def test_clerk_webhook_rejects_bad_signature(client):
    r = await client.post(
        "/api/user/webhooks",
        content=b'{"type":"user.created","data":{"id":"user_9"}}',
        headers={"svix-id": "m", "svix-timestamp": str(int(time.time())), "svix-signature": "v1,AAAA"},
    )
    assert r.json()["success"] is False
    assert await User.find_one(User.clerk_id == "user_9") is None
