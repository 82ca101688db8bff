"""Webhook and payment routes."""

import pytest

from conftest import FakeCheckout, checkout_completed_event


@pytest.mark.asyncio
async def test_codemagic_webhook_creates_unknown_build(client):
    response = await client.post(
        "/api/v1/webhooks/codemagic",
        json={"buildId": "cm-external", "workflowId": "ios-workflow", "status": "queued"},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "build_id": "cm-external", "status": "queued"}


@pytest.mark.asyncio
async def test_codemagic_webhook_requires_build_id(client):
    response = await client.post("/api/v1/webhooks/codemagic", json={"status": "finished"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_codemagic_webhook_token_is_checked_when_configured(client, monkeypatch):
    from appify.config import settings

    monkeypatch.setattr(settings, "codemagic_webhook_token", "s3cret")
    payload = {"buildId": "cm-1", "status": "building"}

    rejected = await client.post("/api/v1/webhooks/codemagic", json=payload)
    assert rejected.status_code == 401

    accepted = await client.post("/api/v1/webhooks/codemagic", json=payload, headers={"X-Codemagic-Token": "s3cret"})
    assert accepted.status_code == 200


@pytest.mark.asyncio
async def test_stripe_webhook_rejects_bad_signature(client, app):
    app.state.checkout = FakeCheckout(webhook_secret="whsec_test")
    event = checkout_completed_event("cm-1", "cs_1")

    missing = await client.post("/api/v1/webhooks/stripe", json=event)
    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "SIGNATURE_INVALID"

    forged = await client.post("/api/v1/webhooks/stripe", json=event, headers={"Stripe-Signature": "t=1,v1=nope"})
    assert forged.status_code == 400

    signed = await client.post(
        "/api/v1/webhooks/stripe", json=event, headers={"Stripe-Signature": "t=1,v1=whsec_test"}
    )
    assert signed.status_code == 200
    assert signed.json() == {"received": True, "duplicate": False}


@pytest.mark.asyncio
async def test_stripe_webhook_without_build_id_is_bad_request(client):
    response = await client.post("/api/v1/webhooks/stripe", json=checkout_completed_event(None, "cs_1"))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_stripe_webhook_rejects_non_json(client):
    response = await client.post(
        "/api/v1/webhooks/stripe", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_stripe_webhook_duplicate_delivery(client):
    event = checkout_completed_event("cm-1", "cs_1", event_id="evt_same")
    first = await client.post("/api/v1/webhooks/stripe", json=event)
    second = await client.post("/api/v1/webhooks/stripe", json=event)
    assert first.json()["duplicate"] is False
    assert second.json()["duplicate"] is True


@pytest.mark.asyncio
async def test_checkout_then_check_flow(client, checkout):
    response = await client.post("/api/v1/payments/checkout", json={"buildId": "cm-1", "appName": "Shop"})
    assert response.status_code == 200
    session_id = response.json()["session_id"]

    unpaid = await client.post("/api/v1/payments/check", json={"buildId": "cm-1"})
    assert unpaid.json() == {"paid": False, "payment": None}

    checkout.mark_paid(session_id)
    paid = await client.post("/api/v1/payments/check", json={"buildId": "cm-1", "sessionId": session_id})
    assert paid.json()["paid"] is True
    assert paid.json()["payment"]["amount"] == 280000

    again = await client.post("/api/v1/payments/checkout", json={"buildId": "cm-1"})
    assert again.json()["already_paid"] is True


@pytest.mark.asyncio
async def test_checkout_processor_failure(client, checkout):
    checkout.fail = True
    response = await client.post("/api/v1/payments/checkout", json={"buildId": "cm-1"})
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "PAYMENT_PROCESSOR_ERROR"
