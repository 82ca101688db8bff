"""Build submission, listing, sync and gated download routes."""

import pytest

from conftest import auth_headers, checkout_completed_event

APK_URL = "https://cdn.codemagic.test/app.apk"


async def _submit(client, payload, headers=None):
    return await client.post("/api/v1/builds", json=payload, headers=headers or auth_headers())


async def _finish(client, build_id):
    return await client.post(
        "/api/v1/webhooks/codemagic",
        json={
            "buildId": build_id,
            "workflowId": "android-workflow",
            "status": "finished",
            "artefacts": [{"name": "app.apk", "type": "apk", "url": APK_URL}],
        },
    )


@pytest.mark.asyncio
async def test_submit_publishes_and_dispatches(client, github, codemagic, wizard_payload):
    response = await _submit(client, wizard_payload)
    assert response.status_code == 200
    data = response.json()

    assert data["success"] is True
    assert data["replayed"] is False
    assert [b["platform"] for b in data["builds"]] == ["android", "ios"]
    assert [b["estimated_time"] for b in data["builds"]] == ["5-10 minutes", "10-15 minutes"]
    assert all(b["status"] == "queued" for b in data["builds"])
    assert data["snack_id"].startswith("webview-app-")
    assert "createBottomTabNavigator" in data["app_code"]

    assert {"app.json", "App.js", "codemagic.yaml"} <= set(github.files)
    assert [s["workflowId"] for s in codemagic.started] == ["android-workflow", "ios-workflow"]


@pytest.mark.asyncio
async def test_malformed_config_is_rejected(client, codemagic, wizard_payload):
    wizard_payload["platforms"] = []
    response = await _submit(client, wizard_payload)
    assert response.status_code == 422
    assert codemagic.started == []


@pytest.mark.asyncio
async def test_publish_failure_dispatches_nothing(client, github, codemagic, wizard_payload):
    github.fail_paths.add("App.js")
    response = await _submit(client, wizard_payload)
    assert response.status_code == 502
    assert response.json()["error"]["code"] == "PUBLISH_FAILED"
    assert codemagic.started == []

    listing = await client.get("/api/v1/builds", headers=auth_headers())
    assert listing.json() == []


@pytest.mark.asyncio
async def test_ci_outage_still_records_builds(client, codemagic, wizard_payload):
    codemagic.fail_workflows.update({"android-workflow", "ios-workflow"})
    data = (await _submit(client, wizard_payload)).json()
    assert all(b["synthesized"] for b in data["builds"])
    assert data["builds"][0]["build_id"].startswith("demo-android-")
    assert "CI service" in data["builds"][0]["message"]


@pytest.mark.asyncio
async def test_idempotency_key_replays_submission(client, github, codemagic, wizard_payload):
    headers = {**auth_headers(), "Idempotency-Key": "submit-42"}
    first = (await _submit(client, wizard_payload, headers)).json()
    puts_after_first = len(github.puts())

    second = (await _submit(client, wizard_payload, headers)).json()

    assert second["replayed"] is True
    assert [b["build_id"] for b in second["builds"]] == [b["build_id"] for b in first["builds"]]
    assert len(codemagic.started) == 2
    assert len(github.puts()) == puts_after_first


@pytest.mark.asyncio
async def test_list_builds_requires_user(client):
    response = await client.get("/api/v1/builds")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token_is_rejected_for_listing(client):
    response = await client.get("/api/v1/builds", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "invalid_token"


@pytest.mark.asyncio
async def test_list_builds_returns_only_callers_builds(client, wizard_payload):
    await _submit(client, wizard_payload, auth_headers("user-1"))
    await _submit(client, {**wizard_payload, "platforms": ["ios"]}, auth_headers("user-2"))

    mine = (await client.get("/api/v1/builds", headers=auth_headers("user-1"))).json()
    theirs = (await client.get("/api/v1/builds", headers=auth_headers("user-2"))).json()

    assert sorted(b["platform"] for b in mine) == ["android", "ios"]
    assert [b["platform"] for b in theirs] == ["ios"]


@pytest.mark.asyncio
async def test_other_users_build_is_not_visible(client, wizard_payload):
    data = (await _submit(client, wizard_payload, auth_headers("user-1"))).json()
    build_id = data["builds"][0]["build_id"]

    assert (await client.get(f"/api/v1/builds/{build_id}", headers=auth_headers("user-2"))).status_code == 404
    assert (await client.get(f"/api/v1/builds/{build_id}")).status_code == 404
    assert (await client.get(f"/api/v1/builds/{build_id}", headers=auth_headers("user-1"))).status_code == 200


@pytest.mark.asyncio
async def test_download_links_are_gated_on_payment(client, app, wizard_payload):
    data = (await _submit(client, {**wizard_payload, "platforms": ["android"]})).json()
    build_id = data["builds"][0]["build_id"]
    assert (await _finish(client, build_id)).status_code == 200

    build = (await client.get(f"/api/v1/builds/{build_id}", headers=auth_headers())).json()
    assert build["status"] == "completed"
    assert build["paid"] is False
    assert build["download_url"] is None

    download = await client.get(f"/api/v1/builds/{build_id}/download", params={"kind": "apk"}, headers=auth_headers())
    assert download.status_code == 402
    assert download.json()["error"]["code"] == "PAYMENT_REQUIRED"

    event = checkout_completed_event(build_id, "cs_test_paid")
    assert (await client.post("/api/v1/webhooks/stripe", json=event)).status_code == 200

    build = (await client.get(f"/api/v1/builds/{build_id}", headers=auth_headers())).json()
    assert build["paid"] is True
    assert build["download_url"] == APK_URL

    download = await client.get(f"/api/v1/builds/{build_id}/download", params={"kind": "apk"}, headers=auth_headers())
    assert download.status_code == 307
    assert download.headers["location"] == APK_URL


@pytest.mark.asyncio
async def test_sync_route_polls_vendor(client, codemagic, wizard_payload):
    data = (await _submit(client, {**wizard_payload, "platforms": ["android"]})).json()
    build_id = data["builds"][0]["build_id"]
    codemagic.builds[build_id] = {"status": "building"}

    response = await client.post(f"/api/v1/builds/{build_id}/sync", headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "building"
    assert body["build"]["status"] == "building"
    assert body["download_url"] is None


@pytest.mark.asyncio
async def test_sync_route_reports_vendor_failure(client, codemagic, wizard_payload):
    data = (await _submit(client, {**wizard_payload, "platforms": ["android"]})).json()
    build_id = data["builds"][0]["build_id"]

    response = await client.post(f"/api/v1/builds/{build_id}/sync", headers=auth_headers())

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "VENDOR_ERROR"
