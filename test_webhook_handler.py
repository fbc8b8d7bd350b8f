"""
Tests for the Adobe Sign webhook handler.
"""
import uuid
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from webhook_handler import CLIENT_ID_HEADER, WEBHOOK_PATH, create_webhook_app


@pytest.fixture
def client(adobe_settings, adapter):
    return TestClient(create_webhook_app(adobe_settings, envelope_port=adapter))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_verification_echoes_client_id(client):
    response = client.get(WEBHOOK_PATH, headers={CLIENT_ID_HEADER: "id"})

    assert response.status_code == 200
    assert response.headers[CLIENT_ID_HEADER] == "id"
    assert response.json() == {"xAdobeSignClientId": "id"}


def test_missing_client_id_is_rejected(client):
    assert client.get(WEBHOOK_PATH).status_code == 400


def test_unknown_client_id_is_rejected(client):
    assert client.get(WEBHOOK_PATH, headers={CLIENT_ID_HEADER: "someone-else"}).status_code == 403


def test_webhook_secret_is_enforced(adobe_settings, adapter):
    app = create_webhook_app(replace(adobe_settings, webhook_secret="s3cret"), envelope_port=adapter)
    client = TestClient(app)

    assert client.get(WEBHOOK_PATH, headers={CLIENT_ID_HEADER: "id"}).status_code == 403
    assert client.get(WEBHOOK_PATH + "?secret=wrong", headers={CLIENT_ID_HEADER: "id"}).status_code == 403
    assert client.get(WEBHOOK_PATH + "?secret=s3cret", headers={CLIENT_ID_HEADER: "id"}).status_code == 200


def test_event_for_mapped_agreement_syncs_status(client, adapter, fake_adobe):
    envelope_id = uuid.uuid4()
    adapter.session.id_mapping.put(envelope_id, "AG-7")
    fake_adobe.agreements["AG-7"] = {"id": "AG-7", "name": "Lease", "status": "SIGNED"}

    response = client.post(
        WEBHOOK_PATH,
        headers={CLIENT_ID_HEADER: "id"},
        json={"event": "AGREEMENT_WORKFLOW_COMPLETED", "agreement": {"id": "AG-7"}},
    )

    assert response.status_code == 200
    assert response.headers[CLIENT_ID_HEADER] == "id"
    body = response.json()
    assert body["xAdobeSignClientId"] == "id"
    assert body["synced"] is True
    assert body["envelope_id"] == str(envelope_id)
    assert body["status"] == "SIGNED"


def test_event_for_unmapped_agreement_is_acknowledged(client, fake_adobe):
    response = client.post(
        WEBHOOK_PATH,
        headers={CLIENT_ID_HEADER: "id"},
        json={"event": "AGREEMENT_CREATED", "agreement": {"id": "AG-404"}},
    )

    assert response.status_code == 200
    assert response.json()["synced"] is False
    assert fake_adobe.requests == []


def test_event_sync_failure_is_reported(client, adapter, fake_adobe):
    adapter.session.id_mapping.put(uuid.uuid4(), "AG-7")
    fake_adobe.agreement_status = 500

    response = client.post(
        WEBHOOK_PATH,
        headers={CLIENT_ID_HEADER: "id"},
        json={"event": "AGREEMENT_ACTION_COMPLETED", "agreement": {"id": "AG-7"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["synced"] is False
    assert "HTTP 500" in body["error"]


def test_invalid_json_is_rejected(client):
    response = client.post(
        WEBHOOK_PATH,
        headers={CLIENT_ID_HEADER: "id", "Content-Type": "application/json"},
        content=b"not json",
    )
    assert response.status_code == 400


def test_non_ascii_secret_is_rejected(adobe_settings, adapter):
    app = create_webhook_app(replace(adobe_settings, webhook_secret="s3cret"), envelope_port=adapter)
    client = TestClient(app)

    response = client.get(WEBHOOK_PATH + "?secret=%C3%A9", headers={CLIENT_ID_HEADER: "id"})

    assert response.status_code == 403
