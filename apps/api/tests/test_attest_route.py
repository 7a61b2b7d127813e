"""Tests for the standalone attestation endpoint."""

from decimal import Decimal

import httpx

from conftest import SERVICE_TOKEN, FakeProvider
from opshub_api.attestation.service import AttestationService
from opshub_api.models import ActivityLog, Participant, TravelApproval

SERVICE_HEADERS = {"Authorization": f"Bearer {SERVICE_TOKEN}"}


def make_approval(db) -> TravelApproval:
    participant = Participant(name="Amina", email="a@x.com", role="speaker")
    db.add(participant)
    db.flush()
    approval = TravelApproval(
        participant_id=participant.id,
        itinerary="NBO-JNB",
        stipend_amount=Decimal("100.00"),
        status="approved",
        qr_token="token-1",
    )
    db.add(approval)
    db.commit()
    return approval


def test_requires_service_token(client):
    response = client.post("/v1/attest", json={"kind": "manual", "payload": {}})
    assert response.status_code == 401


def test_operator_token_is_not_a_service_token(client, auth_headers):
    response = client.post("/v1/attest", json={"kind": "manual", "payload": {}}, headers=auth_headers)
    assert response.status_code == 401


def test_returns_hash_and_records_verification(client, db):
    response = client.post(
        "/v1/attest", json={"kind": "manual", "payload": {"note": "x"}}, headers=SERVICE_HEADERS
    )
    assert response.status_code == 200
    assert response.json()["hash"] == "0xanchor"

    row = db.query(ActivityLog).one()
    assert row.event_type == "verification"
    assert row.attestation_verified is True


def test_updates_entity_row(client, db):
    approval = make_approval(db)
    response = client.post(
        "/v1/attest",
        json={
            "kind": "travel_approval",
            "payload": {"approval_id": approval.id},
            "update": {"table": "travel_approvals", "id_value": approval.id},
        },
        headers=SERVICE_HEADERS,
    )
    assert response.status_code == 200
    db.refresh(approval)
    assert approval.attestation_hash == "0xanchor"


def test_rejects_untracked_table_and_column(client):
    for update in (
        {"table": "participants", "id_value": "x"},
        {"table": "payouts", "id_value": "x", "hash_column": "status"},
    ):
        response = client.post(
            "/v1/attest",
            json={"kind": "manual", "payload": {}, "update": update},
            headers=SERVICE_HEADERS,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"


def test_missing_row_is_store_update_failed(client):
    response = client.post(
        "/v1/attest",
        json={"kind": "manual", "payload": {}, "update": {"table": "payouts", "id_value": "missing"}},
        headers=SERVICE_HEADERS,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "store_update_failed", "hash": "0xanchor"}


def test_provider_failure_is_502(app, client):
    app.state.attestation = AttestationService(FakeProvider(error=httpx.ConnectError("down")))
    response = client.post("/v1/attest", json={"kind": "manual", "payload": {}}, headers=SERVICE_HEADERS)
    assert response.status_code == 502


def test_disabled_is_503(app, client, provider):
    app.state.attestation = AttestationService(provider, enabled=False)
    response = client.post("/v1/attest", json={"kind": "manual", "payload": {}}, headers=SERVICE_HEADERS)
    assert response.status_code == 503


def test_unconfigured_service_token_is_503(app, client):
    app.state.settings = app.state.settings.model_copy(update={"attestation_service_token": None})
    response = client.post("/v1/attest", json={"kind": "manual", "payload": {}}, headers=SERVICE_HEADERS)
    assert response.status_code == 503
