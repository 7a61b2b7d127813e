"""Tests for the action endpoint."""

from unittest.mock import patch

from opshub_api.actions.dispatch import ACTIONS, ActionName
from opshub_api.models import ActivityLog, CheckIn, Payout, TravelApproval
from opshub_api.qr import build_qr_payload
from opshub_api.workflow.transitions import PROOF_TYPES


def post_action(client, headers, action, payload=None):
    return client.post("/v1/ops", json={"action": action, "payload": payload or {}}, headers=headers)


def issue_payload(**overrides):
    payload = {
        "participant": {"name": "Amina", "email": "a@x.com", "role": "speaker"},
        "itinerary": "NBO-JNB",
        "stipendAmount": "100.00",
    }
    payload.update(overrides)
    return payload


def test_every_action_has_a_handler():
    assert set(ACTIONS) == set(ActionName)


def test_get_is_unauthenticated_liveness(client):
    response = client.get("/v1/ops")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "issue_travel_approval" in data["actions"]


def test_missing_token_is_401(client, db):
    response = client.post("/v1/ops", json={"action": "issue_travel_approval", "payload": issue_payload()})
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"
    assert db.query(TravelApproval).count() == 0


def test_invalid_token_is_401(client):
    response = post_action(client, {"Authorization": "Bearer wrong"}, "health")
    assert response.status_code == 401
    assert response.json() == {"error": "unauthorized", "detail": "Unauthorized"}


def test_non_bearer_scheme_is_401(client):
    response = post_action(client, {"Authorization": "Basic dXNlcjpwYXNz"}, "health")
    assert response.status_code == 401


def test_health_action_returns_operator(client, auth_headers):
    response = post_action(client, auth_headers, "health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "operator": "did:privy:operator-1"}


def test_invalid_json_is_400(client, auth_headers):
    response = client.post(
        "/v1/ops",
        content=b"{not json",
        headers={**auth_headers, "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_json"


def test_unsupported_action_is_400(client, auth_headers):
    response = post_action(client, auth_headers, "delete_everything")
    assert response.status_code == 400
    assert response.json()["error"] == "unsupported_action"


def test_missing_action_is_400(client, auth_headers):
    response = client.post("/v1/ops", json={"payload": {}}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_validation_error_has_details_and_touches_no_rows(client, auth_headers, db):
    response = post_action(client, auth_headers, "issue_travel_approval", issue_payload(stipendAmount="-5"))
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert any(d["loc"] == "stipendAmount" for d in body["details"])
    assert db.query(TravelApproval).count() == 0
    assert db.query(ActivityLog).count() == 0


def test_issue_then_check_in_over_http(client, auth_headers, db):
    response = post_action(client, auth_headers, "issue_travel_approval", issue_payload())
    assert response.status_code == 200
    body = response.json()
    assert body["entity"] == "travel_approval"
    assert body["status"] == "approved"
    assert body["approval"]["stipend_amount"] == "100.00"
    assert body["attestation"]["hash"] == "0xanchor"

    token = body["approval"]["qr_token"]
    response = post_action(client, auth_headers, "record_check_in", {"token": token, "location": "Venue"})
    assert response.status_code == 200
    assert response.json()["status"] == "checked_in"
    assert response.json()["participant"]["name"] == "Amina"
    assert db.query(CheckIn).count() == 1



def test_check_in_from_scanned_qr_payload(client, auth_headers, db):
    body = post_action(client, auth_headers, "issue_travel_approval", issue_payload()).json()
    scanned = build_qr_payload(body["id"], body["approval"]["qr_token"])

    response = post_action(client, auth_headers, "record_check_in", {"qrPayload": scanned, "location": "Gate A"})

    assert response.status_code == 200
    assert response.json()["check_in"]["travel_approval_id"] == body["id"]
    assert db.query(CheckIn).count() == 1


def test_check_in_rejects_foreign_qr_payload(client, auth_headers, db):
    scanned = '{"type": "payout", "token": "t"}'
    response = post_action(client, auth_headers, "record_check_in", {"qrPayload": scanned, "location": "Gate A"})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert db.query(CheckIn).count() == 0


def test_check_in_needs_token_or_qr_payload(client, auth_headers):
    response = post_action(client, auth_headers, "record_check_in", {"location": "Gate A"})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"

def test_unknown_check_in_token_is_404(client, auth_headers):
    response = post_action(client, auth_headers, "record_check_in", {"token": "nope", "location": "Venue"})
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_state_conflict_is_409(client, auth_headers):
    body = post_action(client, auth_headers, "issue_travel_approval", issue_payload(status="pending")).json()
    response = post_action(
        client, auth_headers, "record_check_in", {"token": body["approval"]["qr_token"], "location": "Venue"}
    )
    assert response.status_code == 409
    assert response.json() == {"error": "state_conflict", "detail": "travel approval is not approved"}


def test_payout_flow(client, auth_headers):
    approval = post_action(client, auth_headers, "issue_travel_approval", issue_payload()).json()
    payout = post_action(client, auth_headers, "create_payout", {"travelApprovalId": approval["id"]}).json()
    assert payout["status"] == "pending"

    response = post_action(
        client,
        auth_headers,
        "complete_payout",
        {"payoutId": payout["id"], "proofType": "receipt", "proofData": "r-42"},
    )
    assert response.status_code == 200
    assert response.json()["payout"]["status"] == "completed"


def test_proof_fields_must_come_together(client, auth_headers):
    response = post_action(
        client,
        auth_headers,
        "complete_payout",
        {"payoutId": "00000000-0000-0000-0000-000000000000", "proofType": "receipt"},
    )
    assert response.status_code == 400


def test_onboarding_flow(client, auth_headers):
    created = post_action(
        client, auth_headers, "create_onboarding_invite", {"name": "Kwame", "email": "k@x.com", "role": "volunteer"}
    ).json()
    assert created["status"] == "pending"

    response = post_action(
        client,
        auth_headers,
        "submit_onboarding",
        {"token": created["token"], "itinerary": "ACC-NBO", "stipendAmount": "50.00"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "submitted"
    assert response.json()["approval"]["status"] == "pending"

    again = post_action(
        client,
        auth_headers,
        "submit_onboarding",
        {"token": created["token"], "itinerary": "ACC-NBO", "stipendAmount": "50.00"},
    )
    assert again.status_code == 409


def test_store_failure_is_500(client, auth_headers):
    from opshub_api.errors import PersistenceError

    with patch(
        "opshub_api.services.store.OpsStore.insert",
        side_effect=PersistenceError("Failed to create participants row"),
    ):
        response = post_action(client, auth_headers, "issue_travel_approval", issue_payload())

    assert response.status_code == 500
    assert response.json()["error"] == "action_failed"


def test_unexpected_error_is_500(client, auth_headers):
    with patch(
        "opshub_api.actions.handlers.ActionHandlers._resolve_participant",
        side_effect=RuntimeError("boom"),
    ):
        response = post_action(client, auth_headers, "issue_travel_approval", issue_payload())

    assert response.status_code == 500
    assert response.json() == {"error": "action_failed", "detail": "Action failed"}


def test_correlation_id_echoed(client, auth_headers):
    response = client.get("/v1/ops", headers={"x-correlation-id": "corr-123"})
    assert response.headers["x-correlation-id"] == "corr-123"
    assert client.get("/v1/ops").headers["x-correlation-id"]


def test_payout_vocabularies_follow_workflow_rules(client, auth_headers, db):
    approval = post_action(client, auth_headers, "issue_travel_approval", issue_payload()).json()
    payout = post_action(client, auth_headers, "create_payout", {"travelApprovalId": approval["id"]}).json()

    for bad in [{"status": "pending"}, {"proofType": "cash", "proofData": "x"}]:
        response = post_action(client, auth_headers, "complete_payout", {"payoutId": payout["id"], **bad})
        assert response.status_code == 400
    assert db.query(Payout).one().status == "pending"

    response = post_action(
        client,
        auth_headers,
        "complete_payout",
        {"payoutId": payout["id"], "status": "processing", "proofType": PROOF_TYPES[-1], "proofData": "wire-9"},
    )
    assert response.status_code == 200
    assert response.json()["payout"]["proof_type"] == "bank_transfer"
