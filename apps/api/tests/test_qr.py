"""Tests for QR payload helpers."""

import json

import pytest

from opshub_api.errors import ActionValidationError
from opshub_api.qr import build_qr_payload, parse_qr_payload


def test_build_payload_shape():
    data = json.loads(build_qr_payload("approval-1", "token-1"))
    assert data["type"] == "travel_approval"
    assert data["approvalId"] == "approval-1"
    assert data["token"] == "token-1"
    assert data["timestamp"].endswith("Z")


def test_parse_built_payload():
    parsed = parse_qr_payload(build_qr_payload("approval-1", "token-1"))
    assert parsed.token == "token-1"
    assert parsed.approval_id == "approval-1"


def test_manual_entry_without_approval_id():
    parsed = parse_qr_payload(json.dumps({"type": "travel_approval", "token": "token-1"}))
    assert parsed.token == "token-1"
    assert parsed.approval_id is None


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        json.dumps(["travel_approval"]),
        json.dumps({"type": "payout", "token": "t"}),
        json.dumps({"type": "travel_approval"}),
        json.dumps({"type": "travel_approval", "token": ""}),
    ],
)
def test_rejects_invalid_payloads(text):
    with pytest.raises(ActionValidationError):
        parse_qr_payload(text)
