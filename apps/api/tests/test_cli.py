"""Tests for CLI commands."""

import json
from unittest.mock import patch

from click.testing import CliRunner

from opshub_api.cli import cli
from opshub_api.db.seed import seed_all
from opshub_api.models import OnboardingInvite, Participant, TravelApproval


def test_seed_is_idempotent(db):
    seed_all(db)
    seed_all(db)
    assert db.query(Participant).count() == 2
    assert db.query(TravelApproval).filter(TravelApproval.status == "approved").count() == 2
    assert db.query(OnboardingInvite).count() == 1


def test_qr_payload_command(db):
    seed_all(db)
    approval = db.query(TravelApproval).first()

    with patch("opshub_api.cli.SessionLocal", return_value=db):
        result = CliRunner().invoke(cli, ["qr-payload", approval.id])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["token"] == approval.qr_token
    assert data["approvalId"] == approval.id


def test_qr_payload_unknown_approval(db):
    with patch("opshub_api.cli.SessionLocal", return_value=db):
        result = CliRunner().invoke(cli, ["qr-payload", "missing"])
    assert result.exit_code == 1
