"""Standalone attestation endpoint for trusted services."""

import hmac
import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from opshub_api.auth.gate import extract_bearer_token
from opshub_api.errors import PersistenceError
from opshub_api.models import ActivityLog, CheckIn, OnboardingInvite, Payout, TravelApproval
from opshub_api.routes.deps import get_store
from opshub_api.services.store import OpsStore
from opshub_api.utils.metrics import audit_write_failures

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["attest"])

ATTESTABLE_TABLES = {
    model.__tablename__: model
    for model in (TravelApproval, CheckIn, Payout, OnboardingInvite)
}


class RowUpdate(BaseModel):
    """Row that receives the anchor hash once anchoring succeeds."""

    table: Literal["travel_approvals", "check_ins", "payouts", "onboarding_invites"]
    id_value: str = Field(..., min_length=1)
    hash_column: Literal["attestation_hash"] = "attestation_hash"


class AttestRequest(BaseModel):
    kind: str = Field(..., min_length=1, max_length=100)
    payload: dict[str, Any]
    update: Optional[RowUpdate] = None


def _error(status_code: int, code: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, **extra})


@router.post("/attest")
async def attest(request: Request, store: OpsStore = Depends(get_store)):
    """Anchor an arbitrary payload, optionally writing the hash onto an entity row."""
    settings = request.app.state.settings
    service = request.app.state.attestation
    expected = settings.attestation_service_token
    if not expected:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "attestation_unavailable",
                      detail="No service token configured")

    token = extract_bearer_token(request.headers.get("authorization"))
    if not token:
        return _error(status.HTTP_401_UNAUTHORIZED, "unauthorized", detail="Missing bearer token")
    if not hmac.compare_digest(token.encode(), expected.encode()):
        return _error(status.HTTP_401_UNAUTHORIZED, "unauthorized", detail="Invalid token")

    try:
        body = AttestRequest.model_validate(await request.json())
    except ValidationError as e:
        details = [
            {"loc": ".".join(str(p) for p in item["loc"]), "msg": item["msg"]}
            for item in e.errors()
        ]
        return _error(status.HTTP_400_BAD_REQUEST, "validation_error",
                      detail="Invalid payload", details=details)
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "invalid_json", detail="Request body is not valid JSON")

    if not service.enabled:
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "attestation_disabled")

    result = await service.attest(body.kind, body.payload)
    if result is None:
        return _error(status.HTTP_502_BAD_GATEWAY, "anchoring_failed")

    if body.update is not None:
        model = ATTESTABLE_TABLES[body.update.table]
        try:
            store.update_by_id(model, body.update.id_value, {body.update.hash_column: result.hash})
        except PersistenceError as e:
            logger.error(
                f"Failed to attach anchor hash: {e}",
                extra={"table": body.update.table, "entity_id": body.update.id_value},
            )
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "store_update_failed", hash=result.hash)

    try:
        store.insert(
            ActivityLog,
            {
                "event_type": "verification",
                "description": f"Attestation recorded for {body.kind}",
                "metadata_json": {
                    "kind": body.kind,
                    "attestation_hash": result.hash,
                    "digest": result.digest,
                    "table": body.update.table if body.update else None,
                    "entity_id": body.update.id_value if body.update else None,
                },
                "attestation_verified": True,
            },
        )
    except PersistenceError as e:
        audit_write_failures.labels(event_type="verification").inc()
        logger.error(f"Failed to append activity log: {e}", extra={"kind": body.kind})

    return {"hash": result.hash, "attestation": result.to_dict()}
