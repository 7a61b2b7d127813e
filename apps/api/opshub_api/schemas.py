"""Response models for stored entities."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ParticipantOut(ORMModel):
    id: str
    name: str
    email: str
    role: str
    photo_url: Optional[str] = None
    created_at: datetime


class TravelApprovalOut(ORMModel):
    id: str
    participant_id: str
    itinerary: str
    stipend_amount: Decimal
    sponsor_notes: Optional[str] = None
    status: str
    qr_token: str
    attestation_hash: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime


class CheckInOut(ORMModel):
    id: str
    travel_approval_id: str
    location: str
    timestamp: datetime
    scanned_by: Optional[str] = None
    attestation_hash: Optional[str] = None


class PayoutOut(ORMModel):
    id: str
    travel_approval_id: str
    amount: Decimal
    status: str
    proof_type: Optional[str] = None
    proof_data: Optional[str] = None
    attestation_hash: Optional[str] = None
    processed_by: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime


class InviteOut(ORMModel):
    id: str
    name: str
    email: str
    role: str
    token: str
    status: str
    form_data: Optional[dict[str, Any]] = None
    participant_id: Optional[str] = None
    travel_approval_id: Optional[str] = None
    attestation_hash: Optional[str] = None
    submitted_at: Optional[datetime] = None
    created_at: datetime


class ActivityOut(ORMModel):
    id: str
    event_type: str
    participant_id: Optional[str] = None
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_json")
    attestation_verified: bool
    created_at: datetime


def dump(model_cls: type[ORMModel], row: Any) -> dict:
    """Serialize an ORM row to a JSON-safe dict."""
    return model_cls.model_validate(row).model_dump(mode="json")
