"""Input models for operator actions.

Field aliases are the camelCase names the browser client sends; snake_case
names are accepted as well.
"""

from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator

from opshub_api.errors import ActionValidationError
from opshub_api.qr import parse_qr_payload
from opshub_api.workflow.transitions import APPROVAL_STATUSES, PAYOUT_TARGET_STATUSES, PROOF_TYPES

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class ActionInput(BaseModel):
    """Base for action payloads."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class ParticipantInput(ActionInput):
    id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=320)
    role: str = Field(..., min_length=1, max_length=100)
    photo_url: Optional[HttpUrl] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class IssueTravelApprovalInput(ActionInput):
    participant: ParticipantInput
    itinerary: str = Field(..., min_length=1)
    stipend_amount: Decimal = Field(..., alias="stipendAmount", ge=0, max_digits=12, decimal_places=2)
    sponsor_notes: Optional[str] = Field(None, alias="sponsorNotes")
    status: Literal[APPROVAL_STATUSES] = "approved"


class RecordCheckInInput(ActionInput):
    """Either the bare token or the full text a scanner read from the QR code."""

    token: Optional[str] = Field(None, min_length=1, max_length=64)
    qr_payload: Optional[str] = Field(None, alias="qrPayload", min_length=1)
    location: str = Field(..., min_length=1, max_length=255)

    @model_validator(mode="after")
    def token_from_qr_payload(self):
        if self.token is not None:
            return self
        if self.qr_payload is None:
            raise ValueError("token or qrPayload is required")
        try:
            self.token = parse_qr_payload(self.qr_payload).token
        except ActionValidationError as e:
            raise ValueError(e.message) from e
        return self


class CreatePayoutInput(ActionInput):
    travel_approval_id: UUID = Field(..., alias="travelApprovalId")
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class CompletePayoutInput(ActionInput):
    payout_id: UUID = Field(..., alias="payoutId")
    status: Literal[PAYOUT_TARGET_STATUSES] = "completed"
    proof_type: Optional[Literal[PROOF_TYPES]] = Field(None, alias="proofType")
    proof_data: Optional[str] = Field(None, alias="proofData", min_length=1)

    @model_validator(mode="after")
    def proof_fields_together(self):
        if (self.proof_type is None) != (self.proof_data is None):
            raise ValueError("proofType and proofData must be provided together")
        return self


class CreateOnboardingInviteInput(ActionInput):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=320)
    role: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class ClientAttestation(ActionInput):
    """Attestation computed by the participant's browser before submitting."""

    hash: str = Field(..., min_length=1)
    digest: str = Field(..., pattern=r"^[0-9a-f]{64}$")
    signature: Optional[str] = None
    signer: Optional[str] = None


class SubmitOnboardingInput(ActionInput):
    token: str = Field(..., min_length=1, max_length=64)
    itinerary: str = Field(..., min_length=1)
    stipend_amount: Decimal = Field(..., alias="stipendAmount", ge=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None
    attestation: Optional[ClientAttestation] = None
