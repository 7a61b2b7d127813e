"""Action handlers: validated input in, committed mutation plus audit out.

Each handler follows the same sequence:

1. resolve or create the participant when one is referenced by email
2. fetch current state and check the transition rule
3. perform the primary write (the only step whose failure aborts)
4. attest the business fields and attach the anchor hash, best effort
5. append exactly one activity row
"""

import logging
import secrets
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from opshub_api.actions.schemas import (
    CompletePayoutInput,
    CreateOnboardingInviteInput,
    CreatePayoutInput,
    IssueTravelApprovalInput,
    ParticipantInput,
    RecordCheckInInput,
    SubmitOnboardingInput,
)
from opshub_api.attestation.service import AttestationResult, AttestationService
from opshub_api.auth.gate import Operator
from opshub_api.errors import (
    ActionValidationError,
    NotFoundError,
    PersistenceError,
    StateConflictError,
)
from opshub_api.models import (
    ActivityLog,
    CheckIn,
    OnboardingInvite,
    Participant,
    Payout,
    TravelApproval,
)
from opshub_api.schemas import (
    CheckInOut,
    InviteOut,
    ParticipantOut,
    PayoutOut,
    TravelApprovalOut,
    dump,
)
from opshub_api.services.store import OpsStore
from opshub_api.utils.metrics import anchor_attach_failures, audit_write_failures
from opshub_api.utils.time import isoformat_z, utcnow
from opshub_api.workflow.policy import WorkflowPolicy
from opshub_api.workflow.transitions import (
    Decision,
    decide_approval_creation,
    decide_check_in,
    decide_invite_submission,
    decide_payout_creation,
    decide_payout_transition,
)

logger = logging.getLogger(__name__)


def generate_check_in_token() -> str:
    """Opaque random capability embedded in the approval's QR code."""
    return str(uuid.uuid4())


def generate_invite_token() -> str:
    return secrets.token_urlsafe(24)


@dataclass(frozen=True)
class ActionContext:
    """Per-request context passed to every handler."""

    operator: Operator
    correlation_id: Optional[str] = None


@dataclass
class ActionResult:
    """What a handler reports back to the caller."""

    entity: str
    id: str
    status: str
    data: dict[str, Any] = field(default_factory=dict)
    attestation: Optional[AttestationResult] = None

    def to_dict(self) -> dict:
        body = {"entity": self.entity, "id": self.id, "status": self.status}
        body.update(self.data)
        body["attestation"] = self.attestation.to_dict() if self.attestation else None
        return body


class ActionHandlers:
    """Mutation orchestrator for operator actions."""

    def __init__(
        self,
        store: OpsStore,
        attestation: AttestationService,
        policy: Optional[WorkflowPolicy] = None,
    ):
        self.store = store
        self.attestation = attestation
        self.policy = policy or WorkflowPolicy()

    # Participants

    def _resolve_participant(self, participant: ParticipantInput) -> Participant:
        """Return the referenced participant, creating one on first sight of an email."""
        if participant.id is not None:
            existing = self.store.select_one(Participant, id=str(participant.id))
            if existing is None:
                raise NotFoundError(f"Participant {participant.id} not found")
            return existing

        return self._participant_by_email(
            participant.email,
            participant.name,
            participant.role,
            str(participant.photo_url) if participant.photo_url else None,
        )

    def _participant_by_email(
        self,
        email: str,
        name: str,
        role: str,
        photo_url: Optional[str] = None,
    ) -> Participant:
        existing = self.store.select_one(Participant, email=email)
        if existing is None:
            return self.store.insert(
                Participant,
                {"name": name, "email": email, "role": role, "photo_url": photo_url},
            )
        if photo_url and not existing.photo_url:
            self.store.update_by_id(Participant, existing.id, {"photo_url": photo_url})
            return self.store.select_one(Participant, id=existing.id)
        return existing

    # Follow-up steps

    async def _anchor(
        self,
        kind: str,
        model: type,
        entity_id: str,
        payload: dict[str, Any],
    ) -> tuple[Optional[AttestationResult], bool]:
        """Attest a committed mutation and attach the anchor hash to its row."""
        attestation = await self.attestation.attest(kind, payload)
        if attestation is None:
            return None, False

        try:
            self.store.update_by_id(model, entity_id, {"attestation_hash": attestation.hash})
        except PersistenceError as e:
            anchor_attach_failures.labels(entity=model.__tablename__).inc()
            logger.error(
                f"Failed to attach anchor hash: {e}",
                extra={"entity_id": entity_id, "anchor_hash": attestation.hash},
            )
            return attestation, False
        return attestation, True

    def _record_activity(
        self,
        event_type: str,
        description: str,
        metadata: dict[str, Any],
        participant_id: Optional[str],
        verified: bool,
    ) -> None:
        try:
            self.store.insert(
                ActivityLog,
                {
                    "event_type": event_type,
                    "participant_id": participant_id,
                    "description": description,
                    "metadata_json": metadata,
                    "attestation_verified": verified,
                },
            )
        except PersistenceError as e:
            audit_write_failures.labels(event_type=event_type).inc()
            logger.error(
                f"Failed to append activity log: {e}",
                extra={"event_type": event_type, "activity_metadata": metadata},
            )

    def _current(
        self,
        schema: type,
        model: type,
        snapshot: dict[str, Any],
        anchor_hash: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Response view of a committed row.

        The row is re-read so the response shows what was stored. If that read
        fails the snapshot taken at write time is returned instead: the
        mutation is already committed and must not be reported as failed.
        """
        try:
            row = self.store.select_one(model, id=snapshot["id"])
        except PersistenceError as e:
            logger.warning(
                f"Re-read after commit failed, answering from snapshot: {e}",
                extra={"entity_id": snapshot["id"]},
            )
            row = None
        if row is not None:
            return dump(schema, row)
        if anchor_hash:
            return {**snapshot, "attestation_hash": anchor_hash}
        return snapshot

    @staticmethod
    def _require(decision: Decision) -> str:
        if not decision.allowed:
            raise StateConflictError(decision.reason)
        return decision.next_status

    # Actions
    #
    # ORM rows are expired by every commit, so once the primary write is done
    # handlers work from dict snapshots and never touch a row again.

    async def issue_travel_approval(
        self, data: IssueTravelApprovalInput, ctx: ActionContext
    ) -> ActionResult:
        status = self._require(decide_approval_creation(data.status))
        participant = dump(ParticipantOut, self._resolve_participant(data.participant))

        approved = status == "approved"
        approval = dump(
            TravelApprovalOut,
            self.store.insert(
                TravelApproval,
                {
                    "participant_id": participant["id"],
                    "itinerary": data.itinerary,
                    "stipend_amount": data.stipend_amount,
                    "sponsor_notes": data.sponsor_notes,
                    "status": status,
                    "qr_token": generate_check_in_token(),
                    "approved_by": ctx.operator.operator_id if approved else None,
                    "approved_at": utcnow() if approved else None,
                },
            ),
        )
        logger.info(
            "Travel approval issued",
            extra={"approval_id": approval["id"], "operator_id": ctx.operator.operator_id},
        )

        attestation, verified = await self._anchor(
            "travel_approval",
            TravelApproval,
            approval["id"],
            {
                "approval_id": approval["id"],
                "participant_id": participant["id"],
                "participant_email": participant["email"],
                "itinerary": data.itinerary,
                "stipend_amount": data.stipend_amount,
                "status": status,
                "operator": ctx.operator.operator_id,
            },
        )
        anchor_hash = attestation.hash if verified else None

        self._record_activity(
            "approval",
            "Travel approval issued",
            {
                "approval_id": approval["id"],
                "stipend_amount": str(data.stipend_amount),
                "status": status,
                "operator": ctx.operator.operator_id,
                "attestation_hash": anchor_hash,
            },
            participant_id=participant["id"],
            verified=verified,
        )

        approval = self._current(TravelApprovalOut, TravelApproval, approval, anchor_hash)
        return ActionResult(
            entity="travel_approval",
            id=approval["id"],
            status=approval["status"],
            data={"approval": approval, "participant": participant},
            attestation=attestation,
        )

    async def record_check_in(self, data: RecordCheckInInput, ctx: ActionContext) -> ActionResult:
        approval = self.store.select_one(TravelApproval, qr_token=data.token)
        if approval is None:
            raise NotFoundError("No travel approval matches this token")

        prior = 0
        if not self.policy.allow_repeat_check_in:
            prior = self.store.count(CheckIn, travel_approval_id=approval.id)
        self._require(
            decide_check_in(approval.status, prior, allow_repeat=self.policy.allow_repeat_check_in)
        )

        approval_id, participant_id = approval.id, approval.participant_id
        participant = self.store.select_one(Participant, id=participant_id)
        summary = (
            {"id": participant.id, "name": participant.name, "role": participant.role}
            if participant
            else None
        )

        row = self.store.insert(
            CheckIn,
            {
                "travel_approval_id": approval_id,
                "location": data.location,
                "timestamp": utcnow(),
                "scanned_by": ctx.operator.operator_id,
            },
        )
        timestamp = isoformat_z(row.timestamp)
        check_in = dump(CheckInOut, row)

        attestation, verified = await self._anchor(
            "check_in",
            CheckIn,
            check_in["id"],
            {
                "check_in_id": check_in["id"],
                "travel_approval_id": approval_id,
                "participant_id": participant_id,
                "location": data.location,
                "timestamp": timestamp,
                "operator": ctx.operator.operator_id,
            },
        )
        anchor_hash = attestation.hash if verified else None

        self._record_activity(
            "check_in",
            f"Checked in at {data.location}",
            {
                "check_in_id": check_in["id"],
                "travel_approval_id": approval_id,
                "location": data.location,
                "status": "checked_in",
                "operator": ctx.operator.operator_id,
                "attestation_hash": anchor_hash,
            },
            participant_id=participant_id,
            verified=verified,
        )

        check_in = self._current(CheckInOut, CheckIn, check_in, anchor_hash)
        return ActionResult(
            entity="check_in",
            id=check_in["id"],
            status="checked_in",
            data={"check_in": check_in, "participant": summary},
            attestation=attestation,
        )

    async def create_payout(self, data: CreatePayoutInput, ctx: ActionContext) -> ActionResult:
        approval = self.store.select_one(TravelApproval, id=str(data.travel_approval_id))
        if approval is None:
            raise NotFoundError(f"Travel approval {data.travel_approval_id} not found")
        status = self._require(decide_payout_creation(approval.status))

        approval_id, participant_id = approval.id, approval.participant_id
        amount = data.amount if data.amount is not None else approval.stipend_amount
        payout = dump(
            PayoutOut,
            self.store.insert(
                Payout,
                {"travel_approval_id": approval_id, "amount": amount, "status": status},
            ),
        )

        attestation, verified = await self._anchor(
            "payout_scheduled",
            Payout,
            payout["id"],
            {
                "payout_id": payout["id"],
                "travel_approval_id": approval_id,
                "amount": amount,
                "status": status,
                "operator": ctx.operator.operator_id,
            },
        )
        anchor_hash = attestation.hash if verified else None

        self._record_activity(
            "payout",
            f"Payout of ${payout['amount']} scheduled",
            {
                "payout_id": payout["id"],
                "travel_approval_id": approval_id,
                "amount": payout["amount"],
                "status": status,
                "operator": ctx.operator.operator_id,
                "attestation_hash": anchor_hash,
            },
            participant_id=participant_id,
            verified=verified,
        )

        payout = self._current(PayoutOut, Payout, payout, anchor_hash)
        return ActionResult(
            entity="payout",
            id=payout["id"],
            status=payout["status"],
            data={"payout": payout},
            attestation=attestation,
        )

    async def complete_payout(self, data: CompletePayoutInput, ctx: ActionContext) -> ActionResult:
        if (
            self.policy.require_payout_proof
            and data.status == "completed"
            and not (data.proof_type and data.proof_data)
        ):
            raise ActionValidationError("proofType and proofData are required to complete a payout")

        payout = self.store.select_one(Payout, id=str(data.payout_id))
        if payout is None:
            raise NotFoundError(f"Payout {data.payout_id} not found")
        status = self._require(
            decide_payout_transition(
                payout.status,
                data.status,
                allow_retransition=self.policy.allow_payout_retransition,
            )
        )

        before = PayoutOut.model_validate(payout).model_dump()
        approval = self.store.select_one(TravelApproval, id=payout.travel_approval_id)
        participant_id = approval.participant_id if approval else None

        values = {"status": status, "processed_by": ctx.operator.operator_id}
        if data.proof_type is not None:
            values["proof_type"] = data.proof_type
            values["proof_data"] = data.proof_data
        if status == "completed":
            values["processed_at"] = utcnow()
        self.store.update_by_id(Payout, before["id"], values)
        payout = dump(PayoutOut, {**before, **values})

        attestation, verified = await self._anchor(
            "payout",
            Payout,
            payout["id"],
            {
                "payout_id": payout["id"],
                "travel_approval_id": payout["travel_approval_id"],
                "amount": before["amount"],
                "status": status,
                "proof_type": payout["proof_type"],
                "proof_data": payout["proof_data"],
                "operator": ctx.operator.operator_id,
            },
        )
        anchor_hash = attestation.hash if verified else None

        self._record_activity(
            "payout",
            f"Payout of ${payout['amount']} marked as {status}",
            {
                "payout_id": payout["id"],
                "proof_type": payout["proof_type"],
                "amount": payout["amount"],
                "status": status,
                "operator": ctx.operator.operator_id,
                "attestation_hash": anchor_hash,
            },
            participant_id=participant_id,
            verified=verified,
        )

        payout = self._current(PayoutOut, Payout, payout, anchor_hash)
        return ActionResult(
            entity="payout",
            id=payout["id"],
            status=payout["status"],
            data={"payout": payout},
            attestation=attestation,
        )

    async def create_onboarding_invite(
        self, data: CreateOnboardingInviteInput, ctx: ActionContext
    ) -> ActionResult:
        invite = dump(
            InviteOut,
            self.store.insert(
                OnboardingInvite,
                {
                    "name": data.name,
                    "email": data.email,
                    "role": data.role,
                    "token": generate_invite_token(),
                    "status": "pending",
                    "created_by": ctx.operator.operator_id,
                },
            ),
        )

        attestation, verified = await self._anchor(
            "onboarding_invite",
            OnboardingInvite,
            invite["id"],
            {
                "invite_id": invite["id"],
                "email": invite["email"],
                "role": invite["role"],
                "operator": ctx.operator.operator_id,
            },
        )
        anchor_hash = attestation.hash if verified else None

        self._record_activity(
            "invite",
            f"Onboarding invite created for {invite['email']}",
            {
                "invite_id": invite["id"],
                "email": invite["email"],
                "role": invite["role"],
                "status": invite["status"],
                "operator": ctx.operator.operator_id,
                "attestation_hash": anchor_hash,
            },
            participant_id=None,
            verified=verified,
        )

        invite = self._current(InviteOut, OnboardingInvite, invite, anchor_hash)
        return ActionResult(
            entity="onboarding_invite",
            id=invite["id"],
            status=invite["status"],
            data={"token": invite["token"], "invite": invite},
            attestation=attestation,
        )

    async def submit_onboarding(self, data: SubmitOnboardingInput, ctx: ActionContext) -> ActionResult:
        invite = self.store.select_one(OnboardingInvite, token=data.token)
        if invite is None:
            raise NotFoundError("Invite not found")
        status = self._require(decide_invite_submission(invite.status))

        before = InviteOut.model_validate(invite).model_dump()
        participant = dump(
            ParticipantOut,
            self._participant_by_email(before["email"], before["name"], before["role"]),
        )

        client_attestation = data.attestation.model_dump() if data.attestation else None
        approval_id = str(uuid.uuid4())
        values = {
            "status": status,
            "form_data": {
                "itinerary": data.itinerary,
                "stipendAmount": str(data.stipend_amount),
                "notes": data.notes,
                "attestation": client_attestation,
            },
            "submitted_at": utcnow(),
            "participant_id": participant["id"],
            "travel_approval_id": approval_id,
        }
        # The invite only flips if it is still pending; a lost race leaves no approval behind.
        approval = dump(
            TravelApprovalOut,
            self.store.insert_and_update(
                TravelApproval,
                {
                    "id": approval_id,
                    "participant_id": participant["id"],
                    "itinerary": data.itinerary,
                    "stipend_amount": data.stipend_amount,
                    "sponsor_notes": data.notes,
                    "status": "pending",
                    "qr_token": generate_check_in_token(),
                },
                OnboardingInvite,
                before["id"],
                values,
                status="pending",
            ),
        )
        invite = dump(InviteOut, {**before, **values})
        logger.info(
            "Onboarding submitted",
            extra={"invite_id": invite["id"], "approval_id": approval_id},
        )

        client_hash = client_attestation["hash"] if client_attestation else None
        attestation, verified = await self._anchor(
            "onboarding_submission",
            OnboardingInvite,
            invite["id"],
            {
                "invite_id": invite["id"],
                "token": invite["token"],
                "travel_approval_id": approval_id,
                "participant_id": participant["id"],
                "participant_email": participant["email"],
                "itinerary": data.itinerary,
                "stipend_amount": data.stipend_amount,
                "notes": data.notes,
                "client_attestation_hash": client_hash,
                "operator": ctx.operator.operator_id,
            },
        )
        anchor_hash = attestation.hash if verified else None

        self._record_activity(
            "onboarding",
            f"Onboarding submitted for {participant['email']}",
            {
                "invite_id": invite["id"],
                "travel_approval_id": approval_id,
                "stipend_amount": str(data.stipend_amount),
                "status": status,
                "client_attestation_hash": client_hash,
                "operator": ctx.operator.operator_id,
                "attestation_hash": anchor_hash,
            },
            participant_id=participant["id"],
            verified=verified,
        )

        invite = self._current(InviteOut, OnboardingInvite, invite, anchor_hash)
        return ActionResult(
            entity="onboarding_invite",
            id=invite["id"],
            status=invite["status"],
            data={
                "invite": invite,
                "approval": approval,
                "participant_id": participant["id"],
            },
            attestation=attestation,
        )

    async def health(self, data: None, ctx: ActionContext) -> dict:
        return {"status": "ok", "operator": ctx.operator.operator_id}
