"""Read endpoints backing the operator dashboard."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from opshub_api.errors import NotFoundError
from opshub_api.models import ActivityLog, CheckIn, OnboardingInvite, Participant, Payout, TravelApproval
from opshub_api.routes.deps import get_store
from opshub_api.schemas import (
    ActivityOut,
    CheckInOut,
    InviteOut,
    ParticipantOut,
    PayoutOut,
    TravelApprovalOut,
    dump,
)
from opshub_api.services.store import OpsStore

router = APIRouter(prefix="/v1", tags=["activity"])


@router.get("/activity")
async def recent_activity(
    limit: int = Query(20, ge=1, le=100),
    store: OpsStore = Depends(get_store),
):
    """Most recent activity entries, newest first."""
    rows = store.select_many(ActivityLog, order_by=ActivityLog.created_at.desc(), limit=limit)
    return {"items": [dump(ActivityOut, row) for row in rows]}


@router.get("/participants/{participant_id}/timeline")
async def participant_timeline(participant_id: str, store: OpsStore = Depends(get_store)):
    """A participant's approvals, each with its check-ins and payouts."""
    participant = store.select_one(Participant, id=participant_id)
    if participant is None:
        raise NotFoundError(f"Participant {participant_id} not found")

    approvals = store.select_many(
        TravelApproval,
        order_by=TravelApproval.created_at.desc(),
        participant_id=participant_id,
    )
    timeline = []
    for approval in approvals:
        check_ins = store.select_many(
            CheckIn, order_by=CheckIn.timestamp.desc(), travel_approval_id=approval.id
        )
        payouts = store.select_many(
            Payout, order_by=Payout.created_at.desc(), travel_approval_id=approval.id
        )
        entry = dump(TravelApprovalOut, approval)
        entry["check_ins"] = [dump(CheckInOut, c) for c in check_ins]
        entry["payouts"] = [dump(PayoutOut, p) for p in payouts]
        timeline.append(entry)

    return {"participant": dump(ParticipantOut, participant), "approvals": timeline}


@router.get("/stats")
async def dashboard_stats(store: OpsStore = Depends(get_store)):
    return {
        "approved_travel": store.count(TravelApproval, status="approved"),
        "check_ins": store.count(CheckIn),
        "pending_payouts": store.count(Payout, status="pending"),
    }


@router.get("/invites/{token}")
async def get_invite(token: str, store: OpsStore = Depends(get_store)):
    invite = store.select_one(OnboardingInvite, token=token)
    if invite is None:
        raise NotFoundError("Invite not found")
    return dump(InviteOut, invite)


@router.get("/invites")
async def list_invites(
    limit: int = Query(50, ge=1, le=200),
    store: OpsStore = Depends(get_store),
):
    """Onboarding invites, newest first."""
    rows = store.select_many(
        OnboardingInvite, order_by=OnboardingInvite.created_at.desc(), limit=limit
    )
    return {"items": [dump(InviteOut, row) for row in rows]}


@router.get("/payouts")
async def list_payouts(
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    store: OpsStore = Depends(get_store),
):
    """Payouts, newest first, each with its travel approval and participant."""
    filters = {"status": status} if status else {}
    payouts = [
        dump(PayoutOut, row)
        for row in store.select_many(Payout, order_by=Payout.created_at.desc(), limit=limit, **filters)
    ]

    items = []
    for payout in payouts:
        approval = store.select_one(TravelApproval, id=payout["travel_approval_id"])
        participant = (
            store.select_one(Participant, id=approval.participant_id) if approval else None
        )
        payout["approval"] = dump(TravelApprovalOut, approval) if approval else None
        payout["participant"] = dump(ParticipantOut, participant) if participant else None
        items.append(payout)
    return {"items": items}


@router.get("/participants")
async def list_participants(
    limit: int = Query(100, ge=1, le=500),
    store: OpsStore = Depends(get_store),
):
    """
    Participants, newest first, with their latest travel approval.

    The latest check-in and payout are taken from that approval, so a
    participant without an approval shows neither.
    """
    participants = [
        dump(ParticipantOut, row)
        for row in store.select_many(Participant, order_by=Participant.created_at.desc(), limit=limit)
    ]

    for participant in participants:
        approvals = store.select_many(
            TravelApproval,
            order_by=TravelApproval.created_at.desc(),
            limit=1,
            participant_id=participant["id"],
        )
        approval = approvals[0] if approvals else None
        check_in = payout = None
        if approval is not None:
            check_ins = store.select_many(
                CheckIn, order_by=CheckIn.timestamp.desc(), limit=1, travel_approval_id=approval.id
            )
            payouts = store.select_many(
                Payout, order_by=Payout.created_at.desc(), limit=1, travel_approval_id=approval.id
            )
            check_in = check_ins[0] if check_ins else None
            payout = payouts[0] if payouts else None

        participant["travel_approval"] = dump(TravelApprovalOut, approval) if approval else None
        participant["latest_check_in"] = dump(CheckInOut, check_in) if check_in else None
        participant["payout"] = dump(PayoutOut, payout) if payout else None
    return {"items": participants}
