"""Status transition rules for tracked entities.

Each function is a side-effect-free predicate over the current status and the
proposed action. It returns a ``Decision`` carrying either the next status or
the reason the action is rejected; callers fetch the current state, call the
predicate and abort on rejection.
"""

from dataclasses import dataclass
from typing import Optional

APPROVAL_STATUSES = ("pending", "approved", "rejected")
PAYOUT_TARGET_STATUSES = ("processing", "completed", "failed")
PROOF_TYPES = ("receipt", "tx_hash", "bank_transfer")


@dataclass(frozen=True)
class Decision:
    """Result of a transition check."""

    allowed: bool
    next_status: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls, next_status: str) -> "Decision":
        return cls(allowed=True, next_status=next_status)

    @classmethod
    def reject(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)


def decide_approval_creation(initial_status: str) -> Decision:
    """A new approval may start in any approval status."""
    if initial_status not in APPROVAL_STATUSES:
        return Decision.reject(f"unknown approval status '{initial_status}'")
    return Decision.allow(initial_status)


def decide_check_in(
    approval_status: str,
    prior_check_ins: int = 0,
    allow_repeat: bool = True,
) -> Decision:
    """Check-in is legal only against an approved travel approval."""
    if approval_status != "approved":
        return Decision.reject("travel approval is not approved")
    if prior_check_ins > 0 and not allow_repeat:
        return Decision.reject("already checked in")
    return Decision.allow("approved")


def decide_payout_creation(approval_status: str) -> Decision:
    """Payouts are scheduled only for approved travel."""
    if approval_status != "approved":
        return Decision.reject("travel approval is not approved")
    return Decision.allow("pending")


def decide_payout_transition(
    current_status: str,
    target_status: str,
    allow_retransition: bool = False,
) -> Decision:
    """pending -> processing | completed | failed."""
    if target_status not in PAYOUT_TARGET_STATUSES:
        return Decision.reject(f"unsupported payout status '{target_status}'")
    if current_status != "pending" and not allow_retransition:
        return Decision.reject("not pending")
    return Decision.allow(target_status)


def decide_invite_submission(invite_status: str) -> Decision:
    """pending -> submitted, once."""
    if invite_status == "pending":
        return Decision.allow("submitted")
    if invite_status in ("submitted", "approved"):
        return Decision.reject("already submitted")
    return Decision.reject("invite not usable")
