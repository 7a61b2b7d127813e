"""Configurable workflow policy."""

from dataclasses import dataclass

from opshub_api.settings import Settings


@dataclass(frozen=True)
class WorkflowPolicy:
    """Switches for behaviors the transition rules leave open."""

    allow_repeat_check_in: bool = True
    allow_payout_retransition: bool = False
    require_payout_proof: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "WorkflowPolicy":
        return cls(
            allow_repeat_check_in=settings.allow_repeat_check_in,
            allow_payout_retransition=settings.allow_payout_retransition,
            require_payout_proof=settings.require_payout_proof,
        )
