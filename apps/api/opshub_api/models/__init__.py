"""Database models - import all models here for Alembic discovery."""

from opshub_api.models.activity import ActivityLog
from opshub_api.models.invite import OnboardingInvite
from opshub_api.models.participant import Participant
from opshub_api.models.travel import CheckIn, Payout, TravelApproval

__all__ = [
    "Participant",
    "TravelApproval",
    "CheckIn",
    "Payout",
    "OnboardingInvite",
    "ActivityLog",
]
