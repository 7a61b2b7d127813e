"""Onboarding invite model."""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String

from opshub_api.db.base import Base
from opshub_api.utils.time import utcnow


class OnboardingInvite(Base):
    """Single-use credential for self-service onboarding."""

    __tablename__ = "onboarding_invites"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, index=True)
    role = Column(String(100), nullable=False)
    token = Column(String(64), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, submitted, approved, cancelled
    form_data = Column(JSON, nullable=True)
    participant_id = Column(String(36), ForeignKey("participants.id"), nullable=True)
    travel_approval_id = Column(String(36), ForeignKey("travel_approvals.id"), nullable=True)
    attestation_hash = Column(String(255), nullable=True)
    created_by = Column(String(255), nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
