"""Activity audit trail model."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text

from opshub_api.db.base import Base
from opshub_api.utils.time import utcnow


class ActivityLog(Base):
    """Append-only audit trail, one row per mutating action."""

    __tablename__ = "activity_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_type = Column(String(50), nullable=False, index=True)  # approval, check_in, payout, invite, onboarding, verification, system
    participant_id = Column(String(36), ForeignKey("participants.id"), nullable=True, index=True)
    description = Column(Text, nullable=False)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    attestation_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
