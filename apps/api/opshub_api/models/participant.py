"""Participant identity model."""

import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from opshub_api.db.base import Base
from opshub_api.utils.time import utcnow


class Participant(Base):
    """Conference participant, looked up by email."""

    __tablename__ = "participants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    # Not unique: lookup-then-insert may race and create duplicates
    email = Column(String(320), nullable=False, index=True)
    role = Column(String(100), nullable=False)
    photo_url = Column(String(2048), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    travel_approvals = relationship("TravelApproval", back_populates="participant")
