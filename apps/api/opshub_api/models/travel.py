"""Travel approval, check-in and payout models."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from opshub_api.db.base import Base
from opshub_api.utils.time import utcnow


def _uuid() -> str:
    return str(uuid.uuid4())


class TravelApproval(Base):
    """Itinerary and stipend request for one participant."""

    __tablename__ = "travel_approvals"

    id = Column(String(36), primary_key=True, default=_uuid)
    participant_id = Column(String(36), ForeignKey("participants.id"), nullable=False, index=True)
    itinerary = Column(Text, nullable=False)
    stipend_amount = Column(Numeric(12, 2), nullable=False)
    sponsor_notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, approved, rejected
    qr_token = Column(String(64), nullable=False, unique=True, index=True)
    attestation_hash = Column(String(255), nullable=True)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    participant = relationship("Participant", back_populates="travel_approvals")
    check_ins = relationship("CheckIn", back_populates="travel_approval")
    payouts = relationship("Payout", back_populates="travel_approval")


class CheckIn(Base):
    """Append-only check-in record for an approved travel approval."""

    __tablename__ = "check_ins"

    id = Column(String(36), primary_key=True, default=_uuid)
    travel_approval_id = Column(String(36), ForeignKey("travel_approvals.id"), nullable=False, index=True)
    location = Column(String(255), nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
    scanned_by = Column(String(255), nullable=True)
    attestation_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    travel_approval = relationship("TravelApproval", back_populates="check_ins")


class Payout(Base):
    """Stipend disbursement for a travel approval."""

    __tablename__ = "payouts"

    id = Column(String(36), primary_key=True, default=_uuid)
    travel_approval_id = Column(String(36), ForeignKey("travel_approvals.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, processing, completed, failed
    proof_type = Column(String(50), nullable=True)  # receipt, tx_hash, bank_transfer
    proof_data = Column(Text, nullable=True)
    attestation_hash = Column(String(255), nullable=True)
    processed_by = Column(String(255), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # Relationships
    travel_approval = relationship("TravelApproval", back_populates="payouts")
