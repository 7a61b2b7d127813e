"""Seed data for development and testing."""

from decimal import Decimal

from sqlalchemy.orm import Session

from opshub_api.models import ActivityLog, OnboardingInvite, Participant, TravelApproval
from opshub_api.utils.time import utcnow

DEMO_PARTICIPANTS = [
    {"name": "Amina Njoroge", "email": "amina@example.org", "role": "speaker"},
    {"name": "Kwame Mensah", "email": "kwame@example.org", "role": "volunteer"},
]


def seed_participants(db: Session) -> list[Participant]:
    """Seed demo participants, each with an approved travel approval."""
    participants = []
    for values in DEMO_PARTICIPANTS:
        participant = db.query(Participant).filter(Participant.email == values["email"]).first()
        if not participant:
            participant = Participant(**values)
            db.add(participant)
            db.flush()

            db.add(
                TravelApproval(
                    participant_id=participant.id,
                    itinerary="NBO -> Arusha, 3 nights",
                    stipend_amount=Decimal("250.00"),
                    status="approved",
                    qr_token=f"seed-{participant.id}",
                    approved_by="seed",
                    approved_at=utcnow(),
                )
            )
            db.add(
                ActivityLog(
                    event_type="approval",
                    participant_id=participant.id,
                    description="Travel approval issued",
                    metadata_json={"operator": "seed"},
                    attestation_verified=False,
                )
            )
        participants.append(participant)
    return participants


def seed_invites(db: Session):
    """Seed one pending onboarding invite."""
    token = "demo-invite-token"
    if not db.query(OnboardingInvite).filter(OnboardingInvite.token == token).first():
        db.add(
            OnboardingInvite(
                name="Zawadi Otieno",
                email="zawadi@example.org",
                role="mentor",
                token=token,
                status="pending",
                created_by="seed",
            )
        )


def seed_all(db: Session):
    """Seed all initial data."""
    seed_participants(db)
    seed_invites(db)
    db.commit()
