"""CLI commands for the Ops Hub API."""

import click

from opshub_api.db.base import Base
from opshub_api.db.seed import seed_all
from opshub_api.db.session import SessionLocal, get_engine
from opshub_api.models import TravelApproval
from opshub_api.qr import build_qr_payload


@click.group()
def cli():
    """Ops Hub API CLI."""
    pass


@cli.command("init-db")
def init_db():
    """Create tables directly, without migrations (development only)."""
    import opshub_api.models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    click.echo("✓ Tables created.")


@cli.command()
def seed():
    """Seed initial data."""
    click.echo("Seeding initial data...")
    db = SessionLocal()
    try:
        seed_all(db)
        click.echo("✓ Seed data created.")
    except Exception as e:
        click.echo(f"✗ Error seeding data: {e}", err=True)
        db.rollback()
        raise SystemExit(1)
    finally:
        db.close()


@cli.command("qr-payload")
@click.argument("approval_id")
def qr_payload(approval_id):
    """Print the check-in QR payload for a travel approval."""
    db = SessionLocal()
    try:
        approval = db.query(TravelApproval).filter(TravelApproval.id == approval_id).first()
        if not approval:
            click.echo(f"✗ Travel approval {approval_id} not found", err=True)
            raise SystemExit(1)
        click.echo(build_qr_payload(approval.id, approval.qr_token))
    finally:
        db.close()


if __name__ == "__main__":
    cli()
