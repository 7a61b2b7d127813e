"""Shared route dependencies."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from opshub_api.actions.handlers import ActionContext, ActionHandlers
from opshub_api.db.session import get_db
from opshub_api.services.store import OpsStore


def get_store(db: Session = Depends(get_db)) -> OpsStore:
    return OpsStore(db)


def get_handlers(request: Request, store: OpsStore = Depends(get_store)) -> ActionHandlers:
    """Build the orchestrator from collaborators held on app state."""
    return ActionHandlers(
        store,
        request.app.state.attestation,
        request.app.state.policy,
    )


def get_action_context(request: Request) -> ActionContext:
    return ActionContext(
        operator=request.state.operator,
        correlation_id=getattr(request.state, "correlation_id", None),
    )
