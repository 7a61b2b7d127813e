"""Single action endpoint for operator mutations."""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from opshub_api.actions.dispatch import ActionName, dispatch
from opshub_api.actions.handlers import ActionContext, ActionHandlers
from opshub_api.errors import OpsError, PersistenceError
from opshub_api.routes.deps import get_action_context, get_handlers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["ops"])


@router.get("/ops")
async def ops_liveness():
    """Liveness body for the action route. No credential required."""
    return {
        "status": "ok",
        "service": "opshub-ops",
        "actions": [action.value for action in ActionName],
    }


@router.post("/ops")
async def run_action(
    request: Request,
    handlers: ActionHandlers = Depends(get_handlers),
    ctx: ActionContext = Depends(get_action_context),
):
    """Dispatch ``{action, payload}`` to its handler."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(
            status_code=400,
            content={"error": "invalid_json", "detail": "Request body is not valid JSON"},
        )

    try:
        return await dispatch(handlers, body, ctx)
    except OpsError:
        raise
    except Exception as e:
        logger.exception(
            "Unhandled action failure",
            extra={"correlation_id": ctx.correlation_id, "operator_id": ctx.operator.operator_id},
        )
        raise PersistenceError("Action failed") from e
