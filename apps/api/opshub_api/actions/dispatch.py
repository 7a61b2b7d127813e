"""Action dispatch table."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError

from opshub_api.actions import schemas
from opshub_api.actions.handlers import ActionContext, ActionHandlers, ActionResult
from opshub_api.errors import ActionValidationError, OpsError, UnsupportedActionError
from opshub_api.utils.metrics import ops_actions

logger = logging.getLogger(__name__)


class ActionName(str, Enum):
    ISSUE_TRAVEL_APPROVAL = "issue_travel_approval"
    RECORD_CHECK_IN = "record_check_in"
    CREATE_PAYOUT = "create_payout"
    COMPLETE_PAYOUT = "complete_payout"
    CREATE_ONBOARDING_INVITE = "create_onboarding_invite"
    SUBMIT_ONBOARDING = "submit_onboarding"
    HEALTH = "health"


@dataclass(frozen=True)
class ActionSpec:
    schema: Optional[type[BaseModel]]
    handler: Callable


ACTIONS: dict[ActionName, ActionSpec] = {
    ActionName.ISSUE_TRAVEL_APPROVAL: ActionSpec(
        schemas.IssueTravelApprovalInput, ActionHandlers.issue_travel_approval
    ),
    ActionName.RECORD_CHECK_IN: ActionSpec(schemas.RecordCheckInInput, ActionHandlers.record_check_in),
    ActionName.CREATE_PAYOUT: ActionSpec(schemas.CreatePayoutInput, ActionHandlers.create_payout),
    ActionName.COMPLETE_PAYOUT: ActionSpec(schemas.CompletePayoutInput, ActionHandlers.complete_payout),
    ActionName.CREATE_ONBOARDING_INVITE: ActionSpec(
        schemas.CreateOnboardingInviteInput, ActionHandlers.create_onboarding_invite
    ),
    ActionName.SUBMIT_ONBOARDING: ActionSpec(schemas.SubmitOnboardingInput, ActionHandlers.submit_onboarding),
    ActionName.HEALTH: ActionSpec(None, ActionHandlers.health),
}

missing = set(ActionName) - set(ACTIONS)
if missing:
    raise RuntimeError(f"Actions without a handler: {sorted(a.value for a in missing)}")
del missing


def _validation_details(error: ValidationError) -> list[dict[str, str]]:
    return [
        {"loc": ".".join(str(part) for part in item["loc"]), "msg": item["msg"]}
        for item in error.errors()
    ]


def parse_action(body: Any) -> tuple[ActionName, Optional[BaseModel]]:
    """Validate the request envelope and the action's payload."""
    if not isinstance(body, dict):
        raise ActionValidationError("Request body must be a JSON object")

    raw_action = body.get("action")
    if not isinstance(raw_action, str) or not raw_action:
        raise ActionValidationError("Missing action")
    try:
        action = ActionName(raw_action)
    except ValueError:
        raise UnsupportedActionError(f"Unsupported action: {raw_action}")

    spec = ACTIONS[action]
    if spec.schema is None:
        return action, None

    payload = body.get("payload")
    if not isinstance(payload, dict):
        raise ActionValidationError("payload must be a JSON object")
    try:
        return action, spec.schema.model_validate(payload)
    except ValidationError as e:
        raise ActionValidationError("Invalid payload", details=_validation_details(e)) from e


async def dispatch(handlers: ActionHandlers, body: Any, ctx: ActionContext) -> dict:
    """Run one action end to end and return the response body."""
    try:
        action, data = parse_action(body)
    except OpsError as e:
        ops_actions.labels(action="unknown", outcome=e.code).inc()
        raise

    try:
        result = await ACTIONS[action].handler(handlers, data, ctx)
    except OpsError as e:
        ops_actions.labels(action=action.value, outcome=e.code).inc()
        logger.info(
            f"Action {action.value} failed: {e.message}",
            extra={
                "action": action.value,
                "operator_id": ctx.operator.operator_id,
                "correlation_id": ctx.correlation_id,
            },
        )
        raise

    ops_actions.labels(action=action.value, outcome="ok").inc()
    logger.info(
        "Action completed",
        extra={
            "action": action.value,
            "operator_id": ctx.operator.operator_id,
            "correlation_id": ctx.correlation_id,
        },
    )
    if isinstance(result, ActionResult):
        return result.to_dict()
    return result
