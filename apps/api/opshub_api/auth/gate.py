"""Access control gate for mutating calls."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from opshub_api.auth.identity import IdentityVerifier
from opshub_api.errors import AuthenticationError
from opshub_api.utils.metrics import auth_failures

logger = logging.getLogger(__name__)

OPERATOR_CLAIMS = ("sub", "user_id", "userId")


@dataclass(frozen=True)
class Operator:
    """Authenticated caller, used for audit attribution only."""

    operator_id: str
    claims: dict[str, Any] = field(default_factory=dict, compare=False)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer`` header value."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


class AccessControlGate:
    """
    Verifies bearer credentials and extracts the operator identity.

    Any valid token may call any action. Every failure, whether a malformed
    header, a provider error or an empty result, is the same
    ``AuthenticationError``.
    """

    def __init__(self, verifier: IdentityVerifier):
        self.verifier = verifier

    async def authenticate(self, authorization: Optional[str]) -> Operator:
        token = extract_bearer_token(authorization)
        if not token:
            self._reject("missing bearer token")

        try:
            claims = await self.verifier.verify_token(token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            self._reject("verification error")

        operator_id = None
        if claims:
            operator_id = next((str(claims[k]) for k in OPERATOR_CLAIMS if claims.get(k)), None)
        if not operator_id:
            self._reject("no operator identity in claims")

        return Operator(operator_id=operator_id, claims=dict(claims))

    def _reject(self, reason: str):
        auth_failures.inc()
        logger.info("Rejected credential", extra={"reason": reason})
        raise AuthenticationError()
