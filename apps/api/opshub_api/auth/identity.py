"""Bearer token verification against the external identity provider."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from jose import jwt

from opshub_api.settings import Settings

logger = logging.getLogger(__name__)


class IdentityVerifier(ABC):
    """Turns a bearer token into provider claims."""

    @abstractmethod
    async def verify_token(self, token: str) -> Optional[dict[str, Any]]:
        """Return claims for a valid token, None or raise otherwise."""


class IntrospectionIdentityVerifier(IdentityVerifier):
    """Verifies tokens with the provider's token-introspection endpoint."""

    def __init__(
        self,
        introspection_url: Optional[str],
        app_id: Optional[str],
        app_secret: Optional[str],
        timeout: float = 5.0,
    ):
        self.introspection_url = introspection_url
        self.app_id = app_id
        self.app_secret = app_secret
        self.timeout = timeout

    async def verify_token(self, token: str) -> Optional[dict[str, Any]]:
        if not self.introspection_url or not self.app_id or not self.app_secret:
            raise RuntimeError("Identity introspection is not configured")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.introspection_url,
                data={"token": token},
                auth=(self.app_id, self.app_secret),
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            claims = response.json()

        if not isinstance(claims, dict) or not claims.get("active", False):
            return None
        return claims


class JwtIdentityVerifier(IdentityVerifier):
    """Verifies provider-issued ES256 access tokens locally."""

    algorithms = ["ES256"]

    def __init__(self, verification_key: Optional[str], app_id: Optional[str], issuer: str):
        self.verification_key = verification_key
        self.app_id = app_id
        self.issuer = issuer

    async def verify_token(self, token: str) -> Optional[dict[str, Any]]:
        if not self.verification_key or not self.app_id:
            raise RuntimeError("Identity verification key is not configured")
        return jwt.decode(
            token,
            self.verification_key,
            algorithms=self.algorithms,
            audience=self.app_id,
            issuer=self.issuer,
        )


def get_identity_verifier(settings: Settings) -> IdentityVerifier:
    """Get verifier instance based on settings."""
    kind = settings.identity_verifier.lower()

    if kind == "introspection":
        return IntrospectionIdentityVerifier(
            settings.identity_introspection_url,
            settings.identity_app_id,
            settings.identity_app_secret,
            timeout=settings.identity_timeout_seconds,
        )
    elif kind == "jwt":
        return JwtIdentityVerifier(
            settings.identity_verification_key,
            settings.identity_app_id,
            settings.identity_issuer,
        )
    else:
        raise ValueError(f"Unknown identity verifier: {kind}")
