"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    postgres_user: str = "opshub"
    postgres_password: str = "opshub_dev_password"
    postgres_db: str = "opshub"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    # Runtime
    environment: str = "development"

    # Identity provider (bearer token verification)
    identity_verifier: str = "introspection"  # introspection, jwt
    identity_app_id: Optional[str] = None
    identity_app_secret: Optional[str] = None
    identity_introspection_url: Optional[str] = None
    identity_verification_key: Optional[str] = None  # PEM, for jwt verifier
    identity_issuer: str = "privy.io"
    identity_timeout_seconds: float = 5.0

    # Attestation anchoring
    attestation_enabled: bool = True
    attestation_provider_url: Optional[str] = None
    attestation_provider_token: Optional[str] = None
    attestation_timeout_seconds: float = 10.0
    attestation_service_token: Optional[str] = None  # Shared token for /v1/attest
    attestation_path_prefix: str = "/attestations"

    # Attestation signer
    attestation_signer: str = "none"  # none, local, aws_kms
    signing_key_path: str = "./secrets/opshub_signing_key.pem"
    signing_key_id: Optional[str] = None  # For KMS
    aws_region: Optional[str] = None
    signature_label: str = "ETH Safari Ops Hub Attestation"

    # Workflow policy
    allow_repeat_check_in: bool = True
    allow_payout_retransition: bool = False
    require_payout_proof: bool = False

    # Logging
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @property
    def database_url_computed(self) -> str:
        """Compute database URL if not explicitly set."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    def validate_production_settings(self):
        """Validate settings for production environment."""
        env = self.environment.lower()
        if env not in ("development", "test", "dev"):
            if not self.identity_app_id or not self.identity_app_secret:
                raise ValueError(
                    "IDENTITY_APP_ID and IDENTITY_APP_SECRET are required in production."
                )
            if self.identity_verifier == "introspection" and not self.identity_introspection_url:
                raise ValueError(
                    "IDENTITY_INTROSPECTION_URL is required for the introspection verifier."
                )
            if self.identity_verifier == "jwt" and not self.identity_verification_key:
                raise ValueError(
                    "IDENTITY_VERIFICATION_KEY is required for the jwt verifier."
                )
            if self.attestation_signer == "local":
                raise ValueError(
                    "ATTESTATION_SIGNER=local is not allowed in production. "
                    "Use ATTESTATION_SIGNER=aws_kms or none."
                )
            if self.attestation_enabled and not self.attestation_provider_url:
                raise ValueError(
                    "ATTESTATION_PROVIDER_URL is required when attestation is enabled."
                )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
