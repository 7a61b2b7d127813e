"""Ops Hub Python SDK."""

__version__ = "0.1.0"

from opshub_sdk.attestation import compute_digest, verify_attestation_document
from opshub_sdk.client import OpsClient, OpsClientError

__all__ = ["OpsClient", "OpsClientError", "compute_digest", "verify_attestation_document"]
