"""Attestation service: digest, optional signature, best-effort anchoring."""

import asyncio
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from opshub_api.attestation.digest import canonicalize, digest
from opshub_api.attestation.provider import (
    AnchoringProvider,
    HttpAnchoringProvider,
    extract_anchor_hash,
)
from opshub_api.attestation.signer import WalletSigner, get_signer
from opshub_api.settings import Settings
from opshub_api.utils.metrics import attestation_duration, attestations_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttestationResult:
    """Outcome of a successfully anchored attestation."""

    hash: str
    digest: str
    signature: Optional[str]
    signer: Optional[str]
    timestamp: str

    def to_dict(self) -> dict:
        return asdict(self)


class AttestationService:
    """
    Builds canonical attestation documents and anchors them.

    ``attest`` never raises: provider errors, signer errors, missing hashes
    and timeouts all come back as ``None`` so callers can carry on as if
    attestation had not been attempted.
    """

    def __init__(
        self,
        provider: Optional[AnchoringProvider],
        enabled: bool = True,
        timeout_seconds: Optional[float] = 10.0,
        signer: Optional[WalletSigner] = None,
        signature_label: str = "ETH Safari Ops Hub Attestation",
        path_prefix: str = "/attestations",
    ):
        self.provider = provider
        self._enabled = enabled
        self.timeout_seconds = timeout_seconds
        self.signer = signer
        self.signature_label = signature_label
        self.path_prefix = path_prefix.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "AttestationService":
        """Build the service from process configuration."""
        provider = None
        if settings.attestation_provider_url:
            provider = HttpAnchoringProvider(
                settings.attestation_provider_url,
                token=settings.attestation_provider_token,
                timeout=settings.attestation_timeout_seconds,
            )
        return cls(
            provider=provider,
            enabled=settings.attestation_enabled,
            timeout_seconds=settings.attestation_timeout_seconds,
            signer=get_signer(settings),
            signature_label=settings.signature_label,
            path_prefix=settings.attestation_path_prefix,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled and self.provider is not None

    def build_message(self, kind: str, payload_digest: str, timestamp: str) -> str:
        """Human-readable message a wallet signs."""
        return "\n".join(
            [
                self.signature_label,
                f"Kind: {kind}",
                f"Digest: {payload_digest}",
                f"Timestamp: {timestamp}",
            ]
        )

    async def attest(
        self,
        kind: str,
        payload: Mapping[str, Any],
        signer: Optional[WalletSigner] = None,
    ) -> Optional[AttestationResult]:
        """Attest a payload; returns None whenever anchoring does not succeed."""
        if not self.enabled:
            attestations_total.labels(kind=kind, outcome="disabled").inc()
            return None

        started = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                self._attest(kind, payload, signer or self.signer),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Attestation timed out",
                extra={"kind": kind, "timeout_seconds": self.timeout_seconds},
            )
            attestations_total.labels(kind=kind, outcome="timeout").inc()
            return None
        except Exception as e:
            logger.warning(f"Attestation failed: {e}", exc_info=True, extra={"kind": kind})
            attestations_total.labels(kind=kind, outcome="failed").inc()
            return None
        finally:
            attestation_duration.labels(kind=kind).observe(time.perf_counter() - started)

        if result is None:
            attestations_total.labels(kind=kind, outcome="no_hash").inc()
        else:
            attestations_total.labels(kind=kind, outcome="anchored").inc()
        return result

    async def _attest(
        self,
        kind: str,
        payload: Mapping[str, Any],
        signer: Optional[WalletSigner],
    ) -> Optional[AttestationResult]:
        payload_digest = digest(payload)
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

        signature = None
        signer_address = None
        if signer is not None:
            message = self.build_message(kind, payload_digest, timestamp)
            signature = await asyncio.to_thread(signer.sign, message)
            signer_address = signer.address

        document = {
            "kind": kind,
            "payload": payload,
            "digest": payload_digest,
            "signature": signature,
            "signer": signer_address,
            "timestamp": timestamp,
        }
        file_object = {
            "fileName": f"{kind}-{uuid.uuid4()}.json",
            "fileContent": canonicalize(document).decode("utf-8"),
            "path": f"{self.path_prefix}/{kind}",
        }

        response = await self.provider.create_genesis_revision(file_object)
        anchor_hash = extract_anchor_hash(response)
        if not anchor_hash:
            tag = response.get("tag") if isinstance(response, Mapping) else None
            logger.warning(
                "Anchoring provider responded without hash",
                extra={"kind": kind, "provider_tag": tag},
            )
            return None

        return AttestationResult(
            hash=anchor_hash,
            digest=payload_digest,
            signature=signature,
            signer=signer_address,
            timestamp=timestamp,
        )
