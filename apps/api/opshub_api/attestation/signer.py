"""Signing capability for attestation documents (KMS-ready)."""

import hashlib
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from opshub_api.settings import Settings

logger = logging.getLogger(__name__)


def address_from_public_key(public_key_der: bytes) -> str:
    """Derive a stable 20-byte signer address from a DER public key."""
    return "0x" + hashlib.sha256(public_key_der).hexdigest()[-40:]


class WalletSigner(ABC):
    """Signs human-readable attestation messages on behalf of an address."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Address included verbatim in attestation documents."""

    @abstractmethod
    def sign(self, message: str) -> str:
        """Sign a message and return the signature as 0x-prefixed hex."""


class LocalKeySigner(WalletSigner):
    """Development signer using an RSA keypair from file."""

    def __init__(self, key_path: str):
        self.key_path = Path(key_path)
        self._private_key = None
        self._address = None
        self._load_or_generate_key()

    def _load_or_generate_key(self):
        """Load or generate RSA keypair."""
        if self.key_path.exists():
            with open(self.key_path, "rb") as f:
                self._private_key = serialization.load_pem_private_key(f.read(), password=None)
        else:
            self._private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
            self.key_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.key_path, "wb") as f:
                f.write(
                    self._private_key.private_bytes(
                        encoding=serialization.Encoding.PEM,
                        format=serialization.PrivateFormat.PKCS8,
                        encryption_algorithm=serialization.NoEncryption(),
                    )
                )
            logger.info(f"Generated local signing key at {self.key_path}")

        public_der = self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        self._address = address_from_public_key(public_der)

    @property
    def address(self) -> str:
        return self._address

    def sign(self, message: str) -> str:
        """Sign with RSA-PSS over SHA-256."""
        signature = self._private_key.sign(
            message.encode("utf-8"),
            padding.PSS(
                mgf=padding.MGF1(hashes.SHA256()),
                salt_length=padding.PSS.MAX_LENGTH,
            ),
            hashes.SHA256(),
        )
        return "0x" + signature.hex()


class KmsSigner(WalletSigner):
    """AWS KMS signer for production."""

    def __init__(self, key_id: str, region: Optional[str] = None):
        self.key_id = key_id
        self._kms_client = None
        self._address = None
        self._initialize_kms(region)

    def _initialize_kms(self, region: Optional[str]):
        """Initialize AWS KMS client and validate configuration."""
        try:
            self._kms_client = boto3.client("kms", region_name=region)

            try:
                response = self._kms_client.describe_key(KeyId=self.key_id)
                metadata = response["KeyMetadata"]

                key_usage = metadata.get("KeyUsage", "")
                if key_usage != "SIGN_VERIFY":
                    raise ValueError(
                        f"KMS key {self.key_id} must have SIGN_VERIFY usage, got {key_usage}"
                    )

                public = self._kms_client.get_public_key(KeyId=self.key_id)
                self._address = address_from_public_key(public["PublicKey"])

                logger.info(
                    f"KMS signer initialized for key {self.key_id}",
                    extra={"key_arn": metadata.get("Arn"), "signer_address": self._address},
                )
            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "")
                if error_code == "NotFoundException":
                    raise ValueError(f"KMS key {self.key_id} not found")
                elif error_code == "AccessDeniedException":
                    raise ValueError(f"Access denied to KMS key {self.key_id}")
                else:
                    raise ValueError(f"Failed to access KMS key {self.key_id}: {e}")

        except BotoCoreError as e:
            raise ValueError(f"Failed to initialize KMS client: {e}")

    @property
    def address(self) -> str:
        return self._address

    def sign(self, message: str) -> str:
        """Sign a message using KMS."""
        try:
            response = self._kms_client.sign(
                KeyId=self.key_id,
                Message=message.encode("utf-8"),
                MessageType="RAW",
                SigningAlgorithm="RSASSA_PSS_SHA_256",
            )
            return "0x" + response["Signature"].hex()
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code == "AccessDeniedException":
                raise ValueError(f"Access denied to KMS key {self.key_id}")
            raise ValueError(f"KMS signing failed: {e}")


def get_signer(settings: Settings) -> Optional[WalletSigner]:
    """Get signer instance based on settings, or None when signing is off."""
    provider = settings.attestation_signer.lower()

    if provider == "none":
        return None
    elif provider == "local":
        return LocalKeySigner(settings.signing_key_path)
    elif provider == "aws_kms":
        if not settings.signing_key_id:
            raise ValueError("SIGNING_KEY_ID required for AWS KMS")
        if not settings.aws_region:
            raise ValueError("AWS_REGION required for AWS KMS")
        return KmsSigner(settings.signing_key_id, region=settings.aws_region)
    else:
        raise ValueError(f"Unknown signing provider: {provider}")
