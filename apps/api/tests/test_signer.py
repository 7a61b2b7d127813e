"""Tests for attestation signers."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from opshub_api.attestation.signer import KmsSigner, LocalKeySigner, address_from_public_key, get_signer
from opshub_api.settings import Settings


@pytest.fixture
def public_key_der():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


@pytest.fixture
def mock_kms_client(public_key_der):
    """Mock KMS client."""
    client = MagicMock()
    client.describe_key.return_value = {
        "KeyMetadata": {
            "KeyId": "test-key-id",
            "KeySpec": "RSA_2048",
            "KeyUsage": "SIGN_VERIFY",
            "Arn": "arn:aws:kms:us-east-1:123456789012:key/test-key-id",
        }
    }
    client.get_public_key.return_value = {"PublicKey": public_key_der, "KeyId": "test-key-id"}
    client.sign.return_value = {"Signature": b"\x01\x02", "SigningAlgorithm": "RSASSA_PSS_SHA_256"}
    return client


def test_local_signer_generates_and_reloads_key(tmp_path):
    key_path = tmp_path / "keys" / "signing.pem"
    signer = LocalKeySigner(str(key_path))
    assert key_path.exists()

    reloaded = LocalKeySigner(str(key_path))
    assert reloaded.address == signer.address
    assert signer.address.startswith("0x")
    assert len(signer.address) == 42


def test_local_signature_verifies(tmp_path):
    key_path = tmp_path / "signing.pem"
    signer = LocalKeySigner(str(key_path))
    message = "ETH Safari Ops Hub Attestation\nKind: payout"

    signature = signer.sign(message)

    private_key = serialization.load_pem_private_key(key_path.read_bytes(), password=None)
    private_key.public_key().verify(
        bytes.fromhex(signature[2:]),
        message.encode("utf-8"),
        padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.MAX_LENGTH),
        hashes.SHA256(),
    )


@patch("boto3.client")
def test_kms_signer_initialization(mock_boto_client, mock_kms_client, public_key_der):
    mock_boto_client.return_value = mock_kms_client

    signer = KmsSigner("test-key-id", region="us-east-1")

    assert signer.key_id == "test-key-id"
    assert signer.address == address_from_public_key(public_key_der)
    mock_kms_client.describe_key.assert_called_once_with(KeyId="test-key-id")


@patch("boto3.client")
def test_kms_signer_sign(mock_boto_client, mock_kms_client):
    mock_boto_client.return_value = mock_kms_client
    signer = KmsSigner("test-key-id")

    assert signer.sign("hello") == "0x0102"
    mock_kms_client.sign.assert_called_once_with(
        KeyId="test-key-id",
        Message=b"hello",
        MessageType="RAW",
        SigningAlgorithm="RSASSA_PSS_SHA_256",
    )


@patch("boto3.client")
def test_kms_wrong_key_usage(mock_boto_client, mock_kms_client):
    mock_kms_client.describe_key.return_value["KeyMetadata"]["KeyUsage"] = "ENCRYPT_DECRYPT"
    mock_boto_client.return_value = mock_kms_client
    with pytest.raises(ValueError, match="SIGN_VERIFY"):
        KmsSigner("test-key-id")


@patch("boto3.client")
def test_kms_key_not_found(mock_boto_client, mock_kms_client):
    mock_kms_client.describe_key.side_effect = ClientError(
        {"Error": {"Code": "NotFoundException", "Message": "Key not found"}}, "DescribeKey"
    )
    mock_boto_client.return_value = mock_kms_client
    with pytest.raises(ValueError, match="not found"):
        KmsSigner("missing-key")


def test_get_signer_none_by_default():
    assert get_signer(Settings()) is None


def test_get_signer_kms_requires_key_id():
    with pytest.raises(ValueError):
        get_signer(Settings(attestation_signer="aws_kms", aws_region="us-east-1"))


def test_local_signer_rejected_in_production():
    settings = Settings(
        environment="production",
        identity_app_id="app",
        identity_app_secret="secret",
        identity_introspection_url="https://id.example/introspect",
        attestation_provider_url="https://anchor.example",
        attestation_signer="local",
    )
    with pytest.raises(ValueError, match="not allowed in production"):
        settings.validate_production_settings()
