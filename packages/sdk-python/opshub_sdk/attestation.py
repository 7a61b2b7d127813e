"""Offline verification of Ops Hub attestation documents."""

import hashlib
import hmac
import json
from decimal import Decimal
from typing import Any, Union


def _number(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if isinstance(key, bool) or key is None:
        return json.dumps(key)
    if isinstance(key, (int, float, Decimal)):
        return str(_number(key))
    return str(key)


def _normalize(payload: Any) -> Any:
    if isinstance(payload, dict):
        return {_key(k): _normalize(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [_normalize(v) for v in payload]
    if isinstance(payload, bool):
        return payload
    if isinstance(payload, (int, float, Decimal)):
        return _number(payload)
    return payload


def compute_digest(payload: Any) -> str:
    """
    SHA-256 over the canonical JSON of a payload.

    Canonical JSON normalizes numbers by value (integral numbers are written
    as integers), turns keys into strings, sorts keys at every depth, has no
    whitespace and is UTF-8 encoded, matching what the API signs and anchors.
    """
    text = json.dumps(_normalize(payload), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def verify_attestation_document(file_content: Union[str, bytes]) -> bool:
    """
    Check that an anchored document's digest matches its payload.

    Args:
        file_content: The ``fileContent`` submitted to the anchoring provider

    Returns:
        True if the document is well-formed and its digest is consistent
    """
    if isinstance(file_content, bytes):
        file_content = file_content.decode("utf-8")
    try:
        document = json.loads(file_content)
    except ValueError:
        return False

    if not isinstance(document, dict) or "payload" not in document:
        return False
    claimed = document.get("digest")
    if not isinstance(claimed, str):
        return False

    return hmac.compare_digest(compute_digest(document["payload"]), claimed)
