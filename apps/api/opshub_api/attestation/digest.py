"""Canonical JSON serialization and content digests."""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID


def _json_default(value: Any) -> Any:
    """Render non-JSON scalars in a stable textual form."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _number(value: Any) -> Any:
    """Integral values become int, the rest float."""
    if isinstance(value, Decimal):
        if not value.is_finite():
            return float(value)
        if value == value.to_integral_value():
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
    return str(_json_default(key))


def normalize(payload: Any) -> Any:
    """
    Reduce a payload to its logical value.

    Numbers equal by value normalize to the same spelling, so ``1``, ``1.0``
    and ``Decimal("1.00")`` are interchangeable. Mapping keys become strings.
    """
    if isinstance(payload, dict):
        return {_key(k): normalize(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [normalize(v) for v in payload]
    if isinstance(payload, bool):
        return payload
    if isinstance(payload, (int, float, Decimal)):
        return _number(payload)
    return payload


def canonicalize(payload: Any) -> bytes:
    """
    Convert a payload to canonical JSON bytes.

    Canonical JSON:
    - Numbers and keys normalized by value
    - Lexicographically sorted keys at every depth
    - No whitespace
    - UTF-8 encoded
    """
    text = json.dumps(
        normalize(payload),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Compute SHA-256 hash and return as hex string."""
    return hashlib.sha256(data).hexdigest()


def digest(payload: Any) -> str:
    """Content digest of a payload: SHA-256 over its canonical JSON."""
    return sha256_hex(canonicalize(payload))
