"""QR payload embedded in a travel approval's check-in code."""

import json
from dataclasses import dataclass
from typing import Optional

from opshub_api.errors import ActionValidationError
from opshub_api.utils.time import isoformat_z, utcnow

QR_TYPE = "travel_approval"


@dataclass(frozen=True)
class QRPayload:
    approval_id: Optional[str]
    token: str
    timestamp: Optional[str] = None


def build_qr_payload(approval_id: str, token: str) -> str:
    """Serialize the payload a scanner reads back at check-in."""
    return json.dumps(
        {
            "type": QR_TYPE,
            "approvalId": approval_id,
            "token": token,
            "timestamp": isoformat_z(utcnow()),
        }
    )


def parse_qr_payload(text: str) -> QRPayload:
    """Parse scanned QR text; only travel approval payloads are accepted."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ActionValidationError("QR code is not valid JSON") from e

    if not isinstance(data, dict) or data.get("type") != QR_TYPE:
        raise ActionValidationError("Invalid QR code type")

    token = data.get("token")
    if not isinstance(token, str) or not token:
        raise ActionValidationError("QR code carries no token")

    return QRPayload(
        approval_id=data.get("approvalId"),
        token=token,
        timestamp=data.get("timestamp"),
    )
