"""Ops Hub API client."""

import requests
from typing import Any, Optional


class OpsClientError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, code: str, detail: Optional[str] = None):
        super().__init__(f"{status_code} {code}: {detail}" if detail else f"{status_code} {code}")
        self.status_code = status_code
        self.code = code
        self.detail = detail


class OpsClient:
    """Client for the Ops Hub action endpoint."""

    def __init__(self, access_token: str, base_url: str = "http://localhost:8000", timeout: float = 30.0):
        """Initialize client."""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {access_token}"})

    def _raise_for_error(self, response: requests.Response):
        if response.ok:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        raise OpsClientError(
            response.status_code,
            body.get("error", "http_error") if isinstance(body, dict) else "http_error",
            body.get("detail") if isinstance(body, dict) else None,
        )

    def call(self, action: str, payload: Optional[dict] = None) -> dict:
        """Send one ``{action, payload}`` request."""
        response = self.session.post(
            f"{self.base_url}/v1/ops",
            json={"action": action, "payload": payload or {}},
            timeout=self.timeout,
        )
        self._raise_for_error(response)
        return response.json()

    def _get(self, path: str, params: Optional[dict] = None) -> Any:
        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        self._raise_for_error(response)
        return response.json()

    def issue_travel_approval(
        self,
        participant: dict,
        itinerary: str,
        stipend_amount: str,
        sponsor_notes: Optional[str] = None,
        status: str = "approved",
    ) -> dict:
        """Issue a travel approval, creating the participant on first sight of the email."""
        payload = {
            "participant": participant,
            "itinerary": itinerary,
            "stipendAmount": str(stipend_amount),
            "status": status,
        }
        if sponsor_notes:
            payload["sponsorNotes"] = sponsor_notes
        return self.call("issue_travel_approval", payload)

    def record_check_in(self, token: str, location: str) -> dict:
        return self.call("record_check_in", {"token": token, "location": location})

    def record_check_in_from_qr(self, qr_payload: str, location: str) -> dict:
        """Check in with the raw text a scanner read from the QR code."""
        return self.call("record_check_in", {"qrPayload": qr_payload, "location": location})

    def create_payout(self, travel_approval_id: str, amount: Optional[str] = None) -> dict:
        payload = {"travelApprovalId": travel_approval_id}
        if amount is not None:
            payload["amount"] = str(amount)
        return self.call("create_payout", payload)

    def complete_payout(
        self,
        payout_id: str,
        status: str = "completed",
        proof_type: Optional[str] = None,
        proof_data: Optional[str] = None,
    ) -> dict:
        payload = {"payoutId": payout_id, "status": status}
        if proof_type is not None:
            payload["proofType"] = proof_type
            payload["proofData"] = proof_data
        return self.call("complete_payout", payload)

    def create_onboarding_invite(self, name: str, email: str, role: str) -> dict:
        return self.call("create_onboarding_invite", {"name": name, "email": email, "role": role})

    def submit_onboarding(
        self,
        token: str,
        itinerary: str,
        stipend_amount: str,
        notes: Optional[str] = None,
        attestation: Optional[dict] = None,
    ) -> dict:
        payload = {"token": token, "itinerary": itinerary, "stipendAmount": str(stipend_amount)}
        if notes:
            payload["notes"] = notes
        if attestation:
            payload["attestation"] = attestation
        return self.call("submit_onboarding", payload)

    def health(self) -> dict:
        """Authenticated round trip; returns the operator id the API sees."""
        return self.call("health")

    def recent_activity(self, limit: int = 20) -> list:
        return self._get("/v1/activity", {"limit": limit})["items"]

    def participant_timeline(self, participant_id: str) -> dict:
        return self._get(f"/v1/participants/{participant_id}/timeline")

    def stats(self) -> dict:
        return self._get("/v1/stats")

    def get_invite(self, token: str) -> dict:
        return self._get(f"/v1/invites/{token}")

    def list_invites(self, limit: int = 50) -> list:
        return self._get("/v1/invites", {"limit": limit})["items"]

    def list_payouts(self, status: Optional[str] = None, limit: int = 50) -> list:
        params = {"limit": limit}
        if status:
            params["status"] = status
        return self._get("/v1/payouts", params)["items"]

    def list_participants(self, limit: int = 100) -> list:
        return self._get("/v1/participants", {"limit": limit})["items"]
