"""
modules/email_marketing/functions.py — Client for the remote email functions.

Campaign delivery and sequence processing run as serverless functions:

    POST {functions_url}/trigger-email-campaign     {"action": "trigger", "campaignId": ...}
    POST {functions_url}/process-email-sequences    {"action": "process" | "process_enrollment"
                                                     | "health_check", ...}

Registered with the module registry as the "EmailFunctionClient" provider.
"""

import logging
from typing import Optional

import httpx

from core.errors import RemoteFunctionError

log = logging.getLogger("shop.email")

TRIGGER_CAMPAIGN = "trigger-email-campaign"
PROCESS_SEQUENCES = "process-email-sequences"


class EmailFunctionClient:

    def __init__(self, base_url: Optional[str], api_key: Optional[str] = None,
                 timeout: float = 15.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def invoke(self, name: str, body: dict) -> dict:
        """POST body to a function and return its JSON reply.

        Raises RemoteFunctionError when the host is not configured, the call
        fails, or the function answers with a non-2xx status or an error body.
        """
        if not self.configured:
            raise RemoteFunctionError(
                "Email functions are not configured",
                details={"functions_url": "not set"},
            )
        url = f"{self.base_url}/{name}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            log.error(f"Email function {name} unreachable: {e}")
            raise RemoteFunctionError(f"Email function {name} unreachable", details={"function": name}) from e

        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {"raw": resp.text}

        if resp.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            log.error(f"Email function {name} returned {resp.status_code}: {message or resp.text[:200]}")
            raise RemoteFunctionError(
                message or f"Email function {name} failed with status {resp.status_code}",
                details={"function": name, "status": str(resp.status_code)},
            )
        if isinstance(data, dict) and data.get("error"):
            log.error(f"Email function {name} reported an error: {data['error']}")
            raise RemoteFunctionError(str(data["error"]), details={"function": name})

        log.info(f"Email function {name} ({body.get('action')}) ok")
        return data if isinstance(data, dict) else {"result": data}

    # -------------- Campaigns --------------

    def trigger_campaign(self, campaign_id: int) -> dict:
        return self.invoke(TRIGGER_CAMPAIGN, {"action": "trigger", "campaignId": campaign_id})

    # -------------- Sequences --------------

    def process(self, sequence_id: Optional[int] = None, customer_id: Optional[int] = None,
                force: bool = False) -> dict:
        """Send due sequence steps, optionally limited to one sequence or customer."""
        body = {"action": "process"}
        if sequence_id is not None:
            body["sequenceId"] = sequence_id
        if customer_id is not None:
            body["customerId"] = customer_id
        if force:
            body["force"] = True
        return self.invoke(PROCESS_SEQUENCES, body)

    def process_enrollment(self, enrollment_id: int, force: bool = False) -> dict:
        body = {"action": "process_enrollment", "enrollmentId": enrollment_id}
        if force:
            body["force"] = True
        return self.invoke(PROCESS_SEQUENCES, body)

    def health_check(self) -> dict:
        return self.invoke(PROCESS_SEQUENCES, {"action": "health_check"})
