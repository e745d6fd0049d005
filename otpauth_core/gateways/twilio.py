"""
Twilio SMS Gateway
==================
Production gateway for the Twilio Messages API.
"""

from base64 import b64encode
from typing import Optional

import httpx
import structlog
from pydantic import BaseModel

from .sms import SendResult, SmsGateway

logger = structlog.get_logger(__name__)


class TwilioMessage(BaseModel):
    """Subset of a Twilio message resource."""
    sid: str
    status: str
    num_segments: Optional[str] = None


class TwilioSmsGateway(SmsGateway):
    """
    Sends OTP messages through Twilio.

    Transport errors and 5xx/429 responses are reported as retryable;
    other 4xx responses are not.
    """

    name = "twilio"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.from_number = from_number
        self.base_url = f"https://api.twilio.com/2010-04-01/Accounts/{account_sid}"

        auth = b64encode(f"{account_sid}:{auth_token}".encode()).decode()
        self._client = client or httpx.AsyncClient(
            headers={"Authorization": f"Basic {auth}"},
            timeout=timeout,
        )

    async def send(self, phone: str, message: str) -> SendResult:
        """Send SMS via Twilio."""
        payload = {
            "To": phone,
            "From": self.from_number,
            "Body": message,
        }

        try:
            response = await self._client.post(
                f"{self.base_url}/Messages.json",
                data=payload,
            )
        except httpx.HTTPError as e:
            logger.error("twilio_send_failed", error=str(e))
            return SendResult(success=False, error_message=str(e), retryable=True)

        if response.status_code == 201:
            data = TwilioMessage.model_validate(response.json())
            logger.info("twilio_sms_sent", message_id=data.sid, status=data.status)
            return SendResult(success=True, message_id=data.sid)

        try:
            error_data = response.json()
        except ValueError:
            error_data = {}

        retryable = response.status_code >= 500 or response.status_code == 429
        logger.warning(
            "twilio_send_rejected",
            status_code=response.status_code,
            error_code=error_data.get("code"),
            retryable=retryable,
        )
        return SendResult(
            success=False,
            error_code=str(error_data.get("code", response.status_code)),
            error_message=error_data.get("message", "Unknown error"),
            retryable=retryable,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()
