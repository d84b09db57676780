"""Send one-time codes by SMS through the Twilio Messages REST API."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from couponapp.core.config import settings
from couponapp.core.errors import SmsDispatchError

logger = logging.getLogger(__name__)


@dataclass
class SmsAck:
    message_id: str
    to: str


class SmsDispatcher:
    """Anything that can deliver a verification code to a phone key."""

    def send(self, phone_key: str, code: str) -> SmsAck:
        raise NotImplementedError


def verification_message(code: str, expire_minutes: int) -> str:
    return f"Your verification code is {code}. Valid for {expire_minutes} minutes."


class TwilioSmsDispatcher(SmsDispatcher):
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_base: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _post(self, url: str, data: dict) -> httpx.Response:
        auth = (self.account_sid, self.auth_token)
        if self._client is not None:
            return self._client.post(url, data=data, auth=auth)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(url, data=data, auth=auth)

    def send(self, phone_key: str, code: str) -> SmsAck:
        if not self.configured:
            logger.warning("Twilio not configured (TWILIO_ACCOUNT_SID/TWILIO_AUTH_TOKEN/TWILIO_FROM_NUMBER).")
            raise SmsDispatchError("SMS provider is not configured.")

        url = f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"
        data = {
            "To": phone_key,
            "From": self.from_number,
            "Body": verification_message(code, settings.OTP_EXPIRE_MINUTES),
        }
        try:
            resp = self._post(url, data)
        except httpx.RequestError as e:
            logger.warning("Twilio request failed for %s: %s", phone_key, e)
            raise SmsDispatchError("Could not reach the SMS provider.") from e

        if resp.status_code >= 400:
            # Error body: { "code": 21608, "message": "...", "status": 400 }
            provider_code = None
            msg = resp.text[:200]
            try:
                body = resp.json()
                provider_code = body.get("code")
                msg = body.get("message") or msg
            except ValueError:
                pass
            logger.warning("Twilio returned %s (code=%s) for %s: %s", resp.status_code, provider_code, phone_key, msg)
            raise SmsDispatchError("SMS provider rejected the message.", provider_code=provider_code)

        try:
            sid = resp.json().get("sid") or ""
        except ValueError:
            sid = ""
        logger.info("Verification SMS sent to %s (sid=%s)", phone_key, sid)
        return SmsAck(message_id=sid, to=phone_key)


def get_sms_dispatcher() -> SmsDispatcher:
    """FastAPI dependency; overridden in tests."""
    return TwilioSmsDispatcher(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_FROM_NUMBER,
        api_base=settings.TWILIO_API_BASE,
        timeout=settings.SMS_TIMEOUT_SECONDS,
    )
