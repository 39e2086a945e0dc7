"""
=====================================================
AI Receptionist - Twilio SMS Service
=====================================================

Sends the follow-up text after a voice answer:
- Tour request: the tour booking link
- Fees question: the fee list
- Anything else: thanks + website
"""

from typing import Optional

import httpx
from loguru import logger

from services.intent.intent_classifier import Intent
from services.knowledge.business_profile import BusinessProfile

# Caller IDs the gateway reports for withheld numbers
UNREACHABLE_NUMBERS = ("", "+0000000000", "unknown", "private", "anonymous")


def build_follow_up_text(intent: Intent, profile: BusinessProfile) -> str:
    """Follow-up SMS body for an answered call"""
    if intent == Intent.TOUR and profile.tour_link:
        return f"Thanks for your interest in a tour at {profile.name}! Here's the link: {profile.tour_link}"
    if intent == Intent.FEES:
        fees = profile.fees_text(separator="; ")
        return f"Fees for {profile.name}: {fees or 'Contact us for details.'}"
    return f"Thanks for calling {profile.name}! More info: {profile.website}".strip()


class TwilioSMSService:
    """
    Send SMS messages via the Twilio REST API.
    Uses httpx directly (no SDK client needed).
    """

    API_BASE = "https://api.twilio.com/2010-04-01/Accounts"

    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self._available = bool(account_sid and auth_token and from_number)

        if self._available:
            logger.info(f"Twilio SMS: Configured (from={self.from_number})")
        else:
            logger.warning("Twilio SMS: Not configured (missing TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN or DEFAULT_FROM_NUMBER)")

    def is_available(self) -> bool:
        return self._available

    async def send_sms(self, to_number: str, message: str) -> bool:
        """
        Send an SMS message.

        Args:
            to_number: Recipient phone number (E.164 format)
            message: Message text

        Returns:
            True if accepted by Twilio
        """
        if not self._available:
            logger.warning("Twilio SMS: Cannot send - not configured")
            return False

        if (to_number or "").lower() in UNREACHABLE_NUMBERS:
            logger.warning(f"Twilio SMS: Cannot send - invalid number: {to_number}")
            return False

        try:
            async with httpx.AsyncClient(auth=(self.account_sid, self.auth_token)) as client:
                response = await client.post(
                    f"{self.API_BASE}/{self.account_sid}/Messages.json",
                    data={
                        "From": self.from_number,
                        "To": to_number,
                        "Body": message,
                    },
                    timeout=10.0,
                )

            if response.status_code in (200, 201):
                sid = response.json().get("sid", "unknown")
                logger.info(f"Twilio SMS: Sent to {to_number} (sid={sid})")
                return True
            logger.error(f"Twilio SMS: Failed {response.status_code} - {response.text}")
            return False

        except Exception as e:
            logger.error(f"Twilio SMS: Error sending to {to_number}: {e}")
            return False

    async def send_follow_up(self, to_number: str, intent: Intent, profile: BusinessProfile) -> bool:
        return await self.send_sms(to_number, build_follow_up_text(intent, profile))


def create_sms_service(config: dict) -> TwilioSMSService:
    """
    Factory function to create the SMS service from config

    Args:
        config: Configuration dictionary (from Settings)
    """
    return TwilioSMSService(
        account_sid=config.get("twilio_account_sid", ""),
        auth_token=config.get("twilio_auth_token", ""),
        from_number=config.get("twilio_phone_number", ""),
    )


# Global instance
_sms_service: Optional[TwilioSMSService] = None


def get_sms_service() -> TwilioSMSService:
    """Get global SMS service instance"""
    global _sms_service
    if _sms_service is None:
        from config.settings import get_settings
        _sms_service = create_sms_service(get_settings().model_dump())
    return _sms_service
