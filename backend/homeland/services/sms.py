"""SMS delivery through Africa's Talking (Kenyan numbers) and Twilio."""
from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Any, Dict, Optional, Union

import httpx

from homeland.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

AFRICAS_TALKING_URL = "https://api.africastalking.com/version1/messaging"
TWILIO_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

SIGNATURE = "- Homelandbooking.com"


def _digits(phone_number: str) -> str:
    return re.sub(r"\D", "", phone_number)


def is_kenyan_number(phone_number: str) -> bool:
    digits = _digits(phone_number)
    return digits.startswith("254") or digits.startswith("0") or len(digits) == 9


def format_phone_number(phone_number: str) -> str:
    """
    E.164-style number: local Kenyan forms (07xx..., 7xxxxxxxx) gain the 254 prefix.
    """
    digits = _digits(phone_number)
    if digits.startswith("0"):
        digits = "254" + digits[1:]
    if len(digits) == 9:
        digits = "254" + digits
    return "+" + digits


def _money(amount: Union[Decimal, float, int]) -> str:
    return f"${Decimal(str(amount)):,.2f}"


class SMSService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def provider(self) -> str:
        return (self.settings.SMS_PROVIDER or "none").lower()

    @property
    def africas_talking_enabled(self) -> bool:
        s = self.settings
        return self.provider in ("africastalking", "both") and bool(
            s.AFRICAS_TALKING_API_KEY and s.AFRICAS_TALKING_USERNAME
        )

    @property
    def twilio_enabled(self) -> bool:
        s = self.settings
        return self.provider in ("twilio", "both") and bool(
            s.TWILIO_ACCOUNT_SID and s.TWILIO_AUTH_TOKEN
        )

    def provider_status(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "configured": self.africas_talking_enabled or self.twilio_enabled,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=15.0, transport=self._transport)

    async def send_sms(self, phone_number: str, message: str) -> bool:
        """
        Send one message; the provider is picked from the number. Never raises.
        """
        formatted = format_phone_number(phone_number)
        try:
            if is_kenyan_number(phone_number) and self.africas_talking_enabled:
                return await self._send_via_africas_talking(formatted, message)
            if self.twilio_enabled:
                return await self._send_via_twilio(formatted, message)
            logger.warning("No SMS provider configured; skipping SMS to %s", formatted)
            return False
        except Exception:
            logger.exception("SMS sending to %s failed", formatted)
            return False

    async def _send_via_africas_talking(self, phone_number: str, message: str) -> bool:
        s = self.settings
        async with self._client() as client:
            response = await client.post(
                AFRICAS_TALKING_URL,
                headers={"apiKey": s.AFRICAS_TALKING_API_KEY, "Accept": "application/json"},
                data={
                    "username": s.AFRICAS_TALKING_USERNAME,
                    "to": phone_number,
                    "message": message,
                    "from": s.AFRICAS_TALKING_SENDER_ID,
                },
            )
        response.raise_for_status()
        recipients = response.json().get("SMSMessageData", {}).get("Recipients", [])
        if not recipients:
            logger.error("No recipients in Africa's Talking response for %s", phone_number)
            return False
        if recipients[0].get("status") != "Success":
            logger.error("Africa's Talking rejected SMS to %s: %s", phone_number, recipients[0])
            return False
        logger.info("SMS sent via Africa's Talking to %s", phone_number)
        return True

    async def _send_via_twilio(self, phone_number: str, message: str) -> bool:
        s = self.settings
        async with self._client() as client:
            response = await client.post(
                TWILIO_URL.format(sid=s.TWILIO_ACCOUNT_SID),
                auth=(s.TWILIO_ACCOUNT_SID, s.TWILIO_AUTH_TOKEN),
                data={"To": phone_number, "From": s.TWILIO_PHONE_NUMBER, "Body": message},
            )
        response.raise_for_status()
        logger.info("SMS sent via Twilio to %s (sid=%s)", phone_number, response.json().get("sid"))
        return True

    # --- templates ---

    async def send_booking_confirmation(self, phone_number: str, data: Dict[str, Any]) -> bool:
        message = (
            "🎉 BOOKING CONFIRMED!\n\n"
            f"Property: {data['property_title']}\n"
            f"Dates: {data['check_in']} - {data['check_out']}\n"
            f"Total: {_money(data['total_price'])}\n"
            f"Guest: {data['guest_name']}\n"
            f"Booking ID: {data['booking_id']}\n\n"
            "Host Contact:\n"
            f"{data['host_name']}\n"
            f"{data['host_phone']}\n\n"
            "Welcome to Homelandbooking.com!"
        )
        return await self.send_sms(phone_number, message)

    async def send_new_booking_alert(self, phone_number: str, data: Dict[str, Any]) -> bool:
        message = (
            "🔔 NEW BOOKING ALERT!\n\n"
            f"Property: {data['property_title']}\n"
            f"Guest: {data['guest_name']}\n"
            f"Dates: {data['check_in']} - {data['check_out']}\n"
            f"Earnings: {_money(data['total_price'])}\n"
            f"Booking ID: {data['booking_id']}\n\n"
            f"Guest Contact: {data['guest_phone']}\n\n"
            "Contact your guest within 24hrs!\n"
            f"{SIGNATURE}"
        )
        return await self.send_sms(phone_number, message)

    async def send_property_approval(self, phone_number: str, data: Dict[str, Any]) -> bool:
        if data["status"] == "approved":
            message = (
                "✅ PROPERTY APPROVED!\n\n"
                f"\"{data['property_title']}\" is now LIVE on Homelandbooking.com!\n\n"
                "Your property is visible to guests and ready for bookings.\n\n"
                f"{SIGNATURE}"
            )
        else:
            reason = data.get("rejection_reason")
            message = (
                "❌ PROPERTY NEEDS UPDATES\n\n"
                f"\"{data['property_title']}\" requires attention before approval.\n\n"
                + (f"Reason: {reason}\n\n" if reason else "")
                + "Please update your listing and resubmit.\n"
                f"{SIGNATURE}"
            )
        return await self.send_sms(phone_number, message)

    async def send_welcome(self, phone_number: str, host_name: str) -> bool:
        message = (
            "🏠 Welcome to Homelandbooking.com!\n\n"
            f"Hi {host_name}!\n\n"
            "Your host account is ready. Start listing your properties today!\n\n"
            f"{self.settings.CLIENT_URL}/create-property\n\n"
            f"{SIGNATURE}"
        )
        return await self.send_sms(phone_number, message)

    async def send_check_in_reminder(self, phone_number: str, data: Dict[str, Any]) -> bool:
        message = (
            "🏠 CHECK-IN REMINDER\n\n"
            f"Hi {data['guest_name']}!\n\n"
            f"Tomorrow: {data['check_in']}\n"
            f"Property: {data['property_title']}\n\n"
            "Contact your host:\n"
            f"{data['host_name']}\n"
            f"{data['host_phone']}\n\n"
            "Have a great stay!\n"
            f"{SIGNATURE}"
        )
        return await self.send_sms(phone_number, message)

    async def send_monthly_earnings(self, phone_number: str, data: Dict[str, Any]) -> bool:
        message = (
            "📊 MONTHLY EARNINGS REPORT\n\n"
            f"Hi {data['host_name']}!\n\n"
            f"{data['month']} Summary:\n"
            f"💰 Earned: {_money(data['total_revenue'])}\n"
            f"📅 Bookings: {data['total_bookings']}\n\n"
            "Keep up the great work!\n"
            f"{SIGNATURE}"
        )
        return await self.send_sms(phone_number, message)

    async def send_test(self, phone_number: str) -> bool:
        message = (
            "🧪 Test SMS from Homelandbooking.com\n\n"
            "If you receive this, your SMS system is configured properly!\n\n"
            f"{SIGNATURE}"
        )
        return await self.send_sms(phone_number, message)


sms_service = SMSService()
