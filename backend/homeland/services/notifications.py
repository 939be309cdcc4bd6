"""
Event notifications: one call per business event fans out to email and SMS.

Every public method is best effort. Failures are logged and reported as
False in the result, never raised, so callers can fire and forget.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from homeland.db.models import Booking, HostResponse, Property, Review, User
from homeland.services.mailer import EmailService, email_service as default_email_service
from homeland.services.sms import SMSService, sms_service as default_sms_service

logger = logging.getLogger(__name__)

Result = Dict[str, bool]


class NotificationService:
    def __init__(
        self,
        email: Optional[EmailService] = None,
        sms: Optional[SMSService] = None,
    ) -> None:
        self.email = email or default_email_service
        self.sms = sms or default_sms_service

    async def _attempt(self, label: str, send: Callable[[], Awaitable[bool]]) -> bool:
        try:
            return bool(await send())
        except Exception:
            logger.exception("Notification %s failed", label)
            return False

    async def _dispatch(
        self,
        event: str,
        send_email: Callable[[], Awaitable[bool]],
        send_sms: Optional[Callable[[], Awaitable[bool]]] = None,
    ) -> Result:
        results = {"email": False, "sms": False}
        results["email"] = await self._attempt(f"{event}/email", send_email)
        if send_sms is not None:
            results["sms"] = await self._attempt(f"{event}/sms", send_sms)
        logger.info("Notifications for %s: %s", event, results)
        return results

    # --- bookings ---

    @staticmethod
    def _booking_context(booking: Booking, nights: int) -> Dict[str, Any]:
        prop: Property = booking.property
        host: User = prop.host
        return {
            "booking_id": booking.id,
            "guest_name": booking.guest_name,
            "guest_email": booking.guest_email,
            "guest_phone": booking.guest_phone,
            "guest_count": booking.guests,
            "check_in": booking.check_in.isoformat(),
            "check_out": booking.check_out.isoformat(),
            "nights": nights,
            "total_price": booking.total_price,
            "property_title": prop.title,
            "property_address": f"{prop.address}, {prop.city}, {prop.country}",
            "host_name": host.full_name,
            "host_phone": host.phone or prop.host_contact or "",
            "host_email": host.email,
        }

    async def send_booking_confirmation(self, booking: Booking, nights: int) -> Result:
        """Guest confirmation (email + SMS)."""
        ctx = self._booking_context(booking, nights)
        return await self._dispatch(
            "booking_confirmation",
            lambda: self.email.send_booking_confirmation(booking.guest_email, ctx),
            (lambda: self.sms.send_booking_confirmation(booking.guest_phone, ctx))
            if booking.guest_phone
            else None,
        )

    async def send_new_booking_alert(self, booking: Booking, nights: int) -> Result:
        """Host alert (email + SMS)."""
        ctx = self._booking_context(booking, nights)
        host: User = booking.property.host
        return await self._dispatch(
            "new_booking_alert",
            lambda: self.email.send_new_booking_alert(host.email, ctx),
            (lambda: self.sms.send_new_booking_alert(host.phone, ctx)) if host.phone else None,
        )

    async def booking_created(self, booking: Booking, nights: int) -> Dict[str, Result]:
        return {
            "guest": await self.send_booking_confirmation(booking, nights),
            "host": await self.send_new_booking_alert(booking, nights),
        }

    async def send_check_in_reminder(self, booking: Booking) -> Result:
        prop: Property = booking.property
        ctx = {
            "guest_name": booking.guest_name,
            "property_title": prop.title,
            "property_address": f"{prop.address}, {prop.city}, {prop.country}",
            "check_in": booking.check_in.isoformat(),
            "host_name": prop.host.full_name,
            "host_phone": prop.host.phone or prop.host_contact or "",
        }
        return await self._dispatch(
            "check_in_reminder",
            lambda: self.email.send_check_in_reminder(booking.guest_email, ctx),
            (lambda: self.sms.send_check_in_reminder(booking.guest_phone, ctx))
            if booking.guest_phone
            else None,
        )

    # --- hosts & properties ---

    async def send_property_review_result(self, prop: Property, property_url: Optional[str] = None) -> Result:
        """Approval or rejection outcome for the property's host."""
        host: User = prop.host
        ctx = {
            "host_name": host.full_name,
            "property_title": prop.title,
            "status": prop.approval_status,
            "rejection_reason": prop.rejection_reason,
            "property_url": property_url,
        }
        return await self._dispatch(
            f"property_{prop.approval_status}",
            lambda: self.email.send_property_approval(host.email, ctx),
            (lambda: self.sms.send_property_approval(host.phone, ctx)) if host.phone else None,
        )

    async def send_welcome(self, user: User) -> Result:
        return await self._dispatch(
            "welcome",
            lambda: self.email.send_welcome_email(user.email, user.first_name),
            (lambda: self.sms.send_welcome(user.phone, user.first_name)) if user.phone else None,
        )

    async def send_monthly_report(self, host: User, report: Dict[str, Any]) -> Result:
        ctx = {"host_name": host.full_name, **report}
        return await self._dispatch(
            "monthly_report",
            lambda: self.email.send_monthly_report(host.email, ctx),
            (lambda: self.sms.send_monthly_earnings(host.phone, ctx)) if host.phone else None,
        )

    # --- reviews ---

    async def send_new_review(self, review: Review, review_url: str) -> Result:
        host: User = review.recipient
        ctx = {
            "host_name": host.full_name,
            "property_title": review.property.title,
            "guest_name": review.author.full_name,
            "rating": review.overall_rating,
            "comment": review.comment or "No comment provided",
            "review_url": review_url,
        }
        return await self._dispatch(
            "new_review", lambda: self.email.send_new_review(host.email, ctx)
        )

    async def send_review_response(
        self, review: Review, host_response: HostResponse, review_url: str
    ) -> Result:
        ctx = {
            "guest_name": review.author.full_name,
            "host_name": host_response.host.full_name,
            "property_title": review.property.title,
            "host_response": host_response.response,
            "review_url": review_url,
        }
        return await self._dispatch(
            "review_response", lambda: self.email.send_review_response(review.author.email, ctx)
        )

    # --- account ---

    async def send_password_reset(self, user: User, token: str) -> Result:
        return await self._dispatch(
            "password_reset",
            lambda: self.email.send_password_reset(user.email, user.first_name, token),
        )

    async def send_password_reset_confirmation(self, user: User) -> Result:
        return await self._dispatch(
            "password_reset_confirmation",
            lambda: self.email.send_password_reset_confirmation(user.email, user.first_name),
        )

    async def send_password_change_confirmation(self, user: User) -> Result:
        return await self._dispatch(
            "password_change_confirmation",
            lambda: self.email.send_password_change_confirmation(user.email, user.first_name),
        )

    # --- diagnostics ---

    async def test_notifications(self, email: str, phone: Optional[str] = None) -> Result:
        return await self._dispatch(
            "test",
            lambda: self.email.send_welcome_email(email, "Test User"),
            (lambda: self.sms.send_test(phone)) if phone else None,
        )

    def services_status(self) -> Dict[str, Any]:
        return {
            "email": {"configured": self.email.configured},
            "sms": self.sms.provider_status(),
        }


notification_service = NotificationService()
