"""Transactional email: Jinja2 HTML templates delivered over SMTP."""
from __future__ import annotations

import logging
import smtplib
from datetime import date, datetime
from decimal import Decimal
from email.message import EmailMessage
from typing import Any, Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from homeland.core.config import PACKAGE_DIR, Settings, get_settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = PACKAGE_DIR / "templates" / "emails"


def currency(amount: Union[Decimal, float, int, None]) -> str:
    return f"${Decimal(str(amount or 0)):,.2f}"


def format_date(value: Union[date, datetime, str, None]) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    return f"{value:%B} {value.day}, {value.year}"


def format_datetime(value: Union[datetime, None]) -> str:
    if value is None:
        return ""
    return f"{format_date(value)}, {value:%I:%M %p}"


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["currency"] = currency
    env.filters["format_date"] = format_date
    env.filters["format_datetime"] = format_datetime
    return env


class EmailService:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings
        self.env = _build_environment()

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.SMTP_HOST)

    def render(self, template: str, context: Dict[str, Any]) -> str:
        return self.env.get_template(f"{template}.html").render(**context)

    def _deliver(self, message: EmailMessage) -> None:
        s = self.settings
        with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=30) as smtp:
            if s.SMTP_USE_TLS:
                smtp.starttls()
            if s.SMTP_USER:
                smtp.login(s.SMTP_USER, s.SMTP_PASS)
            smtp.send_message(message)

    async def send_email(self, to: str, subject: str, template: str, context: Dict[str, Any]) -> bool:
        """
        Render and send one email.

        Returns False when SMTP is not configured; transport errors propagate.
        """
        if not self.configured:
            logger.warning("SMTP not configured; skipping email %r to %s", template, to)
            return False

        html = self.render(template, {"client_url": self.settings.CLIENT_URL, **context})
        message = EmailMessage()
        message["From"] = self.settings.FROM_EMAIL
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html, subtype="html")

        try:
            await run_in_threadpool(self._deliver, message)
        except Exception:
            logger.exception("Email %r to %s failed", template, to)
            raise
        logger.info("Email %r sent to %s", template, to)
        return True

    # --- templates ---

    async def send_welcome_email(self, email: str, first_name: str) -> bool:
        client_url = self.settings.CLIENT_URL
        return await self.send_email(
            email,
            "🏠 Welcome to Homelandbooking.com!",
            "welcome-host",
            {
                "first_name": first_name,
                "email": email,
                "dashboard_url": f"{client_url}/host-dashboard",
                "support_url": f"{client_url}/support",
            },
        )

    async def send_booking_confirmation(self, email: str, context: Dict[str, Any]) -> bool:
        return await self.send_email(
            email,
            "🎉 Booking Confirmed - Homelandbooking.com",
            "booking-confirmation",
            context,
        )

    async def send_new_booking_alert(self, email: str, context: Dict[str, Any]) -> bool:
        return await self.send_email(
            email,
            "🔔 New Booking Alert - Homelandbooking.com",
            "new-booking-alert",
            context,
        )

    async def send_property_approval(self, email: str, context: Dict[str, Any]) -> bool:
        if context.get("status") == "approved":
            subject = "✅ Your property is live - Homelandbooking.com"
        else:
            subject = "⚠️ Your property needs updates - Homelandbooking.com"
        return await self.send_email(email, subject, "property-approval", context)

    async def send_password_reset(self, email: str, first_name: str, token: str) -> bool:
        return await self.send_email(
            email,
            "🔐 Reset Your Password - Homelandbooking.com",
            "password-reset",
            {
                "first_name": first_name,
                "reset_url": f"{self.settings.CLIENT_URL}/reset-password?token={token}",
                "expires_minutes": self.settings.PASSWORD_RESET_EXPIRE_MINUTES,
            },
        )

    async def send_password_reset_confirmation(self, email: str, first_name: str) -> bool:
        return await self.send_email(
            email,
            "✅ Password Reset Successful - Homelandbooking.com",
            "password-reset-confirmation",
            {"first_name": first_name},
        )

    async def send_password_change_confirmation(self, email: str, first_name: str) -> bool:
        return await self.send_email(
            email,
            "🔐 Password Changed - Homelandbooking.com",
            "password-change-confirmation",
            {"first_name": first_name},
        )

    async def send_check_in_reminder(self, email: str, context: Dict[str, Any]) -> bool:
        return await self.send_email(
            email,
            "📅 Check-in Reminder - Homelandbooking.com",
            "check-in-reminder",
            context,
        )

    async def send_monthly_report(self, email: str, context: Dict[str, Any]) -> bool:
        return await self.send_email(
            email,
            f"📊 Monthly Report - {context['month']} {context['year']} - Homelandbooking.com",
            "monthly-report",
            context,
        )

    async def send_new_review(self, email: str, context: Dict[str, Any]) -> bool:
        return await self.send_email(
            email,
            "New Review Received - Homeland Booking",
            "new-review-notification",
            context,
        )

    async def send_review_response(self, email: str, context: Dict[str, Any]) -> bool:
        return await self.send_email(
            email,
            "Host Response to Your Review - Homeland Booking",
            "review-response-notification",
            context,
        )


email_service = EmailService()
