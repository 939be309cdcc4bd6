import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest

from homeland.core.config import Settings
from homeland.services.mailer import EmailService, currency, format_date
from homeland.services.notifications import NotificationService
from homeland.services.sms import SMSService, format_phone_number, is_kenyan_number


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0712345678", "+254712345678"),
        ("712345678", "+254712345678"),
        ("+254 712 345 678", "+254712345678"),
        ("+1 (415) 555-0100", "+14155550100"),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_kenyan_numbers_are_recognised():
    assert is_kenyan_number("0712345678")
    assert is_kenyan_number("+254712345678")
    assert not is_kenyan_number("+14155550100")


def test_sms_without_provider_is_skipped():
    service = SMSService(settings=Settings(SMS_PROVIDER="none"))
    assert asyncio.run(service.send_sms("0712345678", "hi")) is False
    assert service.provider_status() == {"provider": "none", "configured": False}


def test_africas_talking_delivery():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            201, json={"SMSMessageData": {"Recipients": [{"status": "Success"}]}}
        )

    settings = Settings(
        SMS_PROVIDER="africastalking",
        AFRICAS_TALKING_API_KEY="key",
        AFRICAS_TALKING_USERNAME="sandbox",
    )
    service = SMSService(settings=settings, transport=httpx.MockTransport(handler))

    assert asyncio.run(service.send_sms("0712345678", "hello")) is True
    assert seen[0].headers["apiKey"] == "key"
    assert b"to=%2B254712345678" in seen[0].content


def test_africas_talking_rejection_returns_false():
    def handler(request):
        return httpx.Response(
            201, json={"SMSMessageData": {"Recipients": [{"status": "InvalidPhoneNumber"}]}}
        )

    settings = Settings(
        SMS_PROVIDER="africastalking",
        AFRICAS_TALKING_API_KEY="key",
        AFRICAS_TALKING_USERNAME="sandbox",
    )
    service = SMSService(settings=settings, transport=httpx.MockTransport(handler))
    assert asyncio.run(service.send_sms("0712345678", "hello")) is False


def test_international_numbers_go_through_twilio():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM123"})

    settings = Settings(
        SMS_PROVIDER="both",
        AFRICAS_TALKING_API_KEY="key",
        AFRICAS_TALKING_USERNAME="sandbox",
        TWILIO_ACCOUNT_SID="AC1",
        TWILIO_AUTH_TOKEN="secret",
        TWILIO_PHONE_NUMBER="+15550000000",
    )
    service = SMSService(settings=settings, transport=httpx.MockTransport(handler))

    assert asyncio.run(service.send_sms("+14155550100", "hello")) is True
    assert seen[0].url.host == "api.twilio.com"
    assert "/Accounts/AC1/" in seen[0].url.path


def test_provider_http_error_is_reported_not_raised():
    def handler(request):
        return httpx.Response(500)

    settings = Settings(
        SMS_PROVIDER="twilio", TWILIO_ACCOUNT_SID="AC1", TWILIO_AUTH_TOKEN="secret"
    )
    service = SMSService(settings=settings, transport=httpx.MockTransport(handler))
    assert asyncio.run(service.send_sms("+14155550100", "hello")) is False


def test_template_filters():
    assert currency(Decimal("1234.5")) == "$1,234.50"
    assert format_date(date(2026, 3, 7)) == "March 7, 2026"
    assert format_date("2026-03-07") == "March 7, 2026"


def test_booking_confirmation_renders():
    html = EmailService().render(
        "booking-confirmation",
        {
            "guest_name": "Grace Guest",
            "booking_id": "abc-123",
            "property_title": "Seaside Cottage",
            "property_address": "1 Beach Road, Mombasa, Kenya",
            "check_in": "2026-03-07",
            "check_out": "2026-03-10",
            "nights": 3,
            "guest_count": 2,
            "total_price": Decimal("300.00"),
            "host_name": "Hannah Host",
            "host_phone": "+254712345678",
            "host_email": "host@example.com",
            "client_url": "http://localhost:3000",
        },
    )
    assert "Grace Guest" in html
    assert "$300.00" in html
    assert "March 7, 2026" in html
    assert "http://localhost:3000/booking/abc-123" in html


def test_unconfigured_email_is_skipped():
    service = EmailService(settings=Settings(SMTP_HOST=""))
    assert service.configured is False
    assert asyncio.run(service.send_welcome_email("a@example.com", "Ann")) is False


class _Boom:
    def __getattr__(self, name):
        async def send(*args, **kwargs):
            raise RuntimeError(f"{name} exploded")

        return send


class _Ok:
    configured = True

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        async def send(*args, **kwargs):
            self.calls.append(name)
            return True

        return send

    def provider_status(self):
        return {"provider": "fake", "configured": True}


def _user(**kw):
    data = {"email": "host@example.com", "first_name": "Hannah", "phone": "0712345678"}
    data.update(kw)
    return SimpleNamespace(full_name=f"{data['first_name']} Host", **data)


def test_each_channel_is_attempted_independently():
    sms = _Ok()
    service = NotificationService(email=_Boom(), sms=sms)
    result = asyncio.run(service.send_welcome(_user()))
    assert result == {"email": False, "sms": True}
    assert sms.calls == ["send_welcome"]


def test_sms_is_skipped_without_a_phone_number():
    sms = _Ok()
    service = NotificationService(email=_Ok(), sms=sms)
    result = asyncio.run(service.send_welcome(_user(phone=None)))
    assert result == {"email": True, "sms": False}
    assert sms.calls == []


def test_property_review_result_names_the_outcome():
    email = _Ok()
    service = NotificationService(email=email, sms=_Ok())
    prop = SimpleNamespace(
        host=_user(), title="Cottage", approval_status="rejected", rejection_reason="Blurry photos"
    )
    result = asyncio.run(service.send_property_review_result(prop))
    assert result == {"email": True, "sms": True}
    assert email.calls == ["send_property_approval"]


def test_services_status():
    service = NotificationService(email=_Ok(), sms=_Ok())
    assert service.services_status() == {
        "email": {"configured": True},
        "sms": {"provider": "fake", "configured": True},
    }
