import json
from datetime import datetime, timedelta
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from delivery_api.core.errors import InvalidResetToken
from delivery_api.models.user import ResetTokenState, User
from delivery_api.services.email_service import EmailDeliveryError, EmailService
from delivery_api.services.password_reset_service import PasswordResetService
from tests.factories import make_settings, registration_data


class RecordingTransport(httpx.MockTransport):
    def __init__(self, status_code=202):
        self.requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(status_code)

        super().__init__(handler)


def sendgrid_settings(**overrides):
    values = dict(SENDGRID_API_KEY="SG.test", FROM_EMAIL="noreply@delivery.test", FRONTEND_URL="http://app.test/")
    values.update(overrides)
    return make_settings(**values)


@pytest.mark.asyncio
async def test_disabled_without_api_key():
    transport = RecordingTransport()
    service = EmailService(make_settings(), transport=transport)

    assert service.enabled is False
    assert await service.send_reset_email("a@x.com", "abc") is False
    assert transport.requests == []


@pytest.mark.asyncio
async def test_reset_email_payload():
    transport = RecordingTransport()
    service = EmailService(sendgrid_settings(), transport=transport)

    assert await service.send_reset_email("a+b@x.com", "deadbeef") is True

    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.sendgrid.com/v3/mail/send"
    assert request.headers["Authorization"] == "Bearer SG.test"
    payload = json.loads(request.content)
    assert payload["personalizations"] == [{"to": [{"email": "a+b@x.com"}]}]
    assert payload["from"] == {"email": "noreply@delivery.test"}
    assert [part["type"] for part in payload["content"]] == ["text/plain", "text/html"]
    assert "deadbeef" in payload["content"][0]["value"]


def test_reset_url_encodes_email_and_token():
    url = urlparse(EmailService(sendgrid_settings()).reset_url("a+b@x.com", "deadbeef"))

    assert (url.scheme, url.netloc, url.path) == ("http", "app.test", "/reset-password")
    assert parse_qs(url.query) == {"email": ["a+b@x.com"], "token": ["deadbeef"]}


@pytest.mark.asyncio
async def test_rejected_message_raises():
    service = EmailService(sendgrid_settings(), transport=RecordingTransport(status_code=401))

    with pytest.raises(EmailDeliveryError, match="HTTP 401"):
        await service.send_reset_email("a@x.com", "abc")


@pytest.mark.asyncio
async def test_unreachable_provider_raises():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = EmailService(sendgrid_settings(), transport=httpx.MockTransport(refuse))

    with pytest.raises(EmailDeliveryError):
        await service.send_reset_email("a@x.com", "abc")


# ============================================================================
# Delivery choice in the reset flow
# ============================================================================

@pytest.mark.asyncio
async def test_emailed_token_is_never_returned(client):
    settings = sendgrid_settings(EXPOSE_RESET_TOKEN=True)
    await client.post("/api/register", json=registration_data())
    transport = RecordingTransport()
    service = PasswordResetService(settings, email_service=EmailService(settings, transport=transport))

    assert await service.request_reset("a@x.com") is None
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_failed_email_falls_back_to_dev_exposure(client):
    await client.post("/api/register", json=registration_data())
    settings = sendgrid_settings(EXPOSE_RESET_TOKEN=True)
    service = PasswordResetService(
        settings,
        email_service=EmailService(settings, transport=RecordingTransport(status_code=500)),
    )

    token = await service.request_reset("a@x.com")

    assert token is not None and len(token) == 64
    user = await User.find_one({"email": "a@x.com"})
    assert service.token_matches(user, token)


@pytest.mark.asyncio
async def test_failed_email_without_exposure_returns_nothing(client):
    await client.post("/api/register", json=registration_data())
    settings = sendgrid_settings()
    service = PasswordResetService(
        settings,
        email_service=EmailService(settings, transport=RecordingTransport(status_code=500)),
    )

    assert await service.request_reset("a@x.com") is None
    user = await User.find_one({"email": "a@x.com"})
    assert user.reset_token_state() is ResetTokenState.ISSUED


@pytest.mark.asyncio
async def test_injected_clock_expires_token(client):
    await client.post("/api/register", json=registration_data())
    now = [datetime(2026, 1, 1, 9, 0, 0)]
    settings = make_settings(EXPOSE_RESET_TOKEN=True)
    service = PasswordResetService(settings, clock=lambda: now[0])

    token = await service.request_reset("a@x.com")
    now[0] += timedelta(minutes=61)

    with pytest.raises(InvalidResetToken):
        await service.reset_password("a@x.com", token, "NewPass1")
