"""
Email Service - SendGrid Integration

Sends password reset emails through the SendGrid v3 mail/send API.
Sending is disabled when SENDGRID_API_KEY is empty.
"""
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from delivery_api.core.config import Settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Exception raised when the email provider rejects or cannot take a message"""
    def __init__(self, error: str):
        self.error = error
        super().__init__(f"Email delivery failed: {error}")


class EmailService:
    """Service for transactional emails"""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = settings.SENDGRID_API_KEY
        self.api_url = settings.SENDGRID_API_URL
        self.from_email = settings.FROM_EMAIL
        self.frontend_url = settings.FRONTEND_URL
        self.transport = transport
        self.timeout = 10.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def reset_url(self, to: str, token: str) -> str:
        query = urlencode({"email": to, "token": token})
        return f"{self.frontend_url.rstrip('/')}/reset-password?{query}"

    def _reset_message(self, to: str, token: str) -> dict:
        url = self.reset_url(to, token)
        return {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email},
            "subject": "Password reset request",
            "content": [
                {
                    "type": "text/plain",
                    "value": f"You requested a password reset. Use this token: {token}\nOr click: {url}",
                },
                {
                    "type": "text/html",
                    "value": (
                        "<p>You requested a password reset.</p>"
                        f"<p>Token: <strong>{token}</strong></p>"
                        f'<p>Or click <a href="{url}">this link</a> to reset your password.</p>'
                    ),
                },
            ],
        }

    async def send_reset_email(self, to: str, token: str) -> bool:
        """
        Email a reset token.

        Returns:
            False when email is not configured, True once the provider accepted it.

        Raises:
            EmailDeliveryError: If the provider is unreachable or rejects the message
        """
        if not self.enabled:
            logger.info("SendGrid not configured, skipping reset email")
            return False

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=self._reset_message(to, token), headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"SendGrid rejected reset email: HTTP {e.response.status_code}")
            raise EmailDeliveryError(f"HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach SendGrid: {e}")
            raise EmailDeliveryError(str(e))

        logger.info("Reset email accepted by SendGrid")
        return True
