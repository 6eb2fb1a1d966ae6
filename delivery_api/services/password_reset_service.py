"""
Password Reset Service

Reset token lifecycle per user:

    none --forgot--> issued --reset (hash matches, not expired)--> none
                       |
                       +--time passes--> expired (kept until the next forgot)

Only a bcrypt hash of the token is stored. Concurrent resets are not
locked; the last write wins.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import Depends

from delivery_api.core.config import Settings
from delivery_api.core.dependencies import get_settings
from delivery_api.core.errors import InvalidResetToken
from delivery_api.core.security import PasswordHasher, generate_reset_token
from delivery_api.models.user import ResetTokenState, User, utcnow
from delivery_api.repositories.user_repository import UserRepository
from delivery_api.services.email_service import EmailDeliveryError, EmailService

logger = logging.getLogger(__name__)


class PasswordResetService:
    """Issues and consumes password reset tokens."""

    def __init__(
        self,
        settings: Settings,
        repository: Optional[UserRepository] = None,
        hasher: Optional[PasswordHasher] = None,
        email_service: Optional[EmailService] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.repository = repository or UserRepository()
        self.hasher = hasher or PasswordHasher(settings.BCRYPT_ROUNDS)
        self.email_service = email_service or EmailService(settings)
        self.clock = clock
        self.token_ttl = timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)

    async def request_reset(self, email: str) -> Optional[str]:
        """
        Issue a fresh token for the account behind `email`, if there is one.

        Returns the raw token only when it has to be handed back to the
        caller (EXPOSE_RESET_TOKEN and no email went out); None otherwise.
        Unknown emails look exactly like known ones to the caller.
        """
        user = await self.repository.get_by_email(email)
        if user is None:
            # Same bcrypt work as issuing a real token
            self.hasher.hash(generate_reset_token())
            logger.info("Password reset requested for an unknown email")
            return None

        token = generate_reset_token()
        user.set_reset_token(self.hasher.hash(token), self.clock() + self.token_ttl)
        await self.repository.save(user)
        logger.info(f"Reset token issued for user {user.id}")

        if self.email_service.enabled:
            try:
                await self.email_service.send_reset_email(user.email, token)
                return None
            except EmailDeliveryError as e:
                logger.error(f"Reset email for user {user.id} not sent: {e.error}")

        if self.settings.EXPOSE_RESET_TOKEN:
            logger.warning(f"Password reset token for {user.email}: {token} (EXPOSE_RESET_TOKEN is on)")
            return token

        logger.warning(f"Reset token for user {user.id} was not delivered; configure SENDGRID_API_KEY")
        return None

    def token_matches(self, user: User, token: str) -> bool:
        if user.reset_token_state(self.clock()) is not ResetTokenState.ISSUED:
            return False
        return self.hasher.verify(token, user.reset_token_hash)

    async def reset_password(self, email: str, token: str, new_password: str) -> User:
        """
        Consume the token and set the new password.

        Raises:
            InvalidResetToken: unknown email, wrong token, or token past its expiry
        """
        user = await self.repository.get_by_email(email)
        if user is None:
            self.hasher.verify(token, self.hasher.dummy_hash())
            raise InvalidResetToken()
        if not self.token_matches(user, token):
            raise InvalidResetToken()

        user.password_hash = self.hasher.hash(new_password)
        user.clear_reset_token()
        await self.repository.save(user)
        logger.info(f"Password reset completed for user {user.id}")
        return user


def get_password_reset_service(settings: Settings = Depends(get_settings)) -> PasswordResetService:
    return PasswordResetService(settings)
