"""
Auth Service - Business Logic Layer

Registration, login and session tokens for customers, agents and admins.
"""
import logging
from typing import Optional, Tuple

from fastapi import Depends

from delivery_api.core.config import Settings
from delivery_api.core.dependencies import get_settings
from delivery_api.core.errors import AuthenticationError, DuplicateEmailError
from delivery_api.core.security import (
    PasswordHasher,
    TokenClaims,
    create_access_token,
)
from delivery_api.models.user import AgentProfile, CustomerProfile, User, UserRole
from delivery_api.repositories.user_repository import UserRepository
from delivery_api.schemas.user import RegisterRequest

logger = logging.getLogger(__name__)

# Same text whether the email is unknown or the password is wrong
INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """Service for account creation and authentication (Async)"""

    def __init__(
        self,
        settings: Settings,
        repository: Optional[UserRepository] = None,
        hasher: Optional[PasswordHasher] = None,
    ):
        self.settings = settings
        self.repository = repository or UserRepository()
        self.hasher = hasher or PasswordHasher(settings.BCRYPT_ROUNDS)

    def issue_token(self, user: User) -> str:
        claims = TokenClaims(id=str(user.id), email=user.email, role=user.role.value)
        return create_access_token(claims, self.settings)

    async def register(self, request: RegisterRequest) -> Tuple[User, str]:
        """
        Create a customer or agent account and log it in.

        Raises:
            DuplicateEmailError: If any user already has this email
        """
        if await self.repository.email_exists(request.email):
            raise DuplicateEmailError()

        role = UserRole(request.role)
        address = request.address.to_model()
        if role is UserRole.CUSTOMER:
            profile = CustomerProfile(address=address)
        else:
            profile = AgentProfile(address=address)

        user = User(
            first_name=request.firstName,
            last_name=request.lastName,
            email=request.email,
            password_hash=self.hasher.hash(request.password),
            phone=request.phone,
            role=role,
            profile=profile,
        )
        await self.repository.create(user)
        return user, self.issue_token(user)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue a session token.

        Raises:
            AuthenticationError: Unknown email or wrong password (same message)
        """
        user = await self.repository.get_by_email(email)
        stored_hash = user.password_hash if user is not None else self.hasher.dummy_hash()
        if not self.hasher.verify(password, stored_hash) or user is None:
            logger.info("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info(f"User {user.id} logged in as {user.role.value}")
        return user, self.issue_token(user)

    async def get_current_user(self, claims: TokenClaims) -> User:
        """Load the account a verified token points at."""
        user = await self.repository.get_by_id(claims.id)
        if user is None:
            raise AuthenticationError()
        return user


def get_auth_service(settings: Settings = Depends(get_settings)) -> AuthService:
    return AuthService(settings)
