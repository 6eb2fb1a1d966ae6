"""
Admin Service

Admin account creation (authenticated, bootstrap and CLI) and the
customer/agent listings behind the admin dashboard.
"""
import logging
from typing import List, Optional, Tuple

from fastapi import Depends

from delivery_api.core.config import Settings
from delivery_api.core.dependencies import get_settings
from delivery_api.core.errors import AuthorizationError, DuplicateEmailError
from delivery_api.core.security import PasswordHasher
from delivery_api.models.user import AdminProfile, User, UserRole
from delivery_api.repositories.user_repository import UserRepository
from delivery_api.schemas.user import AdminCreateRequest

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS = ["view"]
MAX_PAGE_SIZE = 100
# Keeps skip within MongoDB's 64-bit integer range
MAX_PAGE = 1_000_000


class AdminService:
    """Service for admin-only operations (Async)"""

    def __init__(
        self,
        settings: Settings,
        repository: Optional[UserRepository] = None,
        hasher: Optional[PasswordHasher] = None,
    ):
        self.settings = settings
        self.repository = repository or UserRepository()
        self.hasher = hasher or PasswordHasher(settings.BCRYPT_ROUNDS)

    async def create_admin(self, request: AdminCreateRequest) -> User:
        """
        Create an admin account.

        Raises:
            DuplicateEmailError: If any user already has this email
        """
        if await self.repository.email_exists(request.email):
            raise DuplicateEmailError()

        admin = User(
            first_name=request.firstName,
            last_name=request.lastName,
            email=request.email,
            password_hash=self.hasher.hash(request.password),
            phone=request.phone,
            role=UserRole.ADMIN,
            profile=AdminProfile(
                department=request.department,
                permissions=request.permissions or list(DEFAULT_PERMISSIONS),
            ),
        )
        return await self.repository.create(admin)

    async def bootstrap_admin(self, request: AdminCreateRequest) -> User:
        """
        Create the first admin without authentication.
        Refused once an admin exists, unless ENABLE_ADMIN_BOOTSTRAP is set.

        Raises:
            AuthorizationError: Bootstrap already used
            DuplicateEmailError: If any user already has this email
        """
        admin_count = await self.repository.count_by_role(UserRole.ADMIN)
        if admin_count > 0 and not self.settings.ENABLE_ADMIN_BOOTSTRAP:
            logger.warning("Admin bootstrap refused: an admin already exists")
            raise AuthorizationError("Admin already exists. Bootstrap disabled.")

        admin = await self.create_admin(request)
        logger.info(f"Admin {admin.id} created through bootstrap")
        return admin

    async def list_users(
        self,
        role: UserRole,
        query: str = "",
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], int, int, int]:
        """Returns (items, total, page, effective limit)."""
        page = min(max(page, 1), MAX_PAGE)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        items, total = await self.repository.search(role, query, page, limit)
        return items, total, page, limit


def get_admin_service(settings: Settings = Depends(get_settings)) -> AdminService:
    return AdminService(settings)
