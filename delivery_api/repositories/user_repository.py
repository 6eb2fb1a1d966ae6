from typing import List, Optional, Tuple
import logging
import re

from beanie import PydanticObjectId
from pymongo.errors import DuplicateKeyError

from delivery_api.core.errors import DuplicateEmailError
from delivery_api.models.user import User, UserRole

# Logger setup
logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("first_name", "last_name", "email", "phone")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    """
    Repository for user database operations (MongoDB/Beanie).
    All roles share the `users` collection and its unique email index.
    """

    async def get_by_email(self, email: str) -> Optional[User]:
        return await User.find_one({"email": normalize_email(email)})

    async def get_by_id(self, user_id: str) -> Optional[User]:
        if not PydanticObjectId.is_valid(user_id):
            return None
        return await User.get(PydanticObjectId(user_id))

    async def email_exists(self, email: str) -> bool:
        return await User.find_one({"email": normalize_email(email)}) is not None

    async def create(self, user: User) -> User:
        """
        Insert a new user.
        A concurrent insert with the same email loses on the unique index.
        """
        try:
            await user.insert()
        except DuplicateKeyError:
            logger.info(f"Duplicate email rejected by index: {user.email}")
            raise DuplicateEmailError()
        logger.info(f"Created {user.role.value} {user.id}")
        return user

    async def save(self, user: User) -> User:
        await user.save()
        return user

    async def count_by_role(self, role: UserRole) -> int:
        return await User.find({"role": role.value}).count()

    async def search(
        self,
        role: UserRole,
        query: str = "",
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[User], int]:
        """
        Case-insensitive substring search over name, email and phone.
        Newest first. Returns (page items, total matches).
        """
        criteria = {"role": role.value}
        query = query.strip()
        if query:
            pattern = re.escape(query)
            criteria["$or"] = [
                {field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS
            ]

        total = await User.find(criteria).count()
        items = (
            await User.find(criteria)
            .sort("-created_at", "-_id")
            .skip((page - 1) * limit)
            .limit(limit)
            .to_list()
        )
        return items, total
