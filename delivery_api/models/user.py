from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Union
import enum


def utcnow() -> datetime:
    """Naive UTC timestamp (MongoDB hands datetimes back without tzinfo)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, enum.Enum):
    """User role enumeration."""
    CUSTOMER = "customer"
    AGENT = "agent"
    ADMIN = "admin"


class ResetTokenState(str, enum.Enum):
    NONE = "none"
    ISSUED = "issued"
    EXPIRED = "expired"


class Address(BaseModel):
    door_no: str
    street: str
    area: str
    city: str
    state: str
    pincode: str


class CustomerProfile(BaseModel):
    kind: Literal["customer"] = "customer"
    address: Address
    orders: List[PydanticObjectId] = Field(default_factory=list)


class AgentProfile(BaseModel):
    kind: Literal["agent"] = "agent"
    address: Address
    available: bool = True
    rating: float = 0.0
    total_deliveries: int = 0
    current_order: Optional[PydanticObjectId] = None


class AdminProfile(BaseModel):
    kind: Literal["admin"] = "admin"
    department: str
    permissions: List[str] = Field(default_factory=lambda: ["view"])


UserProfile = Annotated[
    Union[CustomerProfile, AgentProfile, AdminProfile],
    Field(discriminator="kind"),
]


class User(Document):
    """
    User model.
    One collection for customers, agents and admins; the role-specific
    fields live in the `profile` sub-document tagged by `kind`.
    """
    first_name: str
    last_name: str
    email: Indexed(str, unique=True)
    password_hash: str
    phone: str
    role: UserRole
    profile: UserProfile

    # Password reset (hash of the token, never the token itself)
    reset_token_hash: Optional[str] = None
    reset_token_expires: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @model_validator(mode="after")
    def check_invariants(self):
        if self.profile.kind != self.role.value:
            raise ValueError(f"{self.profile.kind} profile does not match role {self.role.value}")
        if (self.reset_token_hash is None) != (self.reset_token_expires is None):
            raise ValueError("reset token hash and expiry must be set together")
        return self

    @property
    def full_name(self):
        """Return user's full name."""
        return f"{self.first_name} {self.last_name}"

    def reset_token_state(self, now: Optional[datetime] = None) -> ResetTokenState:
        if self.reset_token_hash is None:
            return ResetTokenState.NONE
        if (now or utcnow()) >= self.reset_token_expires:
            return ResetTokenState.EXPIRED
        return ResetTokenState.ISSUED

    def set_reset_token(self, token_hash: str, expires_at: datetime):
        self.reset_token_hash = token_hash
        self.reset_token_expires = expires_at

    def clear_reset_token(self):
        self.reset_token_hash = None
        self.reset_token_expires = None

    async def save(self, *args, **kwargs):
        self.updated_at = utcnow()
        return await super().save(*args, **kwargs)
