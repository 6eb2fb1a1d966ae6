from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from typing import Annotated, List, Optional
from datetime import datetime

from delivery_api.core.security import validate_password_strength
from delivery_api.models.user import (
    Address,
    AdminProfile,
    AgentProfile,
    CustomerProfile,
    User,
    UserRole,
)

RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

SELF_REGISTER_ROLES = (UserRole.CUSTOMER.value, UserRole.AGENT.value)


# ============================================================================
# Address (matching frontend formData.address)
# ============================================================================

class AddressSchema(BaseModel):
    """Delivery address; every part is required."""
    doorNo: RequiredStr
    street: RequiredStr
    area: RequiredStr
    city: RequiredStr
    state: RequiredStr
    pincode: RequiredStr

    def to_model(self) -> Address:
        return Address(
            door_no=self.doorNo,
            street=self.street,
            area=self.area,
            city=self.city,
            state=self.state,
            pincode=self.pincode,
        )

    @classmethod
    def from_model(cls, address: Address) -> "AddressSchema":
        return cls(
            doorNo=address.door_no,
            street=address.street,
            area=address.area,
            city=address.city,
            state=address.state,
            pincode=address.pincode,
        )


# ============================================================================
# Requests
# ============================================================================

class RegisterRequest(BaseModel):
    """Self-registration for customers and agents."""
    firstName: RequiredStr
    lastName: RequiredStr
    email: EmailStr
    password: str
    phone: RequiredStr
    role: str = Field(..., description="customer or agent")
    address: AddressSchema

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @field_validator("role")
    @classmethod
    def check_role(cls, value: str) -> str:
        if value not in SELF_REGISTER_ROLES:
            raise ValueError("Invalid role specified")
        return value

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "firstName": "Asha",
                "lastName": "Rao",
                "email": "asha@example.com",
                "password": "Passw0rd",
                "phone": "9876543210",
                "role": "customer",
                "address": {
                    "doorNo": "12",
                    "street": "MG Road",
                    "area": "Indiranagar",
                    "city": "Bengaluru",
                    "state": "Karnataka",
                    "pincode": "560038",
                },
            }
        }
    )


class LoginRequest(BaseModel):
    email: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: str
    token: RequiredStr
    password: str

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)


class AdminCreateRequest(BaseModel):
    """Used by both /admin/create and /admin/bootstrap."""
    firstName: RequiredStr
    lastName: RequiredStr
    email: EmailStr
    password: str
    phone: RequiredStr
    department: RequiredStr
    permissions: Optional[List[str]] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)


# ============================================================================
# Responses
# ============================================================================

class UserProfileSchema(BaseModel):
    """Public view of a user: no password hash, no reset token."""
    id: str
    firstName: str
    lastName: str
    email: str
    phone: str
    role: UserRole
    createdAt: datetime

    # Customer / agent
    address: Optional[AddressSchema] = None
    orders: Optional[List[str]] = None

    # Agent
    available: Optional[bool] = None
    rating: Optional[float] = None
    totalDeliveries: Optional[int] = None
    currentOrder: Optional[str] = None

    # Admin
    department: Optional[str] = None
    permissions: Optional[List[str]] = None

    @classmethod
    def from_user(cls, user: User) -> "UserProfileSchema":
        data = dict(
            id=str(user.id),
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            phone=user.phone,
            role=user.role,
            createdAt=user.created_at,
        )
        profile = user.profile
        if isinstance(profile, CustomerProfile):
            data.update(
                address=AddressSchema.from_model(profile.address),
                orders=[str(order_id) for order_id in profile.orders],
            )
        elif isinstance(profile, AgentProfile):
            data.update(
                address=AddressSchema.from_model(profile.address),
                available=profile.available,
                rating=profile.rating,
                totalDeliveries=profile.total_deliveries,
                currentOrder=str(profile.current_order) if profile.current_order else None,
            )
        elif isinstance(profile, AdminProfile):
            data.update(
                department=profile.department,
                permissions=list(profile.permissions),
            )
        return cls(**data)


class UserPageSchema(BaseModel):
    items: List[UserProfileSchema]
    total: int
    page: int
    limit: int
