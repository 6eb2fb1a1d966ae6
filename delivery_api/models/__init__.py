"""
Database models package.
Import all models here so init_beanie gets the full list.
"""
from delivery_api.models.user import (
    Address,
    AdminProfile,
    AgentProfile,
    CustomerProfile,
    ResetTokenState,
    User,
    UserRole,
)

__all__ = [
    "Address",
    "AdminProfile",
    "AgentProfile",
    "CustomerProfile",
    "ResetTokenState",
    "User",
    "UserRole",
]

document_models = [User]
