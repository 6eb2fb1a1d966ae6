"""
API Router

Aggregates all /api routes.
"""
from fastapi import APIRouter
from delivery_api.api.routes import admin, auth, password

# Create main API router
api_router = APIRouter()

# Include sub-routers
api_router.include_router(
    auth.router,
    tags=["Authentication"]
)

api_router.include_router(
    password.router,
    prefix="/password",
    tags=["Password Reset"]
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"]
)
