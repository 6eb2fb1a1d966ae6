import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from delivery_api.core.config import Settings, settings as default_settings
from delivery_api.core.errors import register_exception_handlers
from delivery_api.core.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, init_database: bool = True) -> FastAPI:
    """
    Build the FastAPI application.

    Settings and the rate limiter are attached to app.state so each app
    (and each test) gets its own configuration and counters.
    """
    settings = settings or default_settings

    # Setup Logging
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Delivery service accounts: registration, login, password reset and admin",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.rate_limiter = RateLimiter.from_settings(settings)

    # ----------------------------------------------------------------------
    # CORS Middleware
    # ----------------------------------------------------------------------
    origins = list(settings.CORS_ORIGINS)
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----------------------------------------------------------------------
    # Error envelope
    # ----------------------------------------------------------------------
    register_exception_handlers(app)

    # ----------------------------------------------------------------------
    # Database Initialization (Startup Event)
    # ----------------------------------------------------------------------
    if init_database:
        from delivery_api.core.database import init_db

        @app.on_event("startup")
        async def on_startup():
            logger.info("Connecting to Database...")
            await init_db(settings)
            logger.info("Database Connection Successful!")

    if settings.EXPOSE_RESET_TOKEN:
        logger.warning(
            "EXPOSE_RESET_TOKEN is enabled: password reset tokens may be returned "
            "in API responses. Never run production like this."
        )

    # ----------------------------------------------------------------------
    # Basic Routes
    # ----------------------------------------------------------------------
    @app.get("/")
    async def root():
        return {
            "message": f"{settings.APP_NAME} is running",
            "version": settings.APP_VERSION,
            "docs": "/docs"
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # ----------------------------------------------------------------------
    # API Routers
    # ----------------------------------------------------------------------
    from delivery_api.api.routes import api_router

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
