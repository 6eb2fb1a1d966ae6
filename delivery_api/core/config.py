from pydantic_settings import BaseSettings
from typing import List, Literal


class Settings(BaseSettings):
    """
    Application configuration settings.
    Loads from environment variables or .env file.
    """

    # Application
    APP_NAME: str = "Delivery Service API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Database
    DATABASE_URL: str = "mongodb://localhost:27017/deliveryApp"
    DATABASE_NAME: str = ""  # Empty: take it from DATABASE_URL

    # JWT Authentication
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    # Password hashing (bcrypt cost factor)
    BCRYPT_ROUNDS: int = 12

    # Password reset
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    # Development only: return the raw reset token in the API response
    # when it could not be emailed. Never enable in production.
    EXPOSE_RESET_TOKEN: bool = False

    # Admin bootstrap endpoint stays usable after the first admin exists
    ENABLE_ADMIN_BOOTSTRAP: bool = False

    # Email (SendGrid)
    SENDGRID_API_KEY: str = ""
    SENDGRID_API_URL: str = "https://api.sendgrid.com/v3/mail/send"
    FROM_EMAIL: str = "no-reply@example.com"
    FRONTEND_URL: str = "http://localhost:5173"

    # Rate limiting (fixed window, per client address)
    LOGIN_RATE_LIMIT: int = 5
    LOGIN_RATE_WINDOW_MINUTES: int = 1
    PASSWORD_RATE_LIMIT: int = 5
    PASSWORD_RATE_WINDOW_MINUTES: int = 15
    # Use the first X-Forwarded-For entry as the client address (behind a proxy)
    TRUST_FORWARDED_FOR: bool = False

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
