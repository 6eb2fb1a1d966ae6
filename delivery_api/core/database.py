import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from pymongo.errors import ConfigurationError

from delivery_api.core.config import Settings

logger = logging.getLogger(__name__)


def resolve_database_name(client, settings: Settings) -> str:
    """Explicit DATABASE_NAME wins, then the database in the URL."""
    if settings.DATABASE_NAME:
        return settings.DATABASE_NAME
    try:
        db_name = client.get_default_database().name
    except ConfigurationError:
        # No database in the connection string
        db_name = None
    if not db_name or db_name == "test":
        db_name = "deliveryApp"
    return db_name


async def init_db(settings: Settings, client: Optional[AsyncIOMotorClient] = None):
    """
    Initialize MongoDB connection and Beanie ODM.
    Creates the unique index on users.email if it is missing.
    """
    if client is None:
        client = AsyncIOMotorClient(settings.DATABASE_URL)

    db_name = resolve_database_name(client, settings)

    from delivery_api.models import document_models

    await init_beanie(database=client[db_name], document_models=document_models)
    logger.info(f"Beanie initialised on database '{db_name}'")
    return client
