import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from vasooly.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    await mongodb.db["bills"].create_index("status")
    await mongodb.db["bills"].create_index([("created_at", -1)])
    await mongodb.db["bills"].create_index("participants.id", unique=True)

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
