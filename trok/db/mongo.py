"""
trok/db/mongo.py

Purpose: MongoDB connection setup

- Initializes Motor client with connection pooling
- Collections: users, signups (staging), customers, items, tax_rates,
  invoices, payments, statements
- Health checks and retry logic
- Proper connection lifecycle management
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from trok.core.config import settings
from trok.core.logging import get_logger

logger = get_logger(__name__)

# Global MongoDB client
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None

USERS = "users"
SIGNUPS = "signups"
CUSTOMERS = "customers"
ITEMS = "items"
TAX_RATES = "tax_rates"
INVOICES = "invoices"
PAYMENTS = "payments"
STATEMENTS = "statements"


async def connect_to_mongo():
    """
    Establishes connection to MongoDB with retry logic.
    Called during application startup.
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    max_retries = 3
    retry_delay = 2

    for attempt in range(1, max_retries + 1):
        try:
            logger.info(
                f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
            )

            _client = AsyncIOMotorClient(
                settings.MONGODB_URL,
                maxPoolSize=50,
                minPoolSize=5,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                retryWrites=True,
                retryReads=True,
                tz_aware=False,
            )

            _database = _client[settings.MONGODB_DB_NAME]

            # Verify connection
            await _client.admin.command("ping")

            logger.info(
                f"✅ Successfully connected to MongoDB: {settings.MONGODB_DB_NAME}"
            )
            return

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(
                f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
            )
            _client = None
            _database = None

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e


async def close_mongo_connection():
    """
    Closes the MongoDB connection.
    Called during application shutdown.
    """
    global _client, _database

    if _client:
        logger.info("Closing MongoDB connection")
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        if _client is None:
            logger.error("MongoDB client not initialized")
            return False

        await _client.admin.command("ping")
        return True

    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_collection(name: str):
    return get_database()[name]


def get_users_collection():
    """
    Returns the users collection.

    Fields:
    - id: str
    - email: str (unique)
    - password: str
    - firstname / lastname / full_name / phone / referral_code
    - onboarding_step: int
    - business: dict (merged onboarding answers)
    - stripe_account_id / stripe_person_id: str
    - plaid_access_token / plaid_item_id: str
    - created_at / updated_at: datetime
    """
    return get_collection(USERS)


def get_signups_collection():
    """
    Returns the signup staging collection.

    One document per email holding in-progress onboarding fields.
    Documents carry `expires_at` and are removed by a TTL index.
    """
    return get_collection(SIGNUPS)


def get_customers_collection():
    return get_collection(CUSTOMERS)


def get_items_collection():
    return get_collection(ITEMS)


def get_tax_rates_collection():
    return get_collection(TAX_RATES)


def get_invoices_collection():
    return get_collection(INVOICES)


def get_payments_collection():
    return get_collection(PAYMENTS)


def get_statements_collection():
    return get_collection(STATEMENTS)
