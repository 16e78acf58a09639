"""
trok/db/indexes.py

Purpose: Database index management

- Creates unique and lookup indexes
- Enforces email and invoice number uniqueness
- TTL index for automatic cleanup of signup staging records
"""

from pymongo import ASCENDING, DESCENDING

from trok.db.mongo import (
    get_users_collection,
    get_signups_collection,
    get_customers_collection,
    get_items_collection,
    get_tax_rates_collection,
    get_invoices_collection,
    get_payments_collection,
    get_statements_collection,
)
from trok.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        logger.info("Creating database indexes...")

        # ==============================================
        # USERS
        # ==============================================
        users = get_users_collection()
        await users.create_index("email", unique=True, name="email_unique")
        await users.create_index("id", unique=True, name="id_unique")
        await users.create_index("stripe_account_id", name="stripe_account_idx", sparse=True)
        logger.debug("Created indexes on users")

        # ==============================================
        # SIGNUP STAGING
        # ==============================================
        signups = get_signups_collection()
        await signups.create_index("email", unique=True, name="signup_email_unique")
        await signups.create_index(
            "expires_at",
            expireAfterSeconds=0,  # Delete when expires_at is reached
            name="signup_expiry_ttl_idx"
        )
        logger.debug("Created TTL index on signups.expires_at")

        # ==============================================
        # INVOICING
        # ==============================================
        for collection in (
            get_customers_collection(),
            get_items_collection(),
            get_tax_rates_collection(),
        ):
            await collection.create_index(
                [("user_id", ASCENDING), ("created_at", DESCENDING)],
                name="user_created_idx"
            )

        invoices = get_invoices_collection()
        await invoices.create_index("invoice_id", unique=True, name="invoice_id_unique")
        await invoices.create_index(
            [("user_id", ASCENDING), ("invoice_number", ASCENDING)],
            unique=True,
            name="user_invoice_number_unique"
        )
        await invoices.create_index("status", name="invoice_status_idx")
        logger.debug("Created indexes on invoices")

        # ==============================================
        # PAYMENTS & STATEMENTS
        # ==============================================
        payments = get_payments_collection()
        await payments.create_index("payment_id", unique=True, name="payment_id_unique")
        await payments.create_index(
            [("user_id", ASCENDING), ("created_at", DESCENDING)],
            name="user_payments_idx"
        )

        statements = get_statements_collection()
        await statements.create_index("statement_id", unique=True, name="statement_id_unique")
        await statements.create_index(
            [("status", ASCENDING), ("due_date", ASCENDING)],
            name="statement_due_idx"
        )
        logger.debug("Created indexes on payments and statements")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from trok.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
