"""
Database initialization script

Creates indexes for every trok collection and reports document counts.
Pass --seed-statement <user_id> to add an unpaid statement for local
dashboard testing:

    python scripts/init_db.py
    python scripts/init_db.py --seed-statement user_abc123
"""

import argparse
import asyncio
import logging
import sys
import uuid
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables before settings are read
load_dotenv()

from trok.db import mongo
from trok.db.indexes import create_indexes
from trok.models.payment import StatementStatus
from trok.utils.constants import STATEMENT_ID_PREFIX
from trok.utils.time_utils import utcnow

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

COLLECTIONS = [
    mongo.USERS,
    mongo.SIGNUPS,
    mongo.CUSTOMERS,
    mongo.ITEMS,
    mongo.TAX_RATES,
    mongo.INVOICES,
    mongo.PAYMENTS,
    mongo.STATEMENTS,
]


async def verify_indexes():
    logger.info("\n🔍 Verifying indexes...")
    db = mongo.get_database()

    for collection_name in COLLECTIONS:
        indexes = await db[collection_name].index_information()
        logger.info(f"\n  {collection_name}:")
        for idx_name in indexes.keys():
            if idx_name != "_id_":
                logger.info(f"    ✅ {idx_name}")


async def report_counts():
    db = mongo.get_database()
    logger.info("\n📊 Current documents:")
    for collection_name in COLLECTIONS:
        count = await db[collection_name].count_documents({})
        logger.info(f"  {collection_name}: {count}")


async def seed_statement(user_id: str):
    """Inserts one unpaid statement for the last 30 days, due in 14 days."""
    now = utcnow()
    statement = {
        "statement_id": f"{STATEMENT_ID_PREFIX}{uuid.uuid4().hex[:24]}",
        "user_id": user_id,
        "period_start": now - timedelta(days=30),
        "period_end": now,
        "total_balance": 0,
        "due_date": now + timedelta(days=14),
        "status": StatementStatus.UNPAID.value,
        "created_at": now,
    }
    await mongo.get_statements_collection().insert_one(statement)
    logger.info(f"🧪 Seeded statement {statement['statement_id']} for {user_id}")


async def main(seed_user_id=None):
    logger.info("=" * 60)
    logger.info("  trok Database Setup")
    logger.info("=" * 60 + "\n")

    await mongo.connect_to_mongo()
    try:
        await create_indexes()
        await verify_indexes()

        if seed_user_id:
            await seed_statement(seed_user_id)

        await report_counts()
        logger.info("\n✅ Database initialization complete!")
    except Exception as e:
        logger.error(f"\n❌ Error: {e}")
        raise
    finally:
        await mongo.close_mongo_connection()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create trok indexes")
    parser.add_argument("--seed-statement", metavar="USER_ID", help="insert a sample unpaid statement")
    args = parser.parse_args()
    asyncio.run(main(args.seed_statement))
