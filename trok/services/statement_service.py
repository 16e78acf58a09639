"""
trok/services/statement_service.py

Purpose: Business statements

- Lists a user's statements
- Flags unpaid statements whose due date has passed (run hourly)
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

from trok.db.mongo import get_statements_collection
from trok.core.logging import get_logger
from trok.models.payment import StatementStatus
from trok.utils.time_utils import utcnow

logger = get_logger(__name__)


async def get_statements(user_id: str) -> List[Dict[str, Any]]:
    cursor = get_statements_collection().find({"user_id": user_id}).sort("period_end", DESCENDING)
    statements = await cursor.to_list(length=500)
    for statement in statements:
        statement.pop("_id", None)
    return statements


async def check_past_due_statements(now: Optional[datetime] = None) -> int:
    """
    Marks every unpaid statement with a due date in the past as past due.

    Args:
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of statements flagged
    """
    now = now or utcnow()
    statements = get_statements_collection()

    result = await statements.update_many(
        {
            "status": StatementStatus.UNPAID.value,
            "due_date": {"$lt": now}
        },
        {
            "$set": {
                "status": StatementStatus.PAST_DUE.value,
                "past_due_at": now,
                "updated_at": now
            }
        }
    )

    if result.modified_count:
        logger.warning(f"⚠️ {result.modified_count} statement(s) are now past due")
    else:
        logger.debug("No past due statements found")

    return result.modified_count
