import logging
from sqlalchemy import select, func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.models.user import User
from settleup.models.group import Group
from settleup.models.expense import Expense

logger = logging.getLogger(__name__)

async def check_db_service(db: AsyncSession):
    """Round-trip SELECT 1 on the request's session."""
    try:
        await db.execute(text("SELECT 1"))
    except (OSError, SQLAlchemyError) as e:
        logger.warning("Database health check failed: %s", e)
        return {"db": False, "message": str(e)}
    return {"db": True, "message": "Database is connected"}

async def system_health():
    return {"status": "ok"}

async def system_metrics(db: AsyncSession):
    # Soft-deleted groups and expenses are not counted
    users = await db.scalar(select(func.count(User.id)))
    groups = await db.scalar(
        select(func.count(Group.id)).where(Group.is_deleted == False)
    )
    expenses = await db.scalar(
        select(func.count(Expense.id)).where(Expense.is_deleted == False)
    )

    return {"users": users, "groups": groups, "expenses": expenses}
