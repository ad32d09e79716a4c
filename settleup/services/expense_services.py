import logging
from decimal import Decimal
from typing import List, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import aliased
from fastapi import HTTPException
from settleup.core.dependencies import get_active_group, fetch_member_ids
from settleup.core.utils import CENTS, money_str, qround
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.user import User
from settleup.schemas.expense import ExpenseCreate

logger = logging.getLogger(__name__)


def equal_split(amount: Decimal, user_ids: Sequence[int]) -> List[Decimal]:
    """
    Divides `amount` into whole-cent shares, one per user.
    Leftover cents go to the first users, so the shares always add up to amount.
    """
    if not user_ids:
        raise ValueError("Cannot split an expense between zero users")

    total_cents = int(qround(amount) / CENTS)
    base, remainder = divmod(total_cents, len(user_ids))

    return [
        (base + (1 if i < remainder else 0)) * CENTS
        for i in range(len(user_ids))
    ]


def _resolve_split_amounts(data: ExpenseCreate) -> List[Decimal]:
    user_ids = [s.user_id for s in data.splits]

    if data.strategy == "equal":
        return equal_split(data.amount, user_ids)

    if any(s.amount is None for s in data.splits):
        raise HTTPException(400, "Exact splits need an amount for every user")

    return [s.amount for s in data.splits]


# working fine
async def create_expense(db: AsyncSession, group_id: int, data: ExpenseCreate):
    await get_active_group(db, group_id)
    member_ids = await fetch_member_ids(db, group_id)

    # -----------------------------------
    # 1. Payer must belong to the group
    # -----------------------------------
    if data.paid_by not in member_ids:
        raise HTTPException(400, "Payer is not a member of the group")

    # -----------------------------------
    # 2. Extract & validate split users
    # -----------------------------------
    split_user_ids = [s.user_id for s in data.splits]

    if len(split_user_ids) != len(set(split_user_ids)):
        raise HTTPException(400, "Duplicate users found in splits")

    if not set(split_user_ids) <= member_ids:
        raise HTTPException(
            400,
            "One or more users in splits are not members of the group"
        )

    # -----------------------------------
    # 3. Validate amounts
    # -----------------------------------
    amounts = _resolve_split_amounts(data)

    if any(a <= 0 for a in amounts):
        raise HTTPException(400, "Split amounts must be positive")

    total_split = sum(amounts, Decimal("0"))
    if total_split != data.amount:
        raise HTTPException(
            400,
            f"Split total ({total_split}) must equal expense amount ({data.amount})"
        )

    # -----------------------------------
    # 4. Create expense and splits atomically
    # -----------------------------------
    try:
        expense = Expense(
            group_id=group_id,
            paid_by=data.paid_by,
            amount=data.amount,
            description=data.description,
            strategy=data.strategy
        )

        db.add(expense)
        await db.flush()  # generates expense.id

        db.add_all([
            ExpenseSplit(expense_id=expense.id, user_id=uid, amount=amt)
            for uid, amt in zip(split_user_ids, amounts)
        ])

        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Expense creation rolled back for group %s", group_id)
        raise

    logger.info("Added expense %s to group %s", expense.id, group_id)

    return {
        "id": expense.id,
        "group_id": group_id,
        "description": data.description,
        "amount": money_str(data.amount),
        "paid_by": data.paid_by,
        "strategy": data.strategy,
        "splits": [
            {"user_id": uid, "amount": money_str(amt)}
            for uid, amt in zip(split_user_ids, amounts)
        ],
    }

async def delete_expense(db: AsyncSession, expense_id: int):
    q = select(Expense).where(Expense.id == expense_id, Expense.is_deleted == False)
    res = await db.execute(q)
    expense = res.scalar_one_or_none()

    if not expense:
        raise HTTPException(404, "Expense not found")

    expense.is_deleted = True
    await db.commit()

    logger.info("Deleted expense %s", expense_id)
    return {"status": "deleted"}

# working fine
async def get_expenses_by_group(db: AsyncSession, group_id: int):
    await get_active_group(db, group_id)

    payer = aliased(User)

    q = (
        select(
            Expense,
            payer.name.label("payer_name"),
            func.count(ExpenseSplit.id).label("split_count"),
        )
        .join(payer, payer.id == Expense.paid_by)
        .outerjoin(ExpenseSplit, ExpenseSplit.expense_id == Expense.id)
        .where(
            Expense.group_id == group_id,
            Expense.is_deleted == False,
        )
        .group_by(Expense.id, payer.name)
        .order_by(
            Expense.created_at.desc(),
            Expense.id.desc(),
        )
    )

    res = await db.execute(q)
    rows = res.all()

    return [
        {
            "id": expense.id,
            "group_id": expense.group_id,
            "description": expense.description,
            "amount": money_str(expense.amount),
            "paid_by": expense.paid_by,
            "payer_name": payer_name,
            "strategy": expense.strategy,
            "created_at": expense.created_at,
            "split_count": split_count,
        }
        for expense, payer_name, split_count in rows
    ]
