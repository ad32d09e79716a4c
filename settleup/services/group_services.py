import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException
from settleup.core.dependencies import get_active_group, fetch_member_ids
from settleup.core.utils import money_str
from settleup.models.expense import Expense
from settleup.models.group import Group
from settleup.models.group_member import GroupMember
from settleup.models.user import User
from settleup.schemas.group import GroupCreate
from settleup.services.user_queries import get_user_by_id, get_users_by_ids

logger = logging.getLogger(__name__)

# working fine
async def create_group(db: AsyncSession, data: GroupCreate):
    # creator first, then requested members in order, duplicates collapsed
    member_ids = list(dict.fromkeys([data.created_by, *data.members]))

    found = {u.id for u in await get_users_by_ids(db, member_ids)}
    missing = [uid for uid in member_ids if uid not in found]
    if missing:
        raise HTTPException(404, f"Users not found: {missing}")

    try:
        group = Group(name=data.name.strip(), created_by=data.created_by)
        db.add(group)
        await db.flush()  # generates group.id

        db.add_all([GroupMember(group_id=group.id, user_id=uid) for uid in member_ids])

        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Group creation rolled back")
        raise

    await db.refresh(group)
    logger.info("Created group %s with %d member(s)", group.id, len(member_ids))
    return group

async def add_member(db: AsyncSession, group_id: int, user_id: int):
    await get_active_group(db, group_id)

    if not await get_user_by_id(db, user_id):
        raise HTTPException(404, "User does not exist")

    if user_id in await fetch_member_ids(db, group_id):
        raise HTTPException(409, "User is already a member of this group")

    member = GroupMember(group_id=group_id, user_id=user_id)
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member

async def list_group_for_user(db: AsyncSession, user_id: int):
    q = (
        select(Group)
        .join(GroupMember)
        .where(GroupMember.user_id == user_id, Group.is_deleted == False)
        .order_by(Group.name, Group.id)
    )
    result = await db.execute(q)
    return result.scalars().all()

async def get_group_detail(db: AsyncSession, group_id: int):
    group = await get_active_group(db, group_id)

    members_q = (
        select(User.id, User.name)
        .join(GroupMember, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.id)
    )
    members = (await db.execute(members_q)).all()

    expenses_q = (
        select(Expense, User.name.label("payer_name"))
        .join(User, User.id == Expense.paid_by)
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
        .order_by(Expense.created_at.desc(), Expense.id.desc())
    )
    expenses = (await db.execute(expenses_q)).all()

    return {
        "details": {
            "id": group.id,
            "name": group.name,
            "created_by": group.created_by,
            "created_at": group.created_at,
        },
        "members": [{"id": uid, "name": name} for uid, name in members],
        "expenses": [
            {
                "id": expense.id,
                "description": expense.description,
                "amount": money_str(expense.amount),
                "paid_by": expense.paid_by,
                "payer_name": payer_name,
                "created_at": expense.created_at,
            }
            for expense, payer_name in expenses
        ],
    }

async def delete_group(db: AsyncSession, group_id: int):
    group = await get_active_group(db, group_id)

    group.is_deleted = True
    await db.commit()

    logger.info("Deleted group %s", group_id)
    return {"status": "deleted"}
