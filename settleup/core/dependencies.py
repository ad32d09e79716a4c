from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.models.group import Group
from settleup.models.group_member import GroupMember


async def get_active_group(db: AsyncSession, group_id: int) -> Group:
    q_group = select(Group).where(Group.id == group_id, Group.is_deleted == False)
    res_group = await db.execute(q_group)
    group = res_group.scalar_one_or_none()

    if not group:
        raise HTTPException(404, "Group does not exist")

    return group


async def check_group_membership(db: AsyncSession, group_id: int, user_id: int):
    await get_active_group(db, group_id)

    q_member = select(GroupMember).where(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    )

    res_member = await db.execute(q_member)
    member = res_member.scalar_one_or_none()

    if not member:
        raise HTTPException(400, f"User {user_id} is not a member of this group")

    return member


async def fetch_member_ids(db: AsyncSession, group_id: int) -> set[int]:
    q = select(GroupMember.user_id).where(GroupMember.group_id == group_id)
    res = await db.execute(q)
    return {row[0] for row in res.all()}
