from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from settleup.models.user import User

async def get_user_by_id(db: AsyncSession, user_id: int):
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()

async def get_user_by_email(db: AsyncSession, email: str):
    res = await db.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()

async def get_users_by_ids(db: AsyncSession, user_ids):
    res = await db.execute(select(User).where(User.id.in_(user_ids)))
    return res.scalars().all()
