import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from settleup.models.user import User
from settleup.schemas.user import UserCreate
from settleup.services.user_queries import get_user_by_email, get_user_by_id
from fastapi import HTTPException

logger = logging.getLogger(__name__)

async def create_user(db: AsyncSession, data: UserCreate):
    email = data.email.strip().lower()

    existing = await get_user_by_email(db, email)
    if existing:
        raise HTTPException(409, "User already exists")

    user = User(
        email = email,
        name = data.name.strip()
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info("Created user %s", user.id)
    return user

async def get_user(db: AsyncSession, user_id: int):
    user = await get_user_by_id(db, user_id)

    if not user:
        raise HTTPException(404, "User does not exist")

    return user

async def search_users(db: AsyncSession, name: str, exclude_id: int | None = None):
    q = select(User).where(User.name.ilike(f"%{name}%")).order_by(User.name, User.id)

    if exclude_id is not None:
        q = q.where(User.id != exclude_id)

    res = await db.execute(q)
    return res.scalars().all()
