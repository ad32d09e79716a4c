from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.schemas.user import UserCreate, UserOut, UserSearchOut
from settleup.services.user_service import create_user, get_user, search_users

router = APIRouter()


@router.post("/", response_model=UserOut, status_code=201)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    return await create_user(db, data)


@router.get("/search", response_model=list[UserSearchOut])
async def search(
    name: str = "",
    exclude_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await search_users(db, name, exclude_id)


@router.get("/{user_id}", response_model=UserOut)
async def fetch(user_id: int, db: AsyncSession = Depends(get_db)):
    return await get_user(db, user_id)
