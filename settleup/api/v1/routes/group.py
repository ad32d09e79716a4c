from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.services.group_services import create_group, add_member, list_group_for_user, get_group_detail, delete_group
from settleup.services.settlement_service import get_group_summary, get_group_balances, is_group_settled
from settleup.schemas.balances import GroupBalanceOut, GroupSettledOut, Settlement
from settleup.schemas.group import GroupCreate, GroupMemberAdd, GroupMemberOut, GroupOut

router = APIRouter()

@router.post("/", response_model=GroupOut, status_code=201)
async def create_new_group(data: GroupCreate, db: AsyncSession = Depends(get_db)):
    return await create_group(db, data)

@router.get("/for-user/{user_id}", response_model=list[GroupOut])
async def user_groups(user_id: int, db: AsyncSession = Depends(get_db)):
    return await list_group_for_user(db, user_id)

@router.get("/{group_id}")
async def group_detail(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_group_detail(db, group_id)

@router.delete("/{group_id}")
async def remove_group(group_id: int, db: AsyncSession = Depends(get_db)):
    return await delete_group(db, group_id)

@router.post("/{group_id}/members", response_model=GroupMemberOut, status_code=201)
async def add_user_to_group(group_id: int, data: GroupMemberAdd, db: AsyncSession = Depends(get_db)):
    return await add_member(db, group_id, data.user_id)

# working fine
@router.get("/{group_id}/summary", response_model=list[Settlement])
async def group_summary(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_group_summary(db, group_id)

@router.get("/{group_id}/balances", response_model=GroupBalanceOut)
async def group_balances(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_group_balances(db, group_id)

@router.get("/{group_id}/settled", response_model=GroupSettledOut)
async def group_settled(group_id: int, db: AsyncSession = Depends(get_db)):
    return {"group_id": group_id, "settled": await is_group_settled(db, group_id)}
