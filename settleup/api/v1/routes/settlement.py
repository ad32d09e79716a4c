from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from settleup.db.session import get_db
from settleup.schemas.settlements import SettlementCreate, SettlementOut
from settleup.services.settlement_service import add_settlement, get_settlement_history, undo_settlement

router = APIRouter()


@router.post("/", response_model=SettlementOut, status_code=201)
async def settle_up(data: SettlementCreate, db: AsyncSession = Depends(get_db)):
    return await add_settlement(db, data)


@router.get("/{group_id}/history", response_model=list[SettlementOut])
async def history(group_id: int, db: AsyncSession = Depends(get_db)):
    return await get_settlement_history(db, group_id)


@router.delete("/{settlement_id}")
async def undo(settlement_id: int, db: AsyncSession = Depends(get_db)):
    return await undo_settlement(db, settlement_id)
