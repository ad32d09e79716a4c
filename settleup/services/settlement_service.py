import logging
from decimal import Decimal
from typing import Dict, List
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException
from settleup.core.config import settings
from settleup.core.dependencies import check_group_membership, get_active_group
from settleup.core.exceptions import DataIntegrityError
from settleup.core.utils import money_str, qround, to_decimal
from settleup.models.expense import Expense
from settleup.models.expense_split import ExpenseSplit
from settleup.models.group_member import GroupMember
from settleup.models.settlement import Settlement
from settleup.models.user import User
from settleup.schemas.settlements import SettlementCreate
from settleup.services import settlement_calculator
from settleup.services.settlement_calculator import (
    Member,
    PaymentFact,
    SettlementFact,
    SplitFact,
    TransferInstruction,
)

logger = logging.getLogger(__name__)


# -----------------------------------
# Ledger facts
# -----------------------------------

async def fetch_roster(db: AsyncSession, group_id: int) -> List[Member]:
    q = (
        select(User.id, User.name)
        .join(GroupMember, GroupMember.user_id == User.id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.id)
    )
    res = await db.execute(q)
    return [Member(id=row.id, name=row.name) for row in res]


async def fetch_payment_facts(db: AsyncSession, group_id: int) -> List[PaymentFact]:
    q = (
        select(
            Expense.paid_by.label("member_id"),
            func.coalesce(func.sum(Expense.amount), 0).label("paid"),
        )
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
        .group_by(Expense.paid_by)
        .order_by(Expense.paid_by)
    )
    res = await db.execute(q)
    return [PaymentFact(member_id=row.member_id, amount=to_decimal(row.paid)) for row in res]


async def fetch_split_facts(db: AsyncSession, group_id: int) -> List[SplitFact]:
    q = (
        select(
            ExpenseSplit.user_id.label("member_id"),
            func.coalesce(func.sum(ExpenseSplit.amount), 0).label("owed"),
        )
        .join(Expense, Expense.id == ExpenseSplit.expense_id)
        .where(Expense.group_id == group_id, Expense.is_deleted == False)
        .group_by(ExpenseSplit.user_id)
        .order_by(ExpenseSplit.user_id)
    )
    res = await db.execute(q)
    return [SplitFact(member_id=row.member_id, amount=to_decimal(row.owed)) for row in res]


async def fetch_settlement_facts(db: AsyncSession, group_id: int) -> List[SettlementFact]:
    q = (
        select(Settlement.payer_id, Settlement.payee_id, Settlement.amount)
        .where(Settlement.group_id == group_id)
        .order_by(Settlement.id)
    )
    res = await db.execute(q)
    return [
        SettlementFact(payer_id=row.payer_id, payee_id=row.payee_id, amount=to_decimal(row.amount))
        for row in res
    ]


async def _fetch_snapshot(db: AsyncSession, group_id: int):
    """
    Reads roster and all three ledgers on one session, so they come from the
    same transaction. Callers that need isolation from concurrent writers
    should run this on a backend/isolation level that gives snapshot reads.
    """
    await get_active_group(db, group_id)

    roster = await fetch_roster(db, group_id)
    payments = await fetch_payment_facts(db, group_id)
    splits = await fetch_split_facts(db, group_id)
    settled = await fetch_settlement_facts(db, group_id)

    return roster, payments, splits, settled


# -----------------------------------
# Settlement computation
# -----------------------------------

async def compute_settlement(db: AsyncSession, group_id: int) -> List[TransferInstruction]:
    roster, payments, splits, settled = await _fetch_snapshot(db, group_id)

    try:
        return settlement_calculator.compute_settlement(
            roster, payments, splits, settled, tolerance=settings.SETTLEMENT_TOLERANCE
        )
    except DataIntegrityError as e:
        e.group_id = group_id
        raise


async def get_group_net_balances(db: AsyncSession, group_id: int) -> Dict[int, Decimal]:
    """
    Returns:
        {
            member_id: net_balance (Decimal, rounded to cents)
        }

    net_balance = total_paid - total_owed + settled_out - settled_in
    """
    roster, payments, splits, settled = await _fetch_snapshot(db, group_id)

    try:
        balances = settlement_calculator.aggregate_balances(
            roster, payments, splits, settled, tolerance=settings.SETTLEMENT_TOLERANCE
        )
    except DataIntegrityError as e:
        e.group_id = group_id
        raise

    return {uid: qround(bal) for uid, bal in balances.items()}


def _instructions_out(instructions: List[TransferInstruction]):
    return [
        {
            "from_id": t.from_member.id,
            "from_name": t.from_member.name,
            "to_id": t.to_member.id,
            "to_name": t.to_member.name,
            "amount": money_str(t.amount),
        }
        for t in instructions
    ]


async def get_group_summary(db: AsyncSession, group_id: int):
    instructions = await compute_settlement(db, group_id)

    logger.debug("Group %s needs %d transfer(s)", group_id, len(instructions))
    return _instructions_out(instructions)


async def get_group_balances(db: AsyncSession, group_id: int):
    roster, payments, splits, settled = await _fetch_snapshot(db, group_id)
    tolerance = settings.SETTLEMENT_TOLERANCE

    try:
        balances = settlement_calculator.aggregate_balances(
            roster, payments, splits, settled, tolerance=tolerance
        )
        transfers = settlement_calculator.match_transfers(balances, tolerance=tolerance)
    except DataIntegrityError as e:
        e.group_id = group_id
        raise

    instructions = settlement_calculator.to_instructions(roster, transfers)

    return {
        "net": {uid: money_str(bal) for uid, bal in balances.items()},
        "settled": not instructions,
        "settlements": _instructions_out(instructions),
    }


async def is_group_settled(db: AsyncSession, group_id: int) -> bool:
    """
    A group is settled when the summary has nothing left to pay,
    so this always agrees with get_group_summary.
    """
    return not await compute_settlement(db, group_id)


# -----------------------------------
# Recorded settlements
# -----------------------------------

async def add_settlement(db: AsyncSession, data: SettlementCreate):
    if data.payer_id == data.payee_id:
        raise HTTPException(400, "Payer and payee must be different members")

    await check_group_membership(db, data.group_id, data.payer_id)
    await check_group_membership(db, data.group_id, data.payee_id)

    settlement = Settlement(
        group_id=data.group_id,
        payer_id=data.payer_id,
        payee_id=data.payee_id,
        amount=data.amount
    )

    db.add(settlement)
    await db.commit()
    await db.refresh(settlement)

    logger.info(
        "Recorded settlement %s in group %s: %s -> %s %s",
        settlement.id, data.group_id, data.payer_id, data.payee_id, data.amount,
    )
    return settlement


async def get_settlement_history(db: AsyncSession, group_id: int):
    await get_active_group(db, group_id)

    q = select(Settlement).where(
        Settlement.group_id == group_id
    ).order_by(Settlement.created_at.desc(), Settlement.id.desc())

    result = await db.execute(q)
    return result.scalars().all()


async def undo_settlement(db: AsyncSession, settlement_id: int):
    q = select(Settlement).where(Settlement.id == settlement_id)
    result = await db.execute(q)
    settlement = result.scalar_one_or_none()

    if not settlement:
        raise HTTPException(404, "Settlement entry not found")

    await db.delete(settlement)
    await db.commit()

    logger.info("Undid settlement %s", settlement_id)
    return { "status": "undo successful" }
