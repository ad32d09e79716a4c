"""
Settlement engine.

Turns a group's ledger facts (payments, split shares, recorded settlements)
into net balances, then into the list of transfers that zeroes them.
Everything here is pure: no I/O, no shared state.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence

from settleup.core.exceptions import DataIntegrityError
from settleup.core.utils import EPSILON, ZERO, qround

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Member:
    id: int
    name: str


@dataclass(frozen=True)
class PaymentFact:
    member_id: int
    amount: Decimal


@dataclass(frozen=True)
class SplitFact:
    member_id: int
    amount: Decimal


@dataclass(frozen=True)
class SettlementFact:
    payer_id: int
    payee_id: int
    amount: Decimal


@dataclass(frozen=True)
class TransferInstruction:
    from_member: Member
    to_member: Member
    amount: Decimal


def _require_member(balances: Dict[int, Decimal], member_id: int, kind: str):
    if member_id not in balances:
        raise DataIntegrityError(
            f"{kind} references member {member_id} who is not in the group roster"
        )


def aggregate_balances(
    roster: Sequence[Member],
    payments: Iterable[PaymentFact],
    splits: Iterable[SplitFact],
    settlements: Iterable[SettlementFact],
    tolerance: Decimal = EPSILON,
) -> Dict[int, Decimal]:
    """
    Returns:
        {
            member_id: net_balance (Decimal)
        }
    in roster order.

    net_balance = total_paid - total_owed + settled_out - settled_in

    Values are left unrounded so cent errors do not compound.
    """
    balances: Dict[int, Decimal] = {m.id: ZERO for m in roster}

    for p in payments:
        _require_member(balances, p.member_id, "Payment")
        balances[p.member_id] += p.amount

    for s in splits:
        _require_member(balances, s.member_id, "Split")
        balances[s.member_id] -= s.amount

    for s in settlements:
        _require_member(balances, s.payer_id, "Settlement payer")
        _require_member(balances, s.payee_id, "Settlement payee")
        balances[s.payer_id] += s.amount
        balances[s.payee_id] -= s.amount

    total = sum(balances.values(), ZERO)
    if abs(total) > tolerance:
        raise DataIntegrityError(
            f"Balances do not sum to zero (off by {qround(total)})"
        )

    return balances


def is_settled(balance: Decimal, tolerance: Decimal = EPSILON) -> bool:
    return abs(balance) < tolerance


def match_transfers(
    balances: Dict[int, Decimal],
    tolerance: Decimal = EPSILON,
):
    """
    Greedy first-debtor / first-creditor matching.

    Debtors and creditors keep the order of `balances`; there is no sort by
    magnitude. Any balance of at least one tolerance step takes part, so a
    whole cent is always paid. Each step pays min(debt, credit) and drops
    whichever side reaches zero, so at most len(debtors) + len(creditors) - 1
    transfers come out.

    A side left over once the other empties can only be offset by sub-tolerance
    balances; that is accepted while the snapshot sums to zero and raised
    otherwise.
    """
    debtors = [[uid, bal] for uid, bal in balances.items() if bal < 0 and not is_settled(bal, tolerance)]
    creditors = [[uid, bal] for uid, bal in balances.items() if bal > 0 and not is_settled(bal, tolerance)]

    transfers = []
    d = 0
    c = 0

    while d < len(debtors) and c < len(creditors):
        debtor = debtors[d]
        creditor = creditors[c]

        amount = min(-debtor[1], creditor[1])
        transfers.append((debtor[0], creditor[0], qround(amount)))

        debtor[1] += amount
        creditor[1] -= amount

        if is_settled(debtor[1], tolerance):
            d += 1
        if is_settled(creditor[1], tolerance):
            c += 1

    if d < len(debtors) or c < len(creditors):
        total = sum(balances.values(), ZERO)
        if abs(total) > tolerance:
            left = [uid for uid, _ in debtors[d:] + creditors[c:]]
            raise DataIntegrityError(
                f"Unmatched balances left after settlement for members {left}"
            )
        logger.debug("Dropping sub-tolerance remainder for zero-sum snapshot")

    return transfers


def to_instructions(roster: Sequence[Member], transfers) -> List[TransferInstruction]:
    by_id = {m.id: m for m in roster}
    return [
        TransferInstruction(from_member=by_id[src], to_member=by_id[dst], amount=amount)
        for src, dst, amount in transfers
    ]


def compute_settlement(
    roster: Sequence[Member],
    payments: Iterable[PaymentFact],
    splits: Iterable[SplitFact],
    settlements: Iterable[SettlementFact],
    tolerance: Decimal = EPSILON,
) -> List[TransferInstruction]:
    balances = aggregate_balances(roster, payments, splits, settlements, tolerance)
    instructions = to_instructions(roster, match_transfers(balances, tolerance))

    logger.debug(
        "Computed %d transfer(s) for %d member(s)", len(instructions), len(roster)
    )
    return instructions
