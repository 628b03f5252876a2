"""
Ledger engine: turns a trip snapshot into fund balance, per-person balances,
pending reimbursements and settlement instructions.

Everything here is pure. Callers build a ``LedgerSnapshot`` from whatever
store they use, call ``compute_ledger`` and render the result. The expense
list must be complete and in chronological order because fund depletion is
path-dependent.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from tripfund.core.utils import ZERO, CENTS, round_money, to_decimal

logger = logging.getLogger(__name__)

POOL_FUND = "Pool Fund"

STATUS_PENDING = "pending"
STATUS_RECEIVED = "received"

ReceivedPayments = Mapping[str, Mapping[str, bool]]


@dataclass(frozen=True)
class LedgerExpense:
    """A single expense as seen by the engine."""
    id: int
    title: str
    amount: Decimal
    paid_by: Optional[str]
    deduct_from_fund: bool
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable input to the engine."""
    participants: Tuple[str, ...]
    contributions: Mapping[str, Decimal]
    total_pooled: Decimal
    expenses: Tuple[LedgerExpense, ...] = ()
    received_payments: ReceivedPayments = field(default_factory=dict)

    def is_received(self, payer: str, debtor: str) -> bool:
        return bool(self.received_payments.get(payer, {}).get(debtor, False))


@dataclass
class ExpenseOutcome:
    """How the fund walk treated one expense."""
    expense_id: int
    per_person_share: Decimal
    covered_by_fund: Decimal
    uncovered_amount: Decimal


@dataclass
class ParticipantSummary:
    name: str
    initial_contribution: Decimal
    extra_paid: Decimal
    total_contribution: Decimal
    total_expense_share: Decimal
    balance: Decimal


@dataclass
class Reimbursement:
    """``debtor`` personally owes ``payer`` because of a shortfall or a direct payment."""
    payer: str
    debtor: str
    amount: Decimal
    status: str = STATUS_PENDING


@dataclass
class Settlement:
    """Instruction: ``from_name`` pays ``to_name`` ``amount``."""
    from_name: str
    to_name: str
    amount: Decimal
    status: str = STATUS_PENDING


@dataclass
class LedgerResult:
    total_pooled: Decimal
    total_expenses: Decimal
    total_deducted_from_fund: Decimal
    remaining_fund: Decimal
    balances: Dict[str, Decimal]
    participants: List[ParticipantSummary]
    expenses: List[ExpenseOutcome]
    reimbursements: List[Reimbursement]
    settlements: List[Settlement]

    @property
    def is_settled(self) -> bool:
        return not self.settlements

    def reimbursement_map(self) -> Dict[str, Dict[str, Decimal]]:
        mapping: Dict[str, Dict[str, Decimal]] = {}
        for item in self.reimbursements:
            mapping.setdefault(item.payer, {})[item.debtor] = item.amount
        return mapping


class _FundWalk:
    """Accumulators for one pass over the expense list, kept at full precision."""

    def __init__(self, snapshot: LedgerSnapshot):
        self.running_fund = to_decimal(snapshot.total_pooled)
        self.deducted = ZERO
        self.contributions = {
            name: to_decimal(snapshot.contributions.get(name, ZERO))
            for name in snapshot.participants
        }
        self.credits = {name: ZERO for name in snapshot.participants}
        self.charges = {name: ZERO for name in snapshot.participants}
        self.owed: Dict[str, Dict[str, Decimal]] = {}
        self.outcomes: List[ExpenseOutcome] = []

    def charge_all(self, participants, share: Decimal, exclude: Optional[str] = None):
        for name in participants:
            if name != exclude:
                self.charges[name] += share

    def record_owed(self, payer: str, participants, share: Decimal):
        debtors = self.owed.setdefault(payer, {})
        for name in participants:
            if name != payer:
                debtors[name] = debtors.get(name, ZERO) + share

    def balance(self, name: str) -> Decimal:
        return self.contributions[name] + self.credits[name] - self.charges[name]


def _walk(snapshot: LedgerSnapshot) -> _FundWalk:
    participants = snapshot.participants
    count = len(participants)
    assert count >= 1, "ledger requires at least one participant"

    walk = _FundWalk(snapshot)
    for expense in snapshot.expenses:
        amount = to_decimal(expense.amount)
        payer = expense.paid_by
        covered = ZERO
        uncovered = ZERO

        if expense.deduct_from_fund:
            if walk.running_fund >= amount:
                covered = amount
                walk.running_fund -= amount
                walk.charge_all(participants, amount / count)
            else:
                covered = walk.running_fund
                uncovered = amount - covered
                walk.running_fund = ZERO
                walk.charge_all(participants, covered / count)

                if payer and payer != POOL_FUND:
                    share = uncovered / count
                    walk.credits[payer] += uncovered
                    walk.charge_all(participants, share, exclude=payer)
                    walk.record_owed(payer, participants, share)
            walk.deducted += covered
        else:
            share = amount / count
            uncovered = amount
            walk.credits[payer] += amount
            walk.charge_all(participants, share)
            if amount - share > 0:
                walk.record_owed(payer, participants, share)

        walk.outcomes.append(ExpenseOutcome(
            expense_id=expense.id,
            per_person_share=round_money(amount / count),
            covered_by_fund=round_money(covered),
            uncovered_amount=round_money(uncovered),
        ))

    return walk


def calculate_balances(snapshot: LedgerSnapshot) -> Dict[str, Decimal]:
    """Final per-participant balances, rounded to cents, in participant order."""
    walk = _walk(snapshot)
    return {name: round_money(walk.balance(name)) for name in snapshot.participants}


def pending_reimbursements(snapshot: LedgerSnapshot) -> Dict[str, Dict[str, Decimal]]:
    """Payer -> debtor -> amount for every person-to-person obligation above a cent."""
    walk = _walk(snapshot)
    return _prune_owed(walk.owed)


def _prune_owed(owed: Dict[str, Dict[str, Decimal]]) -> Dict[str, Dict[str, Decimal]]:
    filtered: Dict[str, Dict[str, Decimal]] = {}
    for payer, debtors in owed.items():
        kept = {
            debtor: round_money(amount)
            for debtor, amount in debtors.items()
            if amount > CENTS
        }
        if kept:
            filtered[payer] = kept
    return filtered


def settle_balances(
    balances: Mapping[str, Decimal],
    received_payments: Optional[ReceivedPayments] = None,
) -> List[Settlement]:
    """
    Greedy settlement: largest creditor first against the most negative
    debtor first. Deterministic for a given balance ordering but not
    guaranteed to minimise the number of transfers.
    """
    received_payments = received_payments or {}

    creditors = sorted(
        ([name, bal] for name, bal in balances.items() if bal > CENTS),
        key=lambda item: item[1],
        reverse=True,
    )
    debtors = sorted(
        ([name, bal] for name, bal in balances.items() if bal < -CENTS),
        key=lambda item: item[1],
    )

    settlements: List[Settlement] = []
    for creditor in creditors:
        for debtor in debtors:
            if creditor[1] <= CENTS:
                break
            if abs(debtor[1]) <= CENTS:
                continue
            amount = min(creditor[1], abs(debtor[1]))
            received = received_payments.get(creditor[0], {}).get(debtor[0], False)
            settlements.append(Settlement(
                from_name=debtor[0],
                to_name=creditor[0],
                amount=round_money(amount),
                status=STATUS_RECEIVED if received else STATUS_PENDING,
            ))
            creditor[1] -= amount
            debtor[1] += amount

    return settlements


def compute_ledger(snapshot: LedgerSnapshot) -> LedgerResult:
    """Run the fund walk once and derive every view of it."""
    walk = _walk(snapshot)

    balances: Dict[str, Decimal] = {}
    summaries: List[ParticipantSummary] = []
    for name in snapshot.participants:
        balance = round_money(walk.balance(name))
        balances[name] = balance
        initial = walk.contributions[name]
        extra = walk.credits[name]
        summaries.append(ParticipantSummary(
            name=name,
            initial_contribution=round_money(initial),
            extra_paid=round_money(extra),
            total_contribution=round_money(initial + extra),
            total_expense_share=round_money(walk.charges[name]),
            balance=balance,
        ))

    reimbursements = [
        Reimbursement(
            payer=payer,
            debtor=debtor,
            amount=amount,
            status=STATUS_RECEIVED if snapshot.is_received(payer, debtor) else STATUS_PENDING,
        )
        for payer, debtors in _prune_owed(walk.owed).items()
        for debtor, amount in debtors.items()
    ]

    settlements = settle_balances(balances, snapshot.received_payments)
    total_expenses = sum((to_decimal(e.amount) for e in snapshot.expenses), ZERO)

    logger.debug(
        "Ledger computed: %d participants, %d expenses, %d settlements, fund left %s",
        len(snapshot.participants), len(snapshot.expenses), len(settlements), walk.running_fund,
    )

    return LedgerResult(
        total_pooled=round_money(snapshot.total_pooled),
        total_expenses=round_money(total_expenses),
        total_deducted_from_fund=round_money(walk.deducted),
        remaining_fund=round_money(walk.running_fund),
        balances=balances,
        participants=summaries,
        expenses=walk.outcomes,
        reimbursements=reimbursements,
        settlements=settlements,
    )


def remaining_fund(snapshot: LedgerSnapshot) -> Decimal:
    """Fund left after walking every expense; never negative."""
    return _walk(snapshot).running_fund
