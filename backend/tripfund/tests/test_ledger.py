"""
Tests for the ledger engine.
"""
from decimal import Decimal

import pytest

from tripfund.services.ledger import (
    POOL_FUND,
    STATUS_PENDING,
    STATUS_RECEIVED,
    LedgerExpense,
    LedgerSnapshot,
    calculate_balances,
    compute_ledger,
    pending_reimbursements,
    remaining_fund,
    settle_balances,
)

D = Decimal


def expense(id, amount, paid_by=None, deduct=False, title="Expense"):
    return LedgerExpense(
        id=id,
        title=title,
        amount=D(str(amount)),
        paid_by=paid_by,
        deduct_from_fund=deduct,
    )


def snapshot(participants, contributions=None, total_pooled=None, expenses=(), received=None):
    contributions = {k: D(str(v)) for k, v in (contributions or {}).items()}
    if total_pooled is None:
        total_pooled = sum(contributions.values(), D("0"))
    return LedgerSnapshot(
        participants=tuple(participants),
        contributions=contributions,
        total_pooled=D(str(total_pooled)),
        expenses=tuple(expenses),
        received_payments=received or {},
    )


def test_simple_equal_split_from_fund():
    """Fund covers the whole expense; everyone is charged half."""
    snap = snapshot(
        ["Alice", "Bob"],
        {"Alice": 100, "Bob": 100},
        expenses=[expense(1, 50, paid_by=POOL_FUND, deduct=True, title="Food")],
    )
    ledger = compute_ledger(snap)

    assert ledger.remaining_fund == D("150.00")
    assert ledger.balances == {"Alice": D("75.00"), "Bob": D("75.00")}
    assert [p.total_expense_share for p in ledger.participants] == [D("25.00"), D("25.00")]
    assert ledger.settlements == []
    assert ledger.reimbursements == []
    assert ledger.is_settled


def test_fund_shortfall_with_designated_payer():
    snap = snapshot(
        ["A", "B"],
        {"A": 0, "B": 0},
        total_pooled=10,
        expenses=[expense(1, 30, paid_by="A", deduct=True)],
    )
    ledger = compute_ledger(snap)

    assert ledger.remaining_fund == D("0.00")
    assert ledger.total_deducted_from_fund == D("10.00")
    assert ledger.balances == {"A": D("15.00"), "B": D("-15.00")}
    assert len(ledger.settlements) == 1
    settlement = ledger.settlements[0]
    assert (settlement.from_name, settlement.to_name, settlement.amount) == ("B", "A", D("15.00"))

    assert pending_reimbursements(snap) == {"A": {"B": D("10.00")}}

    outcome = ledger.expenses[0]
    assert outcome.covered_by_fund == D("10.00")
    assert outcome.uncovered_amount == D("20.00")
    assert outcome.per_person_share == D("15.00")


def test_direct_pay_expense():
    snap = snapshot(["A", "B", "C"], expenses=[expense(1, 90, paid_by="B")], total_pooled=0)
    ledger = compute_ledger(snap)

    assert ledger.balances == {"A": D("-30.00"), "B": D("60.00"), "C": D("-30.00")}
    assert [(s.from_name, s.to_name, s.amount) for s in ledger.settlements] == [
        ("A", "B", D("30.00")),
        ("C", "B", D("30.00")),
    ]
    assert ledger.reimbursement_map() == {"B": {"A": D("30.00"), "C": D("30.00")}}

    b = ledger.participants[1]
    assert b.extra_paid == D("90.00")
    assert b.total_contribution == D("90.00")
    assert b.total_expense_share == D("30.00")


def test_no_expenses_leaves_contributions_untouched():
    snap = snapshot(["A", "B", "C"], {"A": 100, "B": 50, "C": 0})
    ledger = compute_ledger(snap)

    assert ledger.balances == {"A": D("100.00"), "B": D("50.00"), "C": D("0.00")}
    assert ledger.remaining_fund == D("150.00")
    assert ledger.settlements == []
    assert calculate_balances(snap) == ledger.balances


def test_missing_contribution_defaults_to_zero():
    snap = snapshot(["A", "B"], {"A": 40}, expenses=[expense(1, 20, deduct=True, paid_by=POOL_FUND)])
    assert calculate_balances(snap) == {"A": D("30.00"), "B": D("-10.00")}


def test_balances_match_walk_credits_and_charges():
    snap = snapshot(
        ["A", "B", "C"],
        {"A": 60, "B": 30, "C": 0},
        expenses=[
            expense(1, 45, paid_by=POOL_FUND, deduct=True),
            expense(2, 60, paid_by="C", deduct=True),
            expense(3, 30, paid_by="A"),
            expense(4, 12, paid_by="B", deduct=True),
        ],
    )
    ledger = compute_ledger(snap)

    # 15 each from the pool, 15 each from the covered part of 2, 10 each for 3,
    # plus the uncovered shares of 2 (5) and 4 (4) charged to non-payers only
    breakdown = {p.name: (p.extra_paid, p.total_expense_share) for p in ledger.participants}
    assert breakdown == {
        "A": (D("30.00"), D("49.00")),
        "B": (D("12.00"), D("45.00")),
        "C": (D("15.00"), D("44.00")),
    }
    assert ledger.balances == {"A": D("41.00"), "B": D("-3.00"), "C": D("-29.00")}
    assert ledger.total_deducted_from_fund == D("90.00")
    assert ledger.remaining_fund == D("0.00")

    # contributions 90 plus payer credits 57, less charges 138
    assert sum(ledger.balances.values(), D("0")) == D("9")
    for person in ledger.participants:
        assert person.balance == person.total_contribution - person.total_expense_share


def test_recomputing_is_idempotent():
    snap = snapshot(
        ["A", "B", "C"],
        {"A": 10, "B": 10, "C": 10},
        expenses=[expense(1, 50, paid_by="A", deduct=True), expense(2, 20, paid_by="C")],
    )
    assert compute_ledger(snap) == compute_ledger(snap)


def test_settlements_zero_every_balance():
    snap = snapshot(
        ["A", "B", "C", "D"],
        {"A": 25, "B": 25, "C": 25, "D": 25},
        expenses=[
            expense(1, 100, paid_by=POOL_FUND, deduct=True),
            expense(2, 33, paid_by="D"),
            expense(3, 17.5, paid_by="A"),
            expense(4, 12, paid_by="B"),
        ],
    )
    ledger = compute_ledger(snap)
    balances = dict(ledger.balances)
    assert sum(balances.values(), D("0")) == D("0")

    for s in ledger.settlements:
        balances[s.from_name] += s.amount
        balances[s.to_name] -= s.amount

    assert all(abs(value) <= D("0.01") for value in balances.values())


def test_settlements_clear_every_debtor_when_creditors_are_owed_more():
    snap = snapshot(
        ["A", "B", "C", "D"],
        {"A": 25, "B": 25, "C": 25, "D": 25},
        expenses=[
            expense(1, 70, paid_by=POOL_FUND, deduct=True),
            expense(2, 55, paid_by="B", deduct=True),
            expense(3, 33, paid_by="D"),
            expense(4, 17.5, paid_by="A"),
        ],
    )
    ledger = compute_ledger(snap)
    assert ledger.balances == {
        "A": D("-1.38"), "B": D("12.38"), "C": D("-18.88"), "D": D("14.13"),
    }

    balances = dict(ledger.balances)
    for s in ledger.settlements:
        balances[s.from_name] += s.amount
        balances[s.to_name] -= s.amount

    assert balances["A"] == D("0") and balances["C"] == D("0")
    assert balances["B"] == D("6.25") and balances["D"] == D("0")


def test_expense_order_changes_reimbursements():
    first = expense(1, 80, paid_by="A", deduct=True)
    second = expense(2, 50, paid_by="B", deduct=True)

    forward = snapshot(["A", "B"], {"A": 50, "B": 50}, expenses=[first, second])
    backward = snapshot(["A", "B"], {"A": 50, "B": 50}, expenses=[second, first])

    assert pending_reimbursements(forward) == {"B": {"A": D("15.00")}}
    assert pending_reimbursements(backward) == {"A": {"B": D("15.00")}}


def test_shortfall_paid_by_pool_has_no_payer_credit():
    snap = snapshot(
        ["A", "B"],
        {"A": 5, "B": 5},
        expenses=[expense(1, 30, paid_by=POOL_FUND, deduct=True)],
    )
    ledger = compute_ledger(snap)

    assert ledger.balances == {"A": D("0.00"), "B": D("0.00")}
    assert ledger.reimbursements == []


def test_fund_exhausted_then_direct_payer_covers_everything():
    snap = snapshot(
        ["A", "B"],
        {"A": 10, "B": 10},
        expenses=[
            expense(1, 20, paid_by=POOL_FUND, deduct=True),
            expense(2, 40, paid_by="B", deduct=True),
        ],
    )
    ledger = compute_ledger(snap)

    assert remaining_fund(snap) == D("0")
    # B is credited the whole shortfall but only A is charged a share of it
    assert ledger.balances == {"A": D("-20.00"), "B": D("40.00")}
    assert ledger.reimbursement_map() == {"B": {"A": D("20.00")}}


def test_final_balances_round_half_up():
    snap = snapshot(["A", "B", "C"], expenses=[expense(1, 100, paid_by="A")], total_pooled=0)
    ledger = compute_ledger(snap)

    assert ledger.balances == {"A": D("66.67"), "B": D("-33.33"), "C": D("-33.33")}
    assert [(s.from_name, s.amount) for s in ledger.settlements] == [
        ("B", D("33.33")),
        ("C", D("33.33")),
    ]


def test_settle_balances_greedy_order():
    balances = {"A": D("50"), "B": D("10"), "C": D("-40"), "D": D("-20")}
    settlements = settle_balances(balances)

    assert [(s.from_name, s.to_name, s.amount) for s in settlements] == [
        ("C", "A", D("40.00")),
        ("D", "A", D("10.00")),
        ("D", "B", D("10.00")),
    ]


def test_settle_balances_ignores_sub_cent_noise():
    assert settle_balances({"A": D("0.01"), "B": D("-0.01")}) == []


def test_settle_balances_ties_keep_participant_order():
    balances = {"X": D("-10"), "A": D("10"), "B": D("10"), "Y": D("-10")}
    settlements = settle_balances(balances)

    assert [(s.from_name, s.to_name) for s in settlements] == [("X", "A"), ("Y", "B")]


def test_received_flags_do_not_change_balances():
    base = snapshot(["A", "B", "C"], expenses=[expense(1, 90, paid_by="B")], total_pooled=0)
    acknowledged = snapshot(
        ["A", "B", "C"],
        expenses=[expense(1, 90, paid_by="B")],
        total_pooled=0,
        received={"B": {"A": True}},
    )

    plain = compute_ledger(base)
    marked = compute_ledger(acknowledged)

    assert marked.balances == plain.balances
    assert [s.amount for s in marked.settlements] == [s.amount for s in plain.settlements]
    assert [s.status for s in marked.settlements] == [STATUS_RECEIVED, STATUS_PENDING]
    statuses = {(r.payer, r.debtor): r.status for r in marked.reimbursements}
    assert statuses == {("B", "A"): STATUS_RECEIVED, ("B", "C"): STATUS_PENDING}


def test_single_participant_has_nothing_to_settle():
    snap = snapshot(["Solo"], {"Solo": 100}, expenses=[expense(1, 30, paid_by="Solo")])
    ledger = compute_ledger(snap)

    assert ledger.balances == {"Solo": D("100.00")}
    assert ledger.reimbursements == []
    assert ledger.settlements == []


def test_zero_participants_is_a_precondition_failure():
    with pytest.raises(AssertionError):
        compute_ledger(snapshot([], total_pooled=0))
