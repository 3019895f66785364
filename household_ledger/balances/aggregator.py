"""
Balance Aggregator

Turns (people, expenses, split lines, settlements) into:
- net balances: one signed row per person
- pairwise balances: signed rows between one person and every other person

GUARANTEES:
- Pure: no hidden state, no caching, same inputs give the same rows
- Net balances always sum to exactly 0 (money is conserved)
- Pairwise rows with a zero balance are never returned

Missing or empty inputs are a normal state for a new group and degrade to
zero/empty results. A split line or settlement referencing a person
outside ``people`` is dropped whole (both sides, so the zero-sum holds)
and reported as a warning so upstream integrity bugs stay visible.
"""

from collections import defaultdict
from typing import Sequence

import structlog

from household_ledger.models.ledger import (
    BalanceRow,
    ExpenseObligation,
    LedgerSnapshot,
    PairwiseBalanceRow,
    Person,
    SettlementRecord,
    SplitLine,
)


logger = structlog.get_logger(__name__)


def compute_net_balances(
    people: Sequence[Person],
    expenses: Sequence[ExpenseObligation],
    split_lines: Sequence[SplitLine],
    settlements: Sequence[SettlementRecord],
) -> list[BalanceRow]:
    """
    Net position per person, most-owed-to first.

    Each split line credits the payer and debits the ower by the owed
    amount; self-splits (payer == ower) are skipped. Each settlement
    credits ``from`` (they paid down debt) and debits ``to``.
    """
    net: dict[str, int] = {person.id: 0 for person in people}
    payers = _payers_by_expense(expenses)

    for line in split_lines:
        payer_id = payers.get(line.expense_id)
        if payer_id is None:
            _warn_unknown_expense(line)
            continue
        if line.person_id == payer_id:
            continue
        _transfer(
            net, payer_id, line.person_id, line.amount_owed,
            source="split_line", expense_id=line.expense_id,
        )

    for settlement in settlements:
        _transfer(
            net, settlement.from_person_id, settlement.to_person_id, settlement.amount,
            source="settlement",
        )

    rows = [
        BalanceRow(
            person_id=person.id,
            display_name=person.display_name,
            linked_account_id=person.linked_account_id,
            net_amount=net[person.id],
        )
        for person in _unique_people(people)
    ]
    return sorted(rows, key=lambda row: row.net_amount, reverse=True)


def compute_pairwise_balances(
    current_person_id: str,
    people: Sequence[Person],
    expenses: Sequence[ExpenseObligation],
    split_lines: Sequence[SplitLine],
    settlements: Sequence[SettlementRecord],
) -> list[PairwiseBalanceRow]:
    """
    Signed balance between ``current_person_id`` and each other person.

    Builds a directed ledger keyed by (debtor, creditor). Split lines add
    to (ower -> payer); settlements subtract from (from -> to). For each
    other person ``net = ledger[other -> current] - ledger[current -> other]``.
    Zero rows are filtered out; the rest sort by absolute amount, largest
    first.
    """
    ledger: dict[tuple[str, str], int] = defaultdict(int)
    payers = _payers_by_expense(expenses)

    for line in split_lines:
        payer_id = payers.get(line.expense_id)
        if payer_id is None:
            _warn_unknown_expense(line)
            continue
        if line.person_id == payer_id:
            continue
        ledger[(line.person_id, payer_id)] += line.amount_owed

    for settlement in settlements:
        ledger[(settlement.from_person_id, settlement.to_person_id)] -= settlement.amount

    rows = []
    for person in _unique_people(people):
        if person.id == current_person_id:
            continue
        owed_to_current = ledger.get((person.id, current_person_id), 0)
        owed_by_current = ledger.get((current_person_id, person.id), 0)
        net_amount = owed_to_current - owed_by_current
        if net_amount == 0:
            continue
        rows.append(PairwiseBalanceRow(
            person_id=person.id,
            display_name=person.display_name,
            linked_account_id=person.linked_account_id,
            net_amount=net_amount,
        ))

    return sorted(rows, key=lambda row: abs(row.net_amount), reverse=True)


def compute_balances_from_snapshot(snapshot: LedgerSnapshot) -> list[BalanceRow]:
    return compute_net_balances(
        snapshot.people,
        snapshot.expenses,
        snapshot.split_lines,
        snapshot.settlements,
    )


def compute_pairwise_from_snapshot(
    current_person_id: str,
    snapshot: LedgerSnapshot,
) -> list[PairwiseBalanceRow]:
    return compute_pairwise_balances(
        current_person_id,
        snapshot.people,
        snapshot.expenses,
        snapshot.split_lines,
        snapshot.settlements,
    )


def _payers_by_expense(expenses: Sequence[ExpenseObligation]) -> dict[str, str]:
    return {expense.expense_id: expense.payer_id for expense in expenses}


def _unique_people(people: Sequence[Person]) -> list[Person]:
    """First occurrence wins if the same id is listed twice."""
    seen: set[str] = set()
    unique = []
    for person in people:
        if person.id in seen:
            continue
        seen.add(person.id)
        unique.append(person)
    return unique


def _transfer(
    net: dict[str, int],
    credited_id: str,
    debited_id: str,
    amount: int,
    **context,
) -> None:
    """Credit one person and debit another by ``amount``, or drop it whole."""
    unknown = [person_id for person_id in (credited_id, debited_id) if person_id not in net]
    if unknown:
        logger.warning(
            "unknown_person_reference",
            unknown_person_ids=unknown,
            dropped_amount=amount,
            **context,
        )
        return
    net[credited_id] += amount
    net[debited_id] -= amount


def _warn_unknown_expense(line: SplitLine) -> None:
    logger.warning(
        "unknown_expense_reference",
        expense_id=line.expense_id,
        person_id=line.person_id,
        dropped_amount=line.amount_owed,
    )
