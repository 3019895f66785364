"""
Split Calculator

Turns (total amount, participants, policy) into per-person owed amounts
that always sum exactly to the total.

All arithmetic on money is integer arithmetic on minor units. The only
floating point values are percentage and share inputs coming from a UI;
those go through largest-remainder apportionment:

1. Floor each person's ideal (float) amount to get a base
2. Hand the leftover units out one at a time, largest fractional
   remainder first, ties broken by ascending person id

This reconciles to the cent every time. Do NOT replace it with naive
rounding - rounding each share independently breaks the sum.

Every function here is pure. Invalid input raises ValidationError before
any ledger entry can exist.
"""

import math
from typing import Optional, Sequence

from household_ledger.models.ledger import (
    AdjustmentSplit,
    EqualSplit,
    ExactSplit,
    PercentageSplit,
    PersonAmount,
    PersonPercentage,
    PersonShares,
    SharesSplit,
    SplitLine,
    SplitPolicy,
)
from household_ledger.validation import (
    ValidationError,
    ensure_distinct_people,
    ensure_finite,
    ensure_non_negative,
    ensure_non_negative_total,
    ensure_participants,
    ensure_unique_people,
)


# UI percentages carry small representation error (33.33 + 33.33 + 33.34).
PERCENTAGE_TOLERANCE = 0.001


def split_equal(total_amount: int, participant_ids: Sequence[str]) -> list[PersonAmount]:
    """
    Divide ``total_amount`` evenly.

    The remainder (0..n-1 units) goes one unit each to participants in
    input order. An empty participant list yields an empty result.
    A participant listed twice raises ValidationError("duplicate person").
    """
    ensure_non_negative_total(total_amount)
    if not participant_ids:
        return []
    ensure_unique_people(participant_ids)

    base, remainder = divmod(total_amount, len(participant_ids))
    return [
        PersonAmount(person_id=person_id, amount=base + (1 if index < remainder else 0))
        for index, person_id in enumerate(participant_ids)
    ]


def build_exact_splits(
    total_amount: int,
    amounts: Sequence[PersonAmount],
) -> list[PersonAmount]:
    """
    Validate caller-supplied amounts and return them unchanged.

    This is a hard input contract, not a rounding target: a sum that is
    off by a single unit is rejected.
    """
    ensure_non_negative_total(total_amount)
    ensure_participants(amounts)
    ensure_unique_people(entry.person_id for entry in amounts)
    for entry in amounts:
        ensure_non_negative(entry.amount, "negative amount", entry.person_id)

    if sum(entry.amount for entry in amounts) != total_amount:
        raise ValidationError("total mismatch")

    return list(amounts)


def split_by_percentage(
    total_amount: int,
    percentages: Sequence[PersonPercentage],
    tolerance: float = PERCENTAGE_TOLERANCE,
) -> list[PersonAmount]:
    """Split by percentages that add up to 100 (within ``tolerance``)."""
    ensure_non_negative_total(total_amount)
    ensure_participants(percentages)
    ensure_unique_people(entry.person_id for entry in percentages)
    for entry in percentages:
        ensure_finite(entry.percentage, "non-finite percentage", entry.person_id)
        ensure_non_negative(entry.percentage, "negative percentage", entry.person_id)

    total_percent = sum(entry.percentage for entry in percentages)
    if abs(total_percent - 100) > tolerance:
        raise ValidationError("percentages must sum to 100")

    ideals = [
        (entry.person_id, total_amount * entry.percentage / 100)
        for entry in percentages
    ]
    return _apportion(total_amount, ideals)


def split_by_shares(
    total_amount: int,
    shares: Sequence[PersonShares],
) -> list[PersonAmount]:
    """Split proportionally to share counts."""
    ensure_non_negative_total(total_amount)
    ensure_participants(shares)
    ensure_unique_people(entry.person_id for entry in shares)
    for entry in shares:
        ensure_finite(entry.shares, "non-finite shares", entry.person_id)
        ensure_non_negative(entry.shares, "negative shares", entry.person_id)

    total_shares = sum(entry.shares for entry in shares)
    if total_shares <= 0:
        raise ValidationError("total shares must be positive")

    ideals = [
        (entry.person_id, total_amount * entry.shares / total_shares)
        for entry in shares
    ]
    return _apportion(total_amount, ideals)


def split_adjustment(
    total_amount: int,
    from_person_id: str,
    to_person_id: str,
) -> list[PersonAmount]:
    """
    Single-line split: ``from_person_id`` owes the whole total.

    ``to_person_id`` is the payer being reimbursed and gets no line.
    """
    ensure_non_negative_total(total_amount)
    ensure_distinct_people(from_person_id, to_person_id)
    return [PersonAmount(person_id=from_person_id, amount=total_amount)]


def calculate_splits(
    total_amount: int,
    policy: SplitPolicy,
    tolerance: float = PERCENTAGE_TOLERANCE,
) -> list[PersonAmount]:
    """Dispatch to the calculator for ``policy``'s variant."""
    if isinstance(policy, EqualSplit):
        return split_equal(total_amount, policy.participant_ids)
    if isinstance(policy, ExactSplit):
        return build_exact_splits(total_amount, policy.amounts)
    if isinstance(policy, PercentageSplit):
        return split_by_percentage(total_amount, policy.percentages, tolerance)
    if isinstance(policy, SharesSplit):
        return split_by_shares(total_amount, policy.shares)
    if isinstance(policy, AdjustmentSplit):
        return split_adjustment(total_amount, policy.from_person_id, policy.to_person_id)
    raise TypeError(f"Unsupported split policy: {type(policy).__name__}")


def build_split_lines(
    expense_id: str,
    total_amount: int,
    policy: SplitPolicy,
    payer_id: Optional[str] = None,
    tolerance: float = PERCENTAGE_TOLERANCE,
) -> list[SplitLine]:
    """
    Produce the SplitLines to persist with an expense.

    Enforces the SplitLine invariant at construction: a set of lines that
    is empty or does not sum to ``total_amount`` never leaves this function.
    When ``payer_id`` is given, an adjustment must reimburse that payer.
    """
    if (
        isinstance(policy, AdjustmentSplit)
        and payer_id is not None
        and policy.to_person_id != payer_id
    ):
        raise ValidationError("adjustment must reimburse the payer", person_id=payer_id)

    amounts = calculate_splits(total_amount, policy, tolerance)
    if not amounts:
        raise ValidationError("no participants")
    if sum(entry.amount for entry in amounts) != total_amount:
        raise ValidationError("total mismatch")

    return [
        SplitLine(expense_id=expense_id, person_id=entry.person_id, amount_owed=entry.amount)
        for entry in amounts
    ]


def _apportion(
    total_amount: int,
    ideals: list[tuple[str, float]],
) -> list[PersonAmount]:
    """
    Largest-remainder apportionment of ``total_amount``.

    ``ideals`` holds (person_id, ideal float amount) in input order; the
    output keeps that order.
    """
    amounts: dict[str, int] = {}
    fractions: dict[str, float] = {}
    for person_id, ideal in ideals:
        base = math.floor(ideal)
        amounts[person_id] = base
        fractions[person_id] = ideal - base

    ranked = sorted(amounts, key=lambda person_id: (-fractions[person_id], person_id))
    shortfall = total_amount - sum(amounts.values())

    # Percentages inside the tolerance but not exactly 100 can leave more
    # than n units over (wrap around) or overshoot the total (take back).
    index = 0
    while shortfall > 0:
        amounts[ranked[index % len(ranked)]] += 1
        shortfall -= 1
        index += 1

    donors = sorted(amounts, key=lambda person_id: (fractions[person_id], person_id))
    index = 0
    while shortfall < 0:
        person_id = donors[index % len(donors)]
        if amounts[person_id] > 0:
            amounts[person_id] -= 1
            shortfall += 1
        index += 1

    return [
        PersonAmount(person_id=person_id, amount=amounts[person_id])
        for person_id, _ in ideals
    ]
