"""
Reusable input checks shared by the split policies and template validation.

IMPORTANT: Checks NEVER silently fix input. They raise ValidationError
with a human-readable reason for whoever built the request.
"""

import math
from typing import Iterable, Sized

from household_ledger.validation.errors import ValidationError


def ensure_non_negative_total(total_amount: int) -> None:
    if total_amount < 0:
        raise ValidationError("negative amount")


def ensure_participants(entries: Sized) -> None:
    """An explicit per-person policy needs at least one entry."""
    if len(entries) == 0:
        raise ValidationError("no participants")


def ensure_unique_people(person_ids: Iterable[str]) -> None:
    seen: set[str] = set()
    for person_id in person_ids:
        if person_id in seen:
            raise ValidationError("duplicate person", person_id=person_id)
        seen.add(person_id)


def ensure_finite(value: float, reason: str, person_id: str) -> None:
    """NaN and infinity cannot be apportioned."""
    if not math.isfinite(value):
        raise ValidationError(reason, person_id=person_id)


def ensure_non_negative(value: float, reason: str, person_id: str) -> None:
    if value < 0:
        raise ValidationError(reason, person_id=person_id)


def ensure_distinct_people(first: str, second: str) -> None:
    if first == second:
        raise ValidationError("adjustment requires two different people", person_id=first)
