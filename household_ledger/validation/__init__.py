"""Input validation package."""

from household_ledger.validation.checks import (
    ensure_distinct_people,
    ensure_finite,
    ensure_non_negative,
    ensure_non_negative_total,
    ensure_participants,
    ensure_unique_people,
)
from household_ledger.validation.errors import ValidationError

__all__ = [
    "ValidationError",
    "ensure_distinct_people",
    "ensure_finite",
    "ensure_non_negative",
    "ensure_non_negative_total",
    "ensure_participants",
    "ensure_unique_people",
]
