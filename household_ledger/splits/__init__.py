"""Split Calculator package."""

from household_ledger.splits.calculator import (
    PERCENTAGE_TOLERANCE,
    build_exact_splits,
    build_split_lines,
    calculate_splits,
    split_adjustment,
    split_by_percentage,
    split_by_shares,
    split_equal,
)

__all__ = [
    "PERCENTAGE_TOLERANCE",
    "build_exact_splits",
    "build_split_lines",
    "calculate_splits",
    "split_adjustment",
    "split_by_percentage",
    "split_by_shares",
    "split_equal",
]
