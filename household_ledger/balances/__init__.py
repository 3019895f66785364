"""Balance Aggregator package."""

from household_ledger.balances.aggregator import (
    compute_balances_from_snapshot,
    compute_net_balances,
    compute_pairwise_balances,
    compute_pairwise_from_snapshot,
)

__all__ = [
    "compute_balances_from_snapshot",
    "compute_net_balances",
    "compute_pairwise_balances",
    "compute_pairwise_from_snapshot",
]
