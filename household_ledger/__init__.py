"""
Household Ledger - Source Package

The ledger and scheduling engine behind a shared-household app
(shared tasks and shared expenses).

DESIGN PRINCIPLES:
1. Money is integer minor units, never floats
2. Split lines always reconcile to the expense total
3. Fail early, fail visibly - no silent corrections
4. The core is pure; storage and clocks are collaborators
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
