"""Recurrence Scheduler package."""

from household_ledger.recurrence.scheduler import (
    DEFAULT_MAX_BATCH,
    advance,
    due_occurrences,
)
from household_ledger.recurrence.templates import (
    advance_template,
    due_occurrences_for,
    expense_for_occurrence,
    task_for_occurrence,
    validate_template,
)

__all__ = [
    "DEFAULT_MAX_BATCH",
    "advance",
    "advance_template",
    "due_occurrences",
    "due_occurrences_for",
    "expense_for_occurrence",
    "task_for_occurrence",
    "validate_template",
]
