"""
Template-level helpers around the scheduler.

These apply the pure scheduler to a RecurringTemplate and build the
concrete records one occurrence produces. Nothing here touches storage:
the caller persists generated records and the advanced template together.
"""

from typing import Optional

from household_ledger.models.ledger import ExpenseRecord, SplitLine
from household_ledger.models.recurring import (
    DueOccurrences,
    ExpensePayload,
    RecurringTemplate,
    TaskPayload,
    TaskRecord,
)
from household_ledger.recurrence.scheduler import DEFAULT_MAX_BATCH, due_occurrences
from household_ledger.splits import PERCENTAGE_TOLERANCE, build_split_lines
from household_ledger.validation import ValidationError


def due_occurrences_for(
    template: RecurringTemplate,
    today: str,
    max_batch: int = DEFAULT_MAX_BATCH,
) -> DueOccurrences:
    """Scheduler result for ``template``; retired templates never fire."""
    if not template.is_active:
        return DueOccurrences(
            occurrences=[],
            next_occurrence=template.next_occurrence,
            is_active=False,
        )
    return due_occurrences(
        next_occurrence=template.next_occurrence,
        end_date=template.end_date,
        frequency=template.cadence.frequency,
        interval=template.cadence.interval,
        today=today,
        max_batch=max_batch,
    )


def advance_template(template: RecurringTemplate, due: DueOccurrences) -> RecurringTemplate:
    """
    Return ``template`` with its cursor moved to ``due.next_occurrence``.

    The cursor only moves forward and a retired template never reactivates.
    """
    next_occurrence = max(template.next_occurrence, due.next_occurrence)
    return template.model_copy(update={
        "next_occurrence": next_occurrence,
        "is_active": template.is_active and due.is_active,
    })


def validate_template(
    template: RecurringTemplate,
    tolerance: float = PERCENTAGE_TOLERANCE,
) -> None:
    """
    Creation-time checks for a new template.

    Expense payloads are run through the split calculator once so a
    template that could never produce a valid expense is rejected up front.
    """
    if template.end_date is not None and template.end_date < template.next_occurrence:
        raise ValidationError("end date before first occurrence")

    if isinstance(template.payload, ExpensePayload):
        payload = template.payload
        build_split_lines(
            f"{template.id}:preview",
            payload.amount,
            payload.policy,
            payer_id=payload.payer_id,
            tolerance=tolerance,
        )


def expense_for_occurrence(
    template: RecurringTemplate,
    occurrence: str,
    expense_id: str,
    notes: Optional[str] = None,
    tolerance: float = PERCENTAGE_TOLERANCE,
) -> tuple[ExpenseRecord, list[SplitLine]]:
    """The expense (dated at ``occurrence``) and its split lines."""
    payload = template.payload
    if not isinstance(payload, ExpensePayload):
        raise TypeError(f"Template {template.id} does not generate expenses")

    lines = build_split_lines(
        expense_id,
        payload.amount,
        payload.policy,
        payer_id=payload.payer_id,
        tolerance=tolerance,
    )
    expense = ExpenseRecord(
        expense_id=expense_id,
        payer_id=payload.payer_id,
        total_amount=payload.amount,
        group_id=template.group_id,
        description=payload.description,
        currency=payload.currency,
        expense_date=occurrence,
        split_method=payload.policy.method,
        category_id=payload.category_id,
        notes=notes,
        recurring_template_id=template.id,
    )
    return expense, lines


def task_for_occurrence(
    template: RecurringTemplate,
    occurrence: str,
    task_id: str,
) -> TaskRecord:
    """The task due on ``occurrence``."""
    payload = template.payload
    if not isinstance(payload, TaskPayload):
        raise TypeError(f"Template {template.id} does not generate tasks")

    return TaskRecord(
        id=task_id,
        group_id=template.group_id,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        assigned_to_person_id=payload.assigned_to_person_id,
        due_date=occurrence,
        recurring_template_id=template.id,
    )
