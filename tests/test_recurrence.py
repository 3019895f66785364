"""
Tests for the Recurrence Scheduler and template helpers.
"""

import pytest

from household_ledger.models import (
    AdjustmentSplit,
    Cadence,
    DueOccurrences,
    EqualSplit,
    ExactSplit,
    ExpensePayload,
    PersonAmount,
    RecurrenceFrequency,
    RecurringTemplate,
    SplitMethod,
    TaskPayload,
    TaskPriority,
    TaskStatus,
)
from household_ledger.recurrence import (
    advance,
    advance_template,
    due_occurrences,
    due_occurrences_for,
    expense_for_occurrence,
    task_for_occurrence,
    validate_template,
)
from household_ledger.validation import ValidationError


def _rent_template(**overrides):
    values = dict(
        id="tpl-rent",
        group_id="g1",
        cadence=Cadence(frequency=RecurrenceFrequency.MONTHLY),
        next_occurrence="2024-01-01",
        payload=ExpensePayload(
            description="Rent",
            amount=150001,
            payer_id="alice",
            policy=EqualSplit(participant_ids=["alice", "bob"]),
        ),
    )
    values.update(overrides)
    return RecurringTemplate(**values)


def _chore_template(**overrides):
    values = dict(
        id="tpl-trash",
        group_id="g1",
        cadence=Cadence(frequency=RecurrenceFrequency.WEEKLY),
        next_occurrence="2024-01-01",
        payload=TaskPayload(
            title="Take out trash",
            priority=TaskPriority.HIGH,
            assigned_to_person_id="bob",
        ),
    )
    values.update(overrides)
    return RecurringTemplate(**values)


class TestAdvance:
    """Tests for stepping one occurrence forward."""

    def test_daily_by_interval(self):
        """Daily steps add interval days."""
        assert advance("2024-01-01", "daily", 2) == "2024-01-03"

    def test_weekly(self):
        """Weekly steps add seven days per interval."""
        assert advance("2024-01-01", "weekly", 1) == "2024-01-08"
        assert advance("2024-01-01", RecurrenceFrequency.WEEKLY, 2) == "2024-01-15"

    def test_monthly_keeps_day(self):
        """Monthly steps keep the day of month."""
        assert advance("2024-01-15", "monthly", 1) == "2024-02-15"

    def test_monthly_crosses_year(self):
        """December rolls into January of the next year."""
        assert advance("2024-12-15", "monthly", 1) == "2025-01-15"
        assert advance("2024-11-30", "monthly", 3) == "2025-03-02"

    def test_monthly_overflow_rolls_forward(self):
        """Day 31 overflows into the following month."""
        assert advance("2024-01-31", "monthly", 1) == "2024-03-02"
        assert advance("2023-01-31", "monthly", 1) == "2023-03-03"

    def test_crosses_month_boundary(self):
        """Daily steps roll over month ends."""
        assert advance("2024-02-28", "daily", 2) == "2024-03-01"

    @pytest.mark.parametrize("interval", [0, -3])
    def test_interval_clamped_to_one(self, interval):
        """Intervals below one behave as one."""
        assert advance("2024-01-01", "daily", interval) == "2024-01-02"

    def test_always_strictly_later(self):
        """Advancing never returns the same or an earlier day."""
        for frequency in RecurrenceFrequency:
            assert advance("2024-01-31", frequency, 1) > "2024-01-31"

    def test_rejects_unknown_frequency(self):
        """Only the supported cadences are accepted."""
        with pytest.raises(ValueError):
            advance("2024-01-01", "yearly", 1)


class TestDueOccurrences:
    """Tests for catching a cursor up to today."""

    def test_weekly_up_to_today(self):
        """Every occurrence on or before today is emitted."""
        result = due_occurrences("2024-01-01", None, "weekly", 1, "2024-01-15")
        assert result == DueOccurrences(
            occurrences=["2024-01-01", "2024-01-08", "2024-01-15"],
            next_occurrence="2024-01-22",
            is_active=True,
        )

    def test_stops_at_end_date_and_retires(self):
        """Occurrences past the end date are not emitted and the template retires."""
        result = due_occurrences("2024-01-01", "2024-01-10", "weekly", 1, "2024-01-15")
        assert result.occurrences == ["2024-01-01", "2024-01-08"]
        assert result.is_active is False

    def test_retires_on_last_emitted_occurrence(self):
        """A template can emit its final occurrence and retire in one call."""
        result = due_occurrences("2024-01-08", "2024-01-10", "weekly", 1, "2024-01-20")
        assert result.occurrences == ["2024-01-08"]
        assert result.next_occurrence == "2024-01-15"
        assert result.is_active is False

    def test_end_date_is_inclusive(self):
        """An occurrence landing on the end date is emitted."""
        result = due_occurrences("2024-01-01", "2024-01-08", "weekly", 1, "2024-01-20")
        assert result.occurrences == ["2024-01-01", "2024-01-08"]

    def test_future_cursor_not_due(self):
        """Nothing is due before the cursor."""
        result = due_occurrences("2024-02-01", None, "monthly", 1, "2024-01-15")
        assert result.occurrences == []
        assert result.next_occurrence == "2024-02-01"
        assert result.is_active is True

    def test_cursor_past_end_date_reports_retired(self):
        """A cursor already beyond the end date is inactive with no output."""
        result = due_occurrences("2024-03-01", "2024-02-15", "monthly", 1, "2024-03-10")
        assert result.occurrences == []
        assert result.is_active is False

    def test_batch_limit_continues_cleanly(self):
        """A truncated catch-up resumes at the first unemitted date."""
        first = due_occurrences("2024-01-01", None, "daily", 1, "2024-01-31", max_batch=12)
        assert len(first.occurrences) == 12
        assert first.occurrences[-1] == "2024-01-12"
        assert first.next_occurrence == "2024-01-13"

        second = due_occurrences(first.next_occurrence, None, "daily", 1, "2024-01-31", max_batch=12)
        third = due_occurrences(second.next_occurrence, None, "daily", 1, "2024-01-31", max_batch=12)
        emitted = first.occurrences + second.occurrences + third.occurrences
        assert len(emitted) == 31
        assert len(set(emitted)) == 31
        assert third.next_occurrence == "2024-02-01"

    def test_one_catch_up_matches_daily_runs(self):
        """Catching up in one call equals running every day in between."""
        single = due_occurrences("2024-01-31", None, "monthly", 1, "2024-06-30")

        cursor, emitted = "2024-01-31", []
        for day in range(1, 182):
            today = advance("2024-01-01", "daily", day)
            step = due_occurrences(cursor, None, "monthly", 1, today)
            emitted.extend(step.occurrences)
            cursor = step.next_occurrence

        assert emitted == single.occurrences
        assert cursor == single.next_occurrence

    def test_rerun_with_advanced_cursor_emits_nothing(self):
        """Feeding the returned cursor back in on the same day is a no-op."""
        first = due_occurrences("2024-01-01", None, "weekly", 1, "2024-01-15")
        again = due_occurrences(first.next_occurrence, None, "weekly", 1, "2024-01-15")
        assert again.occurrences == []

    def test_occurrences_strictly_increasing(self):
        """Emitted dates are in ascending order and all within bounds."""
        result = due_occurrences("2024-01-31", "2024-12-31", "monthly", 1, "2024-12-31")
        assert result.occurrences == sorted(set(result.occurrences))
        assert all("2024-01-31" <= day <= "2024-12-31" for day in result.occurrences)

    def test_rejects_malformed_dates(self):
        """Non-ISO dates are rejected before any arithmetic."""
        with pytest.raises(ValueError):
            due_occurrences("01/01/2024", None, "daily", 1, "2024-01-15")


class TestTemplateHelpers:
    """Tests for applying the scheduler to stored templates."""

    def test_due_occurrences_for_template(self):
        """Template fields feed the scheduler."""
        due = due_occurrences_for(_chore_template(), "2024-01-15")
        assert due.occurrences == ["2024-01-01", "2024-01-08", "2024-01-15"]

    def test_inactive_template_never_fires(self):
        """Retired templates produce nothing and stay retired."""
        template = _chore_template(is_active=False)
        due = due_occurrences_for(template, "2024-06-01")
        assert due.occurrences == []
        assert due.is_active is False

    def test_advance_template_moves_cursor(self):
        """The cursor moves to the scheduler's next occurrence."""
        template = _chore_template()
        updated = advance_template(template, due_occurrences_for(template, "2024-01-15"))
        assert updated.next_occurrence == "2024-01-22"
        assert updated.is_active is True
        assert template.next_occurrence == "2024-01-01"

    def test_advance_template_never_moves_backwards(self):
        """A stale scheduler result cannot rewind the cursor."""
        template = _chore_template(next_occurrence="2024-03-01")
        stale = DueOccurrences(occurrences=[], next_occurrence="2024-01-01", is_active=True)
        assert advance_template(template, stale).next_occurrence == "2024-03-01"

    def test_advance_template_retires(self):
        """Passing the end date flips is_active."""
        template = _chore_template(end_date="2024-01-10")
        updated = advance_template(template, due_occurrences_for(template, "2024-01-20"))
        assert updated.is_active is False

    def test_expense_for_occurrence(self):
        """Generated expenses are dated at the occurrence and fully split."""
        expense, lines = expense_for_occurrence(_rent_template(), "2024-02-01", "exp-9")
        assert expense.expense_id == "exp-9"
        assert expense.expense_date == "2024-02-01"
        assert expense.recurring_template_id == "tpl-rent"
        assert expense.split_method == SplitMethod.EQUAL
        assert expense.payer_id == "alice"
        assert [(line.person_id, line.amount_owed) for line in lines] == [
            ("alice", 75001), ("bob", 75000),
        ]

    def test_task_for_occurrence(self):
        """Generated tasks copy the payload and are due at the occurrence."""
        task = task_for_occurrence(_chore_template(), "2024-01-08", "task-1")
        assert task.title == "Take out trash"
        assert task.due_date == "2024-01-08"
        assert task.priority == TaskPriority.HIGH
        assert task.status == TaskStatus.TODO
        assert task.assigned_to_person_id == "bob"
        assert task.recurring_template_id == "tpl-trash"

    def test_wrong_payload_kind(self):
        """Asking a task template for an expense is a programming error."""
        with pytest.raises(TypeError):
            expense_for_occurrence(_chore_template(), "2024-01-08", "exp-1")
        with pytest.raises(TypeError):
            task_for_occurrence(_rent_template(), "2024-01-08", "task-1")


class TestValidateTemplate:
    """Tests for creation-time template checks."""

    def test_valid_templates_pass(self):
        """Well-formed templates raise nothing."""
        validate_template(_rent_template())
        validate_template(_chore_template(end_date="2024-06-30"))

    def test_end_before_start_rejected(self):
        """The end date may not precede the first occurrence."""
        with pytest.raises(ValidationError, match="end date before first occurrence"):
            validate_template(_chore_template(end_date="2023-12-31"))

    def test_invalid_split_rejected(self):
        """An expense template whose split can never reconcile is rejected."""
        template = _rent_template(payload=ExpensePayload(
            description="Internet",
            amount=6000,
            payer_id="alice",
            policy=ExactSplit(amounts=[PersonAmount(person_id="bob", amount=5000)]),
        ))
        with pytest.raises(ValidationError, match="total mismatch"):
            validate_template(template)

    def test_adjustment_must_target_payer(self):
        """Adjustment templates must reimburse their own payer."""
        template = _rent_template(payload=ExpensePayload(
            description="Car payment",
            amount=30000,
            payer_id="alice",
            policy=AdjustmentSplit(from_person_id="bob", to_person_id="carol"),
        ))
        with pytest.raises(ValidationError):
            validate_template(template)

    def test_interval_must_be_positive(self):
        """Stored cadences require an interval of at least one."""
        with pytest.raises(ValueError):
            Cadence(frequency=RecurrenceFrequency.DAILY, interval=0)
