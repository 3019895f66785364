"""
Tests for Household Ledger models

Test strategy:
1. Unit tests for individual components (models, calculators, scheduler)
2. Integration tests for flows (against in-memory storage)
3. No real backend calls in tests
"""

import pytest
from uuid import uuid4

from pydantic import TypeAdapter

from household_ledger.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Cadence,
    EqualSplit,
    ExactSplit,
    ExpensePayload,
    ExpenseRecord,
    GenerationReport,
    LedgerSnapshot,
    PercentageSplit,
    Person,
    PersonPercentage,
    PersonShares,
    RecurrenceFrequency,
    RecurringTemplate,
    SettlementRecord,
    SplitLine,
    SplitMethod,
    SplitPolicy,
    TaskPayload,
)


class TestLedgerModels:
    """Tests for ledger Pydantic models."""

    def test_person_placeholder(self):
        """People need not be linked to a login."""
        person = Person(id="p1", display_name="  Alex  ")
        assert person.display_name == "Alex"
        assert person.linked_account_id is None

    def test_person_is_immutable(self):
        """Records are frozen value objects."""
        person = Person(id="p1", display_name="Alex")
        with pytest.raises(ValueError):
            person.display_name = "Sam"

    def test_split_line_rejects_negative_amount(self):
        """Owed amounts are never negative."""
        with pytest.raises(ValueError):
            SplitLine(expense_id="e1", person_id="p1", amount_owed=-1)

    def test_settlement_requires_positive_amount(self):
        """A zero settlement is meaningless."""
        with pytest.raises(ValueError):
            SettlementRecord(from_person_id="p1", to_person_id="p2", amount=0)

    def test_expense_record_date_must_be_iso(self):
        """Expense dates are canonical ISO calendar days."""
        with pytest.raises(ValueError):
            ExpenseRecord(
                expense_id="e1",
                payer_id="p1",
                total_amount=100,
                group_id="g1",
                description="Groceries",
                expense_date="2024-1-5",
                split_method=SplitMethod.EQUAL,
            )

    def test_expense_record_as_obligation(self):
        """The ledger core only needs the obligation part."""
        expense = ExpenseRecord(
            expense_id="e1",
            payer_id="p1",
            total_amount=100,
            group_id="g1",
            description="Groceries",
            expense_date="2024-01-05",
            split_method=SplitMethod.EQUAL,
        )
        obligation = expense.as_obligation()
        assert (obligation.expense_id, obligation.payer_id, obligation.total_amount) == (
            "e1", "p1", 100,
        )

    @pytest.mark.parametrize("bad", [float("nan"), float("inf")])
    def test_split_weights_must_be_finite(self, bad):
        """Percentages and share counts reject NaN and infinity."""
        with pytest.raises(ValueError):
            PersonPercentage(person_id="p1", percentage=bad)
        with pytest.raises(ValueError):
            PersonShares(person_id="p1", shares=bad)

    def test_empty_snapshot_defaults(self):
        """A new group's snapshot is four empty lists."""
        snapshot = LedgerSnapshot()
        assert snapshot.people == []
        assert snapshot.settlements == []


class TestSplitPolicyUnion:
    """Tests for the tagged split-policy union."""

    def test_parses_by_method_tag(self):
        """Raw input resolves to the variant named by ``method``."""
        adapter = TypeAdapter(SplitPolicy)
        policy = adapter.validate_python({
            "method": "percentage",
            "percentages": [{"person_id": "a", "percentage": 100}],
        })
        assert isinstance(policy, PercentageSplit)

    def test_exact_requires_amounts(self):
        """An exact split cannot be built without its amounts."""
        with pytest.raises(ValueError):
            TypeAdapter(SplitPolicy).validate_python({"method": "exact"})

    def test_equal_rejects_leftover_fields(self):
        """An equal split cannot carry percentage data."""
        with pytest.raises(ValueError):
            EqualSplit(participant_ids=["a"], percentages=[])

    def test_unknown_method_rejected(self):
        """Only the five methods exist."""
        with pytest.raises(ValueError):
            TypeAdapter(SplitPolicy).validate_python({"method": "random"})

    def test_exact_split_round_trips_json(self):
        """Policies serialize with their tag."""
        policy = ExactSplit(amounts=[{"person_id": "a", "amount": 5}])
        data = policy.model_dump(mode="json")
        assert data["method"] == "exact"
        assert TypeAdapter(SplitPolicy).validate_python(data) == policy


class TestRecurringModels:
    """Tests for recurring template models."""

    def test_payload_resolved_by_kind(self):
        """Template payloads are discriminated by ``kind``."""
        template = RecurringTemplate.model_validate({
            "id": "t1",
            "group_id": "g1",
            "cadence": {"frequency": "weekly", "interval": 2},
            "next_occurrence": "2024-01-01",
            "payload": {"kind": "task", "title": "Vacuum"},
        })
        assert isinstance(template.payload, TaskPayload)
        assert template.is_expense is False
        assert template.cadence.frequency == RecurrenceFrequency.WEEKLY

    def test_expense_payload_carries_policy(self):
        """Expense payloads embed a full split policy."""
        template = RecurringTemplate(
            id="t1",
            group_id="g1",
            cadence=Cadence(frequency=RecurrenceFrequency.MONTHLY),
            next_occurrence="2024-01-01",
            payload=ExpensePayload(
                description="Rent",
                amount=100000,
                payer_id="p1",
                policy={"method": "equal", "participant_ids": ["p1", "p2"]},
            ),
        )
        assert template.is_expense is True
        assert isinstance(template.payload.policy, EqualSplit)

    def test_generation_report_totals(self):
        """Report counts add up."""
        report = GenerationReport(group_id="g1", run_date="2024-01-01", expenses_created=2, tasks_created=3)
        assert report.records_created == 5


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            description="Test settlement",
        )
        assert event.event_type == AuditEventType.SETTLEMENT_RECORDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_RECORDED,
            description="Expense recorded",
            details={"total_amount": 1000},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_recorded"
        assert log_dict["details"]["total_amount"] == 1000

    def test_audit_event_to_row(self):
        """Test conversion to a tabular row."""
        event = AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            description="Storage error",
            error_message="timeout",
        )
        row = event.to_row()
        assert len(row) == 11
        assert row[2] == "storage_error"
        assert row[10] == "timeout"

    def test_builder_expense_replaced(self):
        """Replacing an expense uses its own event type."""
        correlation_id = uuid4()
        event = AuditEventBuilder.expense_recorded(
            group_id="g1",
            expense_id="e1",
            total_amount=1000,
            split_method="equal",
            line_count=2,
            correlation_id=correlation_id,
            replaced=True,
        )
        assert event.event_type == AuditEventType.EXPENSE_REPLACED
        assert event.entity_id == "e1"
        assert event.correlation_id == correlation_id

    def test_builder_generation_failed_is_error(self):
        """Failed generation is logged at error severity."""
        event = AuditEventBuilder.generation_failed("g1", "t1", "total mismatch")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "total mismatch"
