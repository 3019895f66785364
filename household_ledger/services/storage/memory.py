"""
In-Memory Storage Implementation

Backs the storage interfaces with plain dictionaries. Used by the test
suite and for local tooling; every write validates first and mutates
second, so a failed call leaves nothing behind (the same all-or-nothing
behaviour a transactional backend gives).
"""

from collections import defaultdict
from typing import Optional
from uuid import UUID

from household_ledger.models.audit import AuditEvent
from household_ledger.models.ledger import (
    ExpenseRecord,
    LedgerSnapshot,
    Person,
    SettlementRecord,
    SplitLine,
)
from household_ledger.models.recurring import RecurringTemplate, TaskRecord
from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StaleTemplateError,
    StorageError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dictionary-backed ledger storage."""

    def __init__(self):
        self._people: dict[str, list[Person]] = defaultdict(list)
        self._expenses: dict[str, ExpenseRecord] = {}
        self._split_lines: dict[str, list[SplitLine]] = {}
        self._settlements: dict[str, list[SettlementRecord]] = defaultdict(list)
        self._templates: dict[str, RecurringTemplate] = {}
        self._tasks: dict[str, TaskRecord] = {}

    # -------------------------------------------------------------------------
    # Seeding and inspection helpers (not part of the interface)
    # -------------------------------------------------------------------------

    def add_people(self, group_id: str, people: list[Person]) -> None:
        self._people[group_id].extend(people)

    def expenses_for(self, group_id: str) -> list[ExpenseRecord]:
        return [e for e in self._expenses.values() if e.group_id == group_id]

    def split_lines_for(self, expense_id: str) -> list[SplitLine]:
        return list(self._split_lines.get(expense_id, []))

    def tasks_for(self, group_id: str) -> list[TaskRecord]:
        return [t for t in self._tasks.values() if t.group_id == group_id]

    def template(self, template_id: str) -> RecurringTemplate:
        if template_id not in self._templates:
            raise NotFoundError(f"Template not found: {template_id}")
        return self._templates[template_id]

    # -------------------------------------------------------------------------
    # LedgerStorageInterface
    # -------------------------------------------------------------------------

    async def load_snapshot(self, group_id: str) -> LedgerSnapshot:
        expenses = self.expenses_for(group_id)
        lines = [
            line
            for expense in expenses
            for line in self._split_lines.get(expense.expense_id, [])
        ]
        return LedgerSnapshot(
            people=list(self._people.get(group_id, [])),
            expenses=expenses,
            split_lines=lines,
            settlements=list(self._settlements.get(group_id, [])),
        )

    async def save_expense(
        self,
        expense: ExpenseRecord,
        split_lines: list[SplitLine],
    ) -> None:
        self._check_new_expenses([(expense, split_lines)])
        self._insert_expense(expense, split_lines)

    async def replace_expense(
        self,
        expense: ExpenseRecord,
        split_lines: list[SplitLine],
    ) -> None:
        if expense.expense_id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense.expense_id}")
        self._check_lines(expense, split_lines)
        self._expenses[expense.expense_id] = expense
        self._split_lines[expense.expense_id] = list(split_lines)

    async def save_settlement(
        self,
        group_id: str,
        settlement: SettlementRecord,
    ) -> None:
        self._settlements[group_id].append(settlement)

    async def save_template(self, template: RecurringTemplate) -> None:
        self._templates[template.id] = template

    async def list_recurring_templates(
        self,
        group_id: str,
        active_only: bool = True,
    ) -> list[RecurringTemplate]:
        templates = [
            t for t in self._templates.values()
            if t.group_id == group_id and (t.is_active or not active_only)
        ]
        return sorted(templates, key=lambda t: t.next_occurrence)

    async def commit_recurring_generation(
        self,
        template: RecurringTemplate,
        expected_next_occurrence: str,
        expenses: list[tuple[ExpenseRecord, list[SplitLine]]],
        tasks: list[TaskRecord],
    ) -> None:
        stored = self.template(template.id)
        if stored.next_occurrence != expected_next_occurrence:
            raise StaleTemplateError(
                f"Template {template.id} moved to {stored.next_occurrence}, "
                f"expected {expected_next_occurrence}"
            )
        self._check_new_expenses(expenses)
        for task in tasks:
            if task.id in self._tasks:
                raise DuplicateError(f"Task already exists: {task.id}")

        for expense, lines in expenses:
            self._insert_expense(expense, lines)
        for task in tasks:
            self._tasks[task.id] = task
        self._templates[template.id] = template

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _check_new_expenses(
        self,
        expenses: list[tuple[ExpenseRecord, list[SplitLine]]],
    ) -> None:
        for expense, lines in expenses:
            if expense.expense_id in self._expenses:
                raise DuplicateError(f"Expense already exists: {expense.expense_id}")
            self._check_lines(expense, lines)

    def _check_lines(self, expense: ExpenseRecord, lines: list[SplitLine]) -> None:
        if any(line.expense_id != expense.expense_id for line in lines):
            raise StorageError(f"Split lines do not belong to expense {expense.expense_id}")
        if sum(line.amount_owed for line in lines) != expense.total_amount:
            raise StorageError(
                f"Split lines for expense {expense.expense_id} do not sum to its total"
            )

    def _insert_expense(self, expense: ExpenseRecord, lines: list[SplitLine]) -> None:
        self._expenses[expense.expense_id] = expense
        self._split_lines[expense.expense_id] = list(lines)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
        group_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        events = [
            e for e in reversed(self._events)
            if group_id is None or e.group_id == group_id
        ]
        return events[:limit]
