"""
Main Orchestrator for Household Ledger

This module ties the pure ledger core to storage and defines the
end-to-end flows for:
1. Expense entry (policy -> split lines -> one storage write)
2. Settlements (validate -> one storage write)
3. Balances (one consistent snapshot -> aggregator)
4. Recurring generation (templates -> due occurrences -> records + cursor,
   committed atomically per template)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Split lines are always computed here, never accepted from the caller
- An expense and its split lines are written together or not at all
- Generated records and the advanced template cursor are committed together
- Every write is audited

The pure core never reads settings or clocks; the values it needs
("today", batch size, tolerance) are passed in from here.
"""

from typing import Callable, Optional
from uuid import UUID, uuid4

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from household_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from household_ledger.balances import (
    compute_balances_from_snapshot,
    compute_pairwise_from_snapshot,
)
from household_ledger.config import LedgerSettings, get_settings
from household_ledger.models.ledger import (
    BalanceRow,
    ExpenseRecord,
    PairwiseBalanceRow,
    SettlementRecord,
    SplitLine,
    SplitPolicy,
)
from household_ledger.models.recurring import (
    GenerationReport,
    RecurringTemplate,
    TaskRecord,
)
from household_ledger.recurrence import (
    advance_template,
    due_occurrences_for,
    expense_for_occurrence,
    task_for_occurrence,
    validate_template,
)
from household_ledger.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)
from household_ledger.splits import build_split_lines
from household_ledger.validation import ValidationError


def _new_id() -> str:
    return str(uuid4())


class ExpenseEntryFlow:
    """
    Orchestrates expense entry and edits.

    Flow:
    1. Compute split lines from the policy (rejects invalid splits)
    2. Build the ExpenseRecord
    3. Persist expense + lines in ONE storage call
    4. Audit

    Edits never patch individual lines: all lines are recomputed from the
    new policy and replaced wholesale.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._storage = storage
        self._settings = settings or get_settings().ledger
        self._audit_logger = audit_logger
        self._id_factory = id_factory

    async def record_expense(
        self,
        group_id: str,
        payer_id: str,
        total_amount: int,
        policy: SplitPolicy,
        description: str,
        expense_date: str,
        currency: Optional[str] = None,
        category_id: Optional[str] = None,
        notes: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ExpenseRecord, list[SplitLine]]:
        """
        Record a new expense.

        Returns:
            (expense, split_lines) as persisted

        Raises:
            ValidationError: If the split is invalid (nothing is written)
        """
        correlation_id = correlation_id or create_correlation_id()
        expense_id = self._id_factory()

        lines = await self._split(
            group_id, expense_id, total_amount, policy, payer_id, correlation_id,
        )
        expense = ExpenseRecord(
            expense_id=expense_id,
            payer_id=payer_id,
            total_amount=total_amount,
            group_id=group_id,
            description=description,
            currency=currency or self._settings.default_currency,
            expense_date=expense_date,
            split_method=policy.method,
            category_id=category_id,
            notes=notes,
        )

        await self._storage.save_expense(expense, lines)

        if self._audit_logger:
            await self._audit_logger.log_expense_recorded(
                group_id=group_id,
                expense_id=expense_id,
                total_amount=total_amount,
                split_method=policy.method.value,
                line_count=len(lines),
                correlation_id=correlation_id,
            )

        return expense, lines

    async def replace_expense(
        self,
        expense: ExpenseRecord,
        policy: SplitPolicy,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[ExpenseRecord, list[SplitLine]]:
        """
        Apply an edited expense: recompute ALL lines and replace them.

        Args:
            expense: The edited expense (same expense_id as the stored one)
            policy: The split policy to apply to the edited total

        Raises:
            ValidationError: If the new split is invalid (nothing is written)
            NotFoundError: If the expense doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        lines = await self._split(
            expense.group_id,
            expense.expense_id,
            expense.total_amount,
            policy,
            expense.payer_id,
            correlation_id,
        )
        updated = expense.model_copy(update={"split_method": policy.method})

        await self._storage.replace_expense(updated, lines)

        if self._audit_logger:
            await self._audit_logger.log_expense_recorded(
                group_id=updated.group_id,
                expense_id=updated.expense_id,
                total_amount=updated.total_amount,
                split_method=policy.method.value,
                line_count=len(lines),
                correlation_id=correlation_id,
                replaced=True,
            )

        return updated, lines

    async def _split(
        self,
        group_id: str,
        expense_id: str,
        total_amount: int,
        policy: SplitPolicy,
        payer_id: str,
        correlation_id: UUID,
    ) -> list[SplitLine]:
        try:
            return build_split_lines(
                expense_id,
                total_amount,
                policy,
                payer_id=payer_id,
                tolerance=self._settings.percentage_tolerance,
            )
        except ValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_split_rejected(
                    group_id=group_id,
                    split_method=policy.method.value,
                    reason=e.reason,
                    correlation_id=correlation_id,
                )
            raise


class SettlementFlow:
    """Records direct payments between two people."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def record_settlement(
        self,
        group_id: str,
        from_person_id: str,
        to_person_id: str,
        amount: int,
        settled_at: Optional[str] = None,
        payment_method: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SettlementRecord:
        """
        Record that ``from_person_id`` paid ``to_person_id``.

        Raises:
            ValidationError: For a self-settlement or a non-positive amount
        """
        if from_person_id == to_person_id:
            raise ValidationError(
                "settlement requires two different people", person_id=from_person_id
            )
        if amount <= 0:
            raise ValidationError("settlement amount must be positive")

        correlation_id = correlation_id or create_correlation_id()
        settlement = SettlementRecord(
            from_person_id=from_person_id,
            to_person_id=to_person_id,
            amount=amount,
            settled_at=settled_at,
            payment_method=payment_method,
        )

        await self._storage.save_settlement(group_id, settlement)

        if self._audit_logger:
            await self._audit_logger.log_settlement_recorded(
                group_id=group_id,
                from_person_id=from_person_id,
                to_person_id=to_person_id,
                amount=amount,
                correlation_id=correlation_id,
            )

        return settlement


class BalanceFlow:
    """
    Reads one consistent snapshot and runs the aggregator over it.

    Nothing is cached: balances are recomputed from ledger state on every
    call.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    async def net_balances(
        self,
        group_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[BalanceRow]:
        snapshot = await self._storage.load_snapshot(group_id)
        rows = compute_balances_from_snapshot(snapshot)

        if self._audit_logger:
            await self._audit_logger.log_balances_computed(
                group_id=group_id,
                view="net",
                row_count=len(rows),
                correlation_id=correlation_id,
            )
        return rows

    async def pairwise_balances(
        self,
        group_id: str,
        current_person_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[PairwiseBalanceRow]:
        snapshot = await self._storage.load_snapshot(group_id)
        rows = compute_pairwise_from_snapshot(current_person_id, snapshot)

        if self._audit_logger:
            await self._audit_logger.log_balances_computed(
                group_id=group_id,
                view="pairwise",
                row_count=len(rows),
                correlation_id=correlation_id,
            )
        return rows


class RecurringGenerationFlow:
    """
    Orchestrates recurring generation (the periodic catch-up job).

    Flow, per active template:
    1. Compute due occurrences up to ``today`` (bounded batch)
    2. Build one expense (with split lines) or one task per occurrence,
       dated at the occurrence
    3. Commit the records AND the advanced template in ONE storage call

    CRITICAL: Step 3 is the only write. If it fails nothing was written and
    the next run regenerates the same occurrences. If it succeeds the cursor
    has moved, so the same occurrences are never generated twice.

    One bad template never stops the batch: it is reported and skipped.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        id_factory: Callable[[], str] = _new_id,
        retry_wait: Optional[wait_base] = None,
    ):
        self._storage = storage
        self._settings = settings or get_settings().ledger
        self._audit_logger = audit_logger
        self._id_factory = id_factory
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    async def create_template(self, template: RecurringTemplate) -> RecurringTemplate:
        """
        Validate and store a new template.

        Raises:
            ValidationError: If the template could never generate valid records
        """
        validate_template(template, tolerance=self._settings.percentage_tolerance)
        await self._storage.save_template(template)
        return template

    async def generate_due(
        self,
        group_id: str,
        today: str,
        correlation_id: Optional[UUID] = None,
    ) -> GenerationReport:
        """
        Catch every active template in ``group_id`` up to ``today``.

        Returns:
            GenerationReport with created counts, retired and failed templates
        """
        correlation_id = correlation_id or create_correlation_id()
        report = GenerationReport(group_id=group_id, run_date=today)

        templates = await self._storage.list_recurring_templates(group_id, active_only=True)
        for template in templates:
            await self._process_template(template, today, report, correlation_id)

        return report

    async def _process_template(
        self,
        template: RecurringTemplate,
        today: str,
        report: GenerationReport,
        correlation_id: UUID,
    ) -> None:
        due = due_occurrences_for(template, today, self._settings.max_catch_up_batch)
        updated = advance_template(template, due)
        if not due.occurrences and updated == template:
            return

        expenses: list[tuple[ExpenseRecord, list[SplitLine]]] = []
        tasks: list[TaskRecord] = []
        try:
            for occurrence in due.occurrences:
                if template.is_expense:
                    expenses.append(expense_for_occurrence(
                        template,
                        occurrence,
                        self._id_factory(),
                        tolerance=self._settings.percentage_tolerance,
                    ))
                else:
                    tasks.append(task_for_occurrence(template, occurrence, self._id_factory()))

            await self._commit(updated, template.next_occurrence, expenses, tasks)
        except ValidationError as e:
            await self._report_failure(template, str(e), report, correlation_id)
            return
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="commit_recurring_generation",
                    error_message=str(e),
                    group_id=template.group_id,
                    correlation_id=correlation_id,
                )
            await self._report_failure(template, str(e), report, correlation_id)
            return

        report.expenses_created += len(expenses)
        report.tasks_created += len(tasks)

        if self._audit_logger and due.occurrences:
            await self._audit_logger.log_occurrences_generated(
                group_id=template.group_id,
                template_id=template.id,
                occurrences=list(due.occurrences),
                next_occurrence=updated.next_occurrence,
                correlation_id=correlation_id,
            )

        if template.is_active and not updated.is_active:
            report.retired_template_ids.append(template.id)
            if self._audit_logger:
                await self._audit_logger.log_template_retired(
                    group_id=template.group_id,
                    template_id=template.id,
                    next_occurrence=updated.next_occurrence,
                    end_date=template.end_date,
                    correlation_id=correlation_id,
                )

    async def _commit(
        self,
        template: RecurringTemplate,
        expected_next_occurrence: str,
        expenses: list[tuple[ExpenseRecord, list[SplitLine]]],
        tasks: list[TaskRecord],
    ) -> None:
        """Atomic commit, retried on transient connection failures only."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.commit_retry_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(ConnectionError),
            reraise=True,
        ):
            with attempt:
                await self._storage.commit_recurring_generation(
                    template, expected_next_occurrence, expenses, tasks,
                )

    async def _report_failure(
        self,
        template: RecurringTemplate,
        error_message: str,
        report: GenerationReport,
        correlation_id: UUID,
    ) -> None:
        report.failed_template_ids.append(template.id)
        if self._audit_logger:
            await self._audit_logger.log_generation_failed(
                group_id=template.group_id,
                template_id=template.id,
                error_message=error_message,
                correlation_id=correlation_id,
            )


def create_app_components(
    storage: Optional[LedgerStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[ExpenseEntryFlow, SettlementFlow, BalanceFlow, RecurringGenerationFlow]:
    """
    Factory function to create all application components.

    Args:
        storage: Ledger storage backend. Defaults to in-memory storage.
        audit_storage: Audit sink. Defaults to in-memory storage.

    Returns:
        (expense_entry_flow, settlement_flow, balance_flow, recurring_generation_flow)
    """
    settings = get_settings()
    configure_logging(settings.app.effective_log_level)
    ledger_settings = settings.ledger

    storage = storage or InMemoryLedgerStorage()
    audit_logger = AuditLogger(audit_storage or InMemoryAuditStorage())

    expense_flow = ExpenseEntryFlow(
        storage=storage,
        settings=ledger_settings,
        audit_logger=audit_logger,
    )
    settlement_flow = SettlementFlow(storage=storage, audit_logger=audit_logger)
    balance_flow = BalanceFlow(storage=storage, audit_logger=audit_logger)
    recurring_flow = RecurringGenerationFlow(
        storage=storage,
        settings=ledger_settings,
        audit_logger=audit_logger,
    )

    return expense_flow, settlement_flow, balance_flow, recurring_flow
