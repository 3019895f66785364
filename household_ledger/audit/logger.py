"""
Audit Logger

DESIGN DECISION: Every ledger write and every recurring-generation run is
logged. This provides:
1. Complete traceability of who owes what and why
2. Debugging capability when a balance looks wrong
3. Visibility into templates that failed or retired

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from household_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from household_ledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root logger at ``log_level``.

    structlog filters by the stdlib level, so this is the one switch for
    how chatty the ledger is.
    """
    logging.basicConfig(format="%(message)s", level=log_level)
    logging.getLogger().setLevel(log_level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("household_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity is AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity is AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Audit persistence must never fail the ledger write it describes
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_recorded(
        self,
        group_id: str,
        expense_id: str,
        total_amount: int,
        split_method: str,
        line_count: int,
        correlation_id: Optional[UUID] = None,
        replaced: bool = False,
    ) -> None:
        """Log a new or replaced expense."""
        event = AuditEventBuilder.expense_recorded(
            group_id=group_id,
            expense_id=expense_id,
            total_amount=total_amount,
            split_method=split_method,
            line_count=line_count,
            correlation_id=correlation_id,
            replaced=replaced,
        )
        await self.log(event)

    async def log_split_rejected(
        self,
        group_id: str,
        split_method: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a split the calculator refused."""
        event = AuditEventBuilder.split_rejected(
            group_id=group_id,
            split_method=split_method,
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_settlement_recorded(
        self,
        group_id: str,
        from_person_id: str,
        to_person_id: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.settlement_recorded(
            group_id=group_id,
            from_person_id=from_person_id,
            to_person_id=to_person_id,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_occurrences_generated(
        self,
        group_id: str,
        template_id: str,
        occurrences: list[str],
        next_occurrence: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.occurrences_generated(
            group_id=group_id,
            template_id=template_id,
            occurrences=occurrences,
            next_occurrence=next_occurrence,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_template_retired(
        self,
        group_id: str,
        template_id: str,
        next_occurrence: str,
        end_date: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.template_retired(
            group_id=group_id,
            template_id=template_id,
            next_occurrence=next_occurrence,
            end_date=end_date,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_generation_failed(
        self,
        group_id: str,
        template_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a template that could not be processed this run."""
        event = AuditEventBuilder.generation_failed(
            group_id=group_id,
            template_id=template_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_balances_computed(
        self,
        group_id: str,
        view: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.balances_computed(
            group_id=group_id,
            view=view,
            row_count=row_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log storage backend error."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            group_id=group_id,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g. recording an expense
    or one recurring-generation run). Pass it through all subsequent
    operations.
    """
    return uuid4()
