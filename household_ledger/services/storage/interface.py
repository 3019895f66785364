"""
Abstract Storage Interface

DESIGN DECISION: The ledger core never talks to a database. Callers use
this interface to read snapshots and persist computed records. This allows
us to:
1. Back the app with any backend-as-a-service or SQL database
2. Use in-memory storage for testing
3. Keep the ledger core pure and backend-agnostic

Two contracts matter for correctness:
- ``load_snapshot`` returns people, expenses, split lines and settlements
  from ONE consistent read (e.g. a single transaction).
- ``commit_recurring_generation`` persists generated records AND the
  advanced template cursor atomically, so a crash in between cannot cause
  duplicate generation on retry.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from household_ledger.models.audit import AuditEvent
from household_ledger.models.ledger import (
    ExpenseRecord,
    LedgerSnapshot,
    SettlementRecord,
    SplitLine,
)
from household_ledger.models.recurring import RecurringTemplate, TaskRecord


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def load_snapshot(self, group_id: str) -> LedgerSnapshot:
        """
        Read a group's people, expenses, split lines and settlements.

        Must be causally consistent: all four lists from one read.
        An unknown group yields an empty snapshot.
        """
        pass

    @abstractmethod
    async def save_expense(
        self,
        expense: ExpenseRecord,
        split_lines: list[SplitLine],
    ) -> None:
        """
        Insert an expense together with its split lines.

        Raises:
            DuplicateError: If the expense id already exists
            StorageError: If the write fails (nothing is written)
        """
        pass

    @abstractmethod
    async def replace_expense(
        self,
        expense: ExpenseRecord,
        split_lines: list[SplitLine],
    ) -> None:
        """
        Update an expense and replace ALL of its split lines.

        Lines are deleted wholesale and reinserted, never patched.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def save_settlement(
        self,
        group_id: str,
        settlement: SettlementRecord,
    ) -> None:
        """Insert a settlement record."""
        pass

    @abstractmethod
    async def save_template(self, template: RecurringTemplate) -> None:
        """Insert or overwrite a recurring template."""
        pass

    @abstractmethod
    async def list_recurring_templates(
        self,
        group_id: str,
        active_only: bool = True,
    ) -> list[RecurringTemplate]:
        """
        List a group's recurring templates.

        Returns:
            Templates ordered by next occurrence (earliest first)
        """
        pass

    @abstractmethod
    async def commit_recurring_generation(
        self,
        template: RecurringTemplate,
        expected_next_occurrence: str,
        expenses: list[tuple[ExpenseRecord, list[SplitLine]]],
        tasks: list[TaskRecord],
    ) -> None:
        """
        Atomically persist generated records and the advanced template.

        Args:
            template: The template with its advanced cursor/active flag
            expected_next_occurrence: The cursor the caller read; the write
                is rejected if the stored cursor has moved since
            expenses: Generated expenses with their split lines
            tasks: Generated tasks

        Raises:
            StaleTemplateError: If another run already advanced the template
            ConnectionError: Transient backend failure (nothing is written)
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events for one correlation id, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        group_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """Most recent events (newest first), optionally for one group."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StaleTemplateError(StorageError):
    """The template cursor moved since it was read."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
