"""
Audit Models for Household Ledger

Every significant ledger action is recorded as an audit event.
This provides:
1. Traceability of generated expenses and tasks
2. Debugging information when recurring generation misbehaves
3. Visibility of rejected split requests

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Expenses
    EXPENSE_RECORDED = "expense_recorded"
    EXPENSE_REPLACED = "expense_replaced"
    SPLIT_REJECTED = "split_rejected"

    # Settlements
    SETTLEMENT_RECORDED = "settlement_recorded"

    # Recurring generation
    RECURRING_OCCURRENCE_GENERATED = "recurring_occurrence_generated"
    RECURRING_TEMPLATE_RETIRED = "recurring_template_retired"
    RECURRING_GENERATION_FAILED = "recurring_generation_failed"

    # Balances
    BALANCES_COMPUTED = "balances_computed"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    group_id: Optional[str] = None
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'template', 'settlement')"
    )
    entity_id: Optional[str] = None

    # Correlation - for tracking related events (e.g. one generation run)
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "group_id": self.group_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_row(self) -> list[str]:
        """
        Flatten to a row of strings for tabular audit sinks.

        Columns: [event_id, timestamp, event_type, severity, group_id,
        entity_type, entity_id, correlation_id, description, details_json,
        error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.group_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, sort_keys=True) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_recorded(group_id, expense_id, 1000, "equal", 3)
        event = AuditEventBuilder.template_retired(group_id, template_id, cursor, end_date)
    """

    @staticmethod
    def expense_recorded(
        group_id: str,
        expense_id: str,
        total_amount: int,
        split_method: str,
        line_count: int,
        correlation_id: Optional[UUID] = None,
        replaced: bool = False,
    ) -> AuditEvent:
        verb = "replaced" if replaced else "recorded"
        return AuditEvent(
            event_type=(
                AuditEventType.EXPENSE_REPLACED if replaced
                else AuditEventType.EXPENSE_RECORDED
            ),
            group_id=group_id,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense {verb}: {total_amount} split {split_method} across {line_count}",
            details={
                "total_amount": total_amount,
                "split_method": split_method,
                "line_count": line_count,
            },
        )

    @staticmethod
    def split_rejected(
        group_id: str,
        split_method: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SPLIT_REJECTED,
            severity=AuditSeverity.WARNING,
            group_id=group_id,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Split rejected ({split_method}): {reason}",
            details={"split_method": split_method, "reason": reason},
        )

    @staticmethod
    def settlement_recorded(
        group_id: str,
        from_person_id: str,
        to_person_id: str,
        amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            group_id=group_id,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=f"Settlement recorded: {from_person_id} paid {to_person_id} {amount}",
            details={
                "from_person_id": from_person_id,
                "to_person_id": to_person_id,
                "amount": amount,
            },
        )

    @staticmethod
    def occurrences_generated(
        group_id: str,
        template_id: str,
        occurrences: list[str],
        next_occurrence: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_OCCURRENCE_GENERATED,
            group_id=group_id,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Generated {len(occurrences)} occurrence(s) from template {template_id}",
            details={
                "occurrences": occurrences,
                "next_occurrence": next_occurrence,
            },
        )

    @staticmethod
    def template_retired(
        group_id: str,
        template_id: str,
        next_occurrence: str,
        end_date: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_TEMPLATE_RETIRED,
            group_id=group_id,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Template {template_id} retired - cursor passed end date",
            details={"next_occurrence": next_occurrence, "end_date": end_date},
        )

    @staticmethod
    def generation_failed(
        group_id: str,
        template_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_GENERATION_FAILED,
            severity=AuditSeverity.ERROR,
            group_id=group_id,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Recurring generation failed for template {template_id}",
            error_message=error_message,
        )

    @staticmethod
    def balances_computed(
        group_id: str,
        view: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCES_COMPUTED,
            severity=AuditSeverity.DEBUG,
            group_id=group_id,
            entity_type="balances",
            correlation_id=correlation_id,
            description=f"Computed {view} balances ({row_count} rows)",
            details={"view": view, "row_count": row_count},
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        group_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            group_id=group_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
