"""
Data Models Package

This package contains all Pydantic models used by the ledger core.
All data flowing in and out of the core must conform to these schemas.
"""

from household_ledger.models.ledger import (
    AdjustmentSplit,
    BalanceRow,
    EqualSplit,
    ExactSplit,
    ExpenseObligation,
    ExpenseRecord,
    IsoDateString,
    LedgerSnapshot,
    PairwiseBalanceRow,
    PercentageSplit,
    Person,
    PersonAmount,
    PersonPercentage,
    PersonShares,
    SettlementRecord,
    SharesSplit,
    SplitLine,
    SplitMethod,
    SplitPolicy,
)
from household_ledger.models.recurring import (
    Cadence,
    DueOccurrences,
    ExpensePayload,
    GenerationReport,
    RecurrenceFrequency,
    RecurringTemplate,
    TaskPayload,
    TaskPriority,
    TaskRecord,
    TaskStatus,
    TemplatePayload,
)
from household_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AdjustmentSplit",
    "BalanceRow",
    "EqualSplit",
    "ExactSplit",
    "ExpenseObligation",
    "ExpenseRecord",
    "IsoDateString",
    "LedgerSnapshot",
    "PairwiseBalanceRow",
    "PercentageSplit",
    "Person",
    "PersonAmount",
    "PersonPercentage",
    "PersonShares",
    "SettlementRecord",
    "SharesSplit",
    "SplitLine",
    "SplitMethod",
    "SplitPolicy",
    # Recurring models
    "Cadence",
    "DueOccurrences",
    "ExpensePayload",
    "GenerationReport",
    "RecurrenceFrequency",
    "RecurringTemplate",
    "TaskPayload",
    "TaskPriority",
    "TaskRecord",
    "TaskStatus",
    "TemplatePayload",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
