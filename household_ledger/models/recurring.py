"""
Recurring Template Models

A recurring template is a stored cadence plus a payload (task fields or
expense fields with a split policy). It periodically generates concrete
task or expense records.

The only fields that ever change after creation are ``next_occurrence``
(advanced forward, never recomputed from scratch) and ``is_active``
(flipped to False once the cursor passes ``end_date``).
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from household_ledger.models.ledger import IsoDateString, PersonId, SplitPolicy


class RecurrenceFrequency(str, Enum):
    """Supported cadences."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Cadence(BaseModel):
    """How often a template fires: every ``interval`` ``frequency`` units."""
    model_config = ConfigDict(frozen=True)

    frequency: RecurrenceFrequency
    interval: int = Field(default=1, ge=1)


# =============================================================================
# PAYLOADS
# =============================================================================

class TaskPayload(BaseModel):
    """Fields copied onto every generated task."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="forbid")

    kind: Literal["task"] = "task"
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to_person_id: Optional[PersonId] = None


class ExpensePayload(BaseModel):
    """Fields copied onto every generated expense, plus its split policy."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="forbid")

    kind: Literal["expense"] = "expense"
    description: str = Field(..., min_length=1, max_length=200)
    amount: int = Field(..., ge=0, description="Total in minor units (cents)")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    category_id: Optional[str] = None
    payer_id: PersonId
    policy: SplitPolicy


TemplatePayload = Annotated[
    Union[TaskPayload, ExpensePayload],
    Field(discriminator="kind"),
]


# =============================================================================
# TEMPLATE AND SCHEDULER RESULT
# =============================================================================

class RecurringTemplate(BaseModel):
    """
    A persisted recurring template.

    The cursor (``next_occurrence``) is an explicit field updated by the
    caller in the same transaction as the records it generated.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    group_id: str = Field(..., min_length=1)
    cadence: Cadence
    next_occurrence: IsoDateString
    end_date: Optional[IsoDateString] = None
    is_active: bool = True
    payload: TemplatePayload

    @property
    def is_expense(self) -> bool:
        return isinstance(self.payload, ExpensePayload)


class DueOccurrences(BaseModel):
    """Result of one catch-up calculation for a template."""
    model_config = ConfigDict(frozen=True)

    occurrences: list[IsoDateString] = Field(default_factory=list)
    next_occurrence: IsoDateString
    is_active: bool


class TaskRecord(BaseModel):
    """A concrete task generated from a template (or entered by hand)."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    group_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to_person_id: Optional[str] = None
    due_date: Optional[IsoDateString] = None
    recurring_template_id: Optional[str] = None


class GenerationReport(BaseModel):
    """Outcome of one recurring-generation run for a group."""

    group_id: str
    run_date: IsoDateString
    expenses_created: int = 0
    tasks_created: int = 0
    retired_template_ids: list[str] = Field(default_factory=list)
    failed_template_ids: list[str] = Field(default_factory=list)

    @property
    def records_created(self) -> int:
        return self.expenses_created + self.tasks_created
