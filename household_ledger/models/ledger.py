"""
Core Ledger Models for Household Ledger

These models define the plain records exchanged between the pure ledger
core and its collaborators (storage, UI, background jobs).
They are designed to:
1. Be immutable value records (the core never mutates its inputs)
2. Keep money as integer minor units (cents) - never floating point
3. Make every split policy a proper tagged variant
4. Be serializable for storage and logging

DESIGN DECISION: Split policies are a discriminated union on ``method``.
An ``ExactSplit`` cannot be built without its per-person amounts and an
``EqualSplit`` cannot carry leftover percentage data (extra fields are
forbidden on every variant).
"""

from datetime import date
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
)


def _check_iso_date(value: str) -> str:
    """Accept only canonical ISO calendar days (YYYY-MM-DD)."""
    parsed = date.fromisoformat(value)
    if parsed.isoformat() != value:
        raise ValueError(f"Expected an ISO calendar day (YYYY-MM-DD), got {value!r}")
    return value


# Dates travel as ISO strings so lexical order equals chronological order.
IsoDateString = Annotated[str, AfterValidator(_check_iso_date)]

PersonId = Annotated[str, Field(min_length=1, max_length=100)]


# =============================================================================
# ENUMS
# =============================================================================

class SplitMethod(str, Enum):
    """How an expense total is divided among participants."""
    EQUAL = "equal"
    EXACT = "exact"
    PERCENTAGE = "percentage"
    SHARES = "shares"
    ADJUSTMENT = "adjustment"


# =============================================================================
# PEOPLE
# =============================================================================

class Person(BaseModel):
    """
    A ledger participant.

    May or may not correspond to a real login - unclaimed placeholder
    members (``linked_account_id is None``) are allowed.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: PersonId
    display_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Name shown in balances and lists"
    )
    linked_account_id: Optional[str] = Field(
        default=None,
        description="Login account this person is claimed by, if any"
    )


# =============================================================================
# SPLIT POLICY ENTRIES
# =============================================================================

class PersonAmount(BaseModel):
    """One person's amount in minor units (a SplitLine-shaped pair)."""
    model_config = ConfigDict(frozen=True)

    person_id: PersonId
    amount: int


class PersonPercentage(BaseModel):
    """One person's percentage of a total (UI input, may carry float noise)."""
    model_config = ConfigDict(frozen=True)

    person_id: PersonId
    percentage: float = Field(..., allow_inf_nan=False)


class PersonShares(BaseModel):
    """One person's share count."""
    model_config = ConfigDict(frozen=True)

    person_id: PersonId
    shares: float = Field(..., allow_inf_nan=False)


# =============================================================================
# SPLIT POLICIES (tagged union)
# =============================================================================

class EqualSplit(BaseModel):
    """Divide the total evenly; remainder cents go to the first participants."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Literal[SplitMethod.EQUAL] = SplitMethod.EQUAL
    participant_ids: list[PersonId] = Field(default_factory=list)


class ExactSplit(BaseModel):
    """Caller-supplied amounts that must add up to the total exactly."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Literal[SplitMethod.EXACT] = SplitMethod.EXACT
    amounts: list[PersonAmount]


class PercentageSplit(BaseModel):
    """Percentages that must add up to 100."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Literal[SplitMethod.PERCENTAGE] = SplitMethod.PERCENTAGE
    percentages: list[PersonPercentage]


class SharesSplit(BaseModel):
    """Proportional share counts."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Literal[SplitMethod.SHARES] = SplitMethod.SHARES
    shares: list[PersonShares]


class AdjustmentSplit(BaseModel):
    """
    Point-in-time reimbursement.

    ``from_person_id`` owes the full total; ``to_person_id`` is the payer
    being reimbursed.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Literal[SplitMethod.ADJUSTMENT] = SplitMethod.ADJUSTMENT
    from_person_id: PersonId
    to_person_id: PersonId


SplitPolicy = Annotated[
    Union[EqualSplit, ExactSplit, PercentageSplit, SharesSplit, AdjustmentSplit],
    Field(discriminator="method"),
]


# =============================================================================
# EXPENSES, SPLITS, SETTLEMENTS
# =============================================================================

class ExpenseObligation(BaseModel):
    """Who fronted the money for an expense and how much."""
    model_config = ConfigDict(frozen=True)

    expense_id: str = Field(..., min_length=1)
    payer_id: PersonId
    total_amount: int = Field(
        ...,
        ge=0,
        description="Total in minor units (cents)"
    )


class ExpenseRecord(ExpenseObligation):
    """
    A stored expense.

    Carries the descriptive fields the storage collaborator keeps next to
    the obligation. The ledger core only ever reads the obligation part.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    group_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1, max_length=200)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    expense_date: IsoDateString
    split_method: SplitMethod
    category_id: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    recurring_template_id: Optional[str] = None

    def as_obligation(self) -> ExpenseObligation:
        return ExpenseObligation(
            expense_id=self.expense_id,
            payer_id=self.payer_id,
            total_amount=self.total_amount,
        )


class SplitLine(BaseModel):
    """
    One person's share of one expense.

    The set of lines for an expense always sums to the expense total.
    Lines are replaced wholesale on edit, never patched.
    """
    model_config = ConfigDict(frozen=True)

    expense_id: str = Field(..., min_length=1)
    person_id: PersonId
    amount_owed: int = Field(..., ge=0)


class SettlementRecord(BaseModel):
    """A direct repayment: reduces what ``from`` owes ``to``."""
    model_config = ConfigDict(frozen=True)

    from_person_id: PersonId
    to_person_id: PersonId
    amount: int = Field(..., gt=0)
    settled_at: Optional[IsoDateString] = None
    payment_method: Optional[str] = Field(default=None, max_length=50)


# =============================================================================
# BALANCE OUTPUTS
# =============================================================================

class BalanceRow(BaseModel):
    """
    A person's signed net position.

    Positive: the group owes this person.
    Negative: this person owes the group.
    """
    model_config = ConfigDict(frozen=True)

    person_id: str
    display_name: str
    linked_account_id: Optional[str] = None
    net_amount: int


class PairwiseBalanceRow(BalanceRow):
    """
    Signed position between the current person and ``person_id``.

    Positive: ``person_id`` owes the current person.
    Negative: the current person owes ``person_id``.
    """


class LedgerSnapshot(BaseModel):
    """
    One causally consistent read of a group's ledger.

    The storage collaborator is responsible for reading all four lists
    inside one transaction.
    """
    model_config = ConfigDict(frozen=True)

    people: list[Person] = Field(default_factory=list)
    expenses: list[ExpenseObligation] = Field(default_factory=list)
    split_lines: list[SplitLine] = Field(default_factory=list)
    settlements: list[SettlementRecord] = Field(default_factory=list)
