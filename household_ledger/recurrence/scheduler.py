"""
Recurrence Scheduler

Turns (cadence, cursor, end date, "today") into the list of occurrences
that are due, the next future occurrence, and whether the template stays
active.

Template states:
- Active: will keep generating
- Retired (terminal): the cursor has moved past ``end_date``

Dates are ISO calendar-day strings throughout. ISO days are zero padded,
so lexical comparison is chronological comparison.

The scheduler never reads a clock. ``today`` is always passed in by the
caller, which keeps catch-up fully deterministic.
"""

import math
from datetime import date, timedelta
from typing import Optional, Union

from household_ledger.models.recurring import DueOccurrences, RecurrenceFrequency


# Safety bound for templates left untouched for a long time.
DEFAULT_MAX_BATCH = 12


def advance(
    current_occurrence: str,
    frequency: Union[RecurrenceFrequency, str],
    interval: int,
) -> str:
    """
    Next occurrence after ``current_occurrence``.

    daily: +interval days. weekly: +interval*7 days. monthly: +interval
    calendar months, keeping the day of month and rolling any overflow
    into the following month (Jan 31 + 1 month = Mar 2 in a leap year).
    Intervals below 1 are treated as 1.
    """
    step = max(1, math.floor(interval))
    current = date.fromisoformat(current_occurrence)
    frequency = RecurrenceFrequency(frequency)

    if frequency is RecurrenceFrequency.DAILY:
        following = current + timedelta(days=step)
    elif frequency is RecurrenceFrequency.WEEKLY:
        following = current + timedelta(weeks=step)
    else:
        following = _add_months(current, step)

    return following.isoformat()


def due_occurrences(
    next_occurrence: str,
    end_date: Optional[str],
    frequency: Union[RecurrenceFrequency, str],
    interval: int,
    today: str,
    max_batch: int = DEFAULT_MAX_BATCH,
) -> DueOccurrences:
    """
    Catch a template up to ``today`` in one call.

    Collects the cursor while it is on or before ``today`` and on or
    before ``end_date`` (if any), advancing after each one, and stops after
    ``max_batch`` occurrences. The returned ``next_occurrence`` is always
    the first date not yet emitted, so a truncated catch-up continues
    cleanly on the next call.

    ``is_active`` is False only when an end date exists and the final
    cursor has moved past it - a template can emit its last occurrence and
    retire in the same call.
    """
    for value in (next_occurrence, today, end_date):
        if value is not None:
            date.fromisoformat(value)
    limit = max(1, max_batch)

    occurrences: list[str] = []
    cursor = next_occurrence
    while (
        len(occurrences) < limit
        and cursor <= today
        and (end_date is None or cursor <= end_date)
    ):
        occurrences.append(cursor)
        cursor = advance(cursor, frequency, interval)

    is_active = not (end_date is not None and cursor > end_date)
    return DueOccurrences(
        occurrences=occurrences,
        next_occurrence=cursor,
        is_active=is_active,
    )


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    first_of_month = date(day.year + month_index // 12, month_index % 12 + 1, 1)
    return first_of_month + timedelta(days=day.day - 1)
