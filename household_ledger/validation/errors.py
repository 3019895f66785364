"""
Validation Errors

A single error kind covers every policy-input violation: duplicate
participant, negative amount/percentage/shares, totals not reconciling,
zero total shares and an empty participant set where one is required.

These are caller-input errors, never transient failures. They are raised
immediately and never retried.
"""

from typing import Optional


class ValidationError(ValueError):
    """Invalid split or template input."""

    def __init__(self, reason: str, person_id: Optional[str] = None):
        self.reason = reason
        self.person_id = person_id
        super().__init__(reason)
