"""Exceptions raised by the Budget Way engine and the reference ledger."""

from __future__ import annotations


class BudgetWayError(Exception):
    """Base class for every error raised by this package."""


class InvalidInput(BudgetWayError, ValueError):
    """Input rejected at the boundary before any computation ran.

    Subclasses ``ValueError`` so callers that already guard numeric parsing
    with ``except ValueError`` keep working.
    """


class StaleSnapshotError(BudgetWayError):
    """An allocation was computed against balances that have since changed."""

    def __init__(self, expected_version: int, actual_version: int):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Ledger moved from version {expected_version} to {actual_version}; "
            "recompute the allocation against a fresh snapshot"
        )
