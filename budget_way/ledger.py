"""Reference in-memory ledger that applies allocation results atomically.

Production deployments write balances through their own storage, but must
honour the same contract: read a versioned snapshot, compute against it,
and apply the whole result only if the snapshot is still current.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from .errors import InvalidInput, StaleSnapshotError
from .models import AllocationResult, DebtSnapshot, Envelope
from .money import ZERO
from .validation import EnvelopeLike, validate_debt, validate_envelopes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerSnapshot:
    version: int
    envelopes: Tuple[Envelope, ...]
    debt: DebtSnapshot


class EnvelopeLedger:
    """Holds envelope and debt balances behind a version number."""

    def __init__(self, envelopes: Iterable[EnvelopeLike] = (), debt: Optional[DebtSnapshot] = None):
        """Initialize the ledger.

        Args:
            envelopes: Starting envelopes, in registry order
            debt: Starting debt snapshot; ``None`` means no debt
        """
        self._lock = threading.Lock()
        self._envelopes: Dict[str, Envelope] = {e.id: e for e in validate_envelopes(envelopes)}
        self._debt = validate_debt(debt)
        self._version = 0

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def snapshot(self) -> LedgerSnapshot:
        """Consistent view of every balance and the version it belongs to."""
        with self._lock:
            return LedgerSnapshot(self._version, tuple(self._envelopes.values()), self._debt)

    def apply(self, result: AllocationResult, expected_version: int) -> LedgerSnapshot:
        """Apply every envelope credit and the debt payment together.

        Args:
            result: Allocation computed from the snapshot at ``expected_version``
            expected_version: Version of the snapshot the result was computed from

        Returns:
            Snapshot after the update

        Raises:
            StaleSnapshotError: If another update landed since the snapshot
            InvalidInput: If the result names an unknown envelope or pays more
                than the outstanding debt
        """
        with self._lock:
            if expected_version != self._version:
                raise StaleSnapshotError(expected_version, self._version)

            unknown = [a.envelope_id for a in result.allocations if a.envelope_id not in self._envelopes]
            if unknown:
                raise InvalidInput(f"Allocation names unknown envelopes: {', '.join(unknown)}")
            if result.amount_to_debt > self._debt.current_debt:
                raise InvalidInput(
                    f"Debt payment {result.amount_to_debt} exceeds outstanding debt {self._debt.current_debt}"
                )

            # Build the new state fully before swapping it in
            updated = dict(self._envelopes)
            for allocation in result.allocations:
                envelope = updated[allocation.envelope_id]
                updated[allocation.envelope_id] = dataclasses.replace(
                    envelope, current_amount=envelope.current_amount + allocation.amount,
                )
            debt = self._pay_debt(result.amount_to_debt)

            self._envelopes = updated
            self._debt = debt
            self._version += 1
            logger.info(
                "Applied allocation at version %d: %d envelopes credited, %s to debt",
                self._version, len(result.allocations), result.amount_to_debt,
            )
            return LedgerSnapshot(self._version, tuple(self._envelopes.values()), self._debt)

    def _pay_debt(self, amount: Decimal) -> DebtSnapshot:
        if amount <= 0:
            return self._debt
        active = self._debt.active_debt
        if active is not None:
            active = dataclasses.replace(active, balance=max(ZERO, active.balance - amount))
        return dataclasses.replace(self._debt, current_debt=self._debt.current_debt - amount, active_debt=active)
