"""Allocation waterfall.

Splits newly available money between debt paydown and envelopes according
to the chosen strategy, then fills envelopes in priority order:

1. Essential bills
2. Essential everything else
3. Important
4. Extra

Within a tier envelopes are ordered by due day (soonest first, none last),
then creation position, then id, so results are reproducible.  Tracking
envelopes never receive money and locked envelopes are skipped under every
strategy.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from .locks import is_envelope_locked
from .models import (
    AllocationResult,
    AllocationStrategy,
    AllocationSummary,
    DebtSnapshot,
    Envelope,
    EnvelopeAllocation,
    EnvelopeSubtype,
    PriorityTier,
    StrategyRecommendation,
    WaterfallLine,
)
from .money import ZERO, money_sum

logger = logging.getLogger(__name__)

# Due-day sort value for envelopes without one
_NO_DUE_DAY = 32


def waterfall_sort_key(envelope: Envelope) -> Tuple[int, int, int, int, str]:
    """Total order used by the waterfall.

    Example:
        >>> rent = Envelope('rent', 'Rent', priority_tier=PriorityTier.ESSENTIAL,
        ...                 subtype=EnvelopeSubtype.BILL, due_day=1)
        >>> waterfall_sort_key(rent)
        (0, 0, 1, 0, 'rent')
    """
    is_other = 0 if envelope.subtype is EnvelopeSubtype.BILL else 1
    bill_rank = is_other if envelope.priority_tier is PriorityTier.ESSENTIAL else 0
    due = envelope.due_day if envelope.due_day is not None else _NO_DUE_DAY
    return (envelope.priority_tier.rank, bill_rank, due, envelope.position, envelope.id)


def order_envelopes(envelopes: Sequence[Envelope]) -> List[Envelope]:
    """Allocatable envelopes (tracking ones dropped) in waterfall order."""
    return sorted((e for e in envelopes if not e.is_tracking), key=waterfall_sort_key)


def debt_portion(
    strategy: AllocationStrategy,
    debt: DebtSnapshot,
    available_balance: Decimal,
    hybrid_amount: Optional[Decimal] = None,
) -> Decimal:
    """Amount of the balance the strategy sends to debt.

    ``hybrid_amount`` must already be validated; it is clamped again to
    ``[0, min(current_debt, available_balance)]``.
    """
    ceiling = min(debt.current_debt, available_balance)
    if strategy is AllocationStrategy.CREDIT_FIRST:
        return ceiling
    if strategy is AllocationStrategy.HYBRID:
        return max(ZERO, min(hybrid_amount or ZERO, ceiling))
    return ZERO


def run_envelope_waterfall(
    pool: Decimal,
    envelopes: Sequence[Envelope],
    debt: DebtSnapshot,
) -> Tuple[List[EnvelopeAllocation], List[WaterfallLine], Decimal]:
    """Fill envelopes from ``pool`` in priority order up to each funding gap.

    Args:
        pool: Money available for envelopes
        envelopes: Validated envelopes in any order
        debt: Debt snapshot, used to decide which envelopes are locked

    Returns:
        Tuple of (allocations with amount > 0, one line per allocatable
        envelope, pool left over)
    """
    remaining = pool
    allocations: List[EnvelopeAllocation] = []
    lines: List[WaterfallLine] = []

    for envelope in order_envelopes(envelopes):
        gap = envelope.funding_gap
        locked = is_envelope_locked(envelope, debt)
        alloc = ZERO
        if not locked and remaining > 0:
            alloc = min(remaining, gap)
            remaining -= alloc
        if alloc > 0:
            allocations.append(EnvelopeAllocation(envelope.id, alloc))
        lines.append(WaterfallLine(
            envelope_id=envelope.id,
            priority_tier=envelope.priority_tier,
            funding_gap=gap,
            allocated=alloc,
            locked=locked,
        ))
        if locked:
            logger.debug("Skipping locked envelope %s (gap %s)", envelope.id, gap)

    return allocations, lines, remaining


def allocate_validated(
    envelopes: Sequence[Envelope],
    debt: DebtSnapshot,
    available_balance: Decimal,
    strategy: AllocationStrategy,
    hybrid_amount: Optional[Decimal] = None,
) -> AllocationResult:
    """Run the strategy split and the envelope waterfall on validated input."""
    to_debt = debt_portion(strategy, debt, available_balance, hybrid_amount)
    pool = available_balance - to_debt
    allocations, lines, remainder = run_envelope_waterfall(pool, envelopes, debt)
    result = AllocationResult(
        allocations=tuple(allocations),
        amount_to_debt=to_debt,
        remainder_unallocated=remainder,
        available_balance=available_balance,
        strategy=strategy,
        lines=tuple(lines),
    )
    logger.info(
        "Allocated %s via %s: debt=%s envelopes=%s unallocated=%s",
        available_balance, strategy.value, to_debt, result.total_to_envelopes, remainder,
    )
    return result


def strategy_split(
    debt: DebtSnapshot,
    available_balance: Decimal,
    hybrid_amount: Optional[Decimal] = None,
) -> Dict[AllocationStrategy, Tuple[Decimal, Decimal]]:
    """``(to_debt, to_envelopes)`` for every strategy, for a strategy chooser."""
    split = {}
    for strategy in AllocationStrategy:
        to_debt = debt_portion(strategy, debt, available_balance, hybrid_amount)
        split[strategy] = (to_debt, available_balance - to_debt)
    return split


def recommend_strategy(debt: DebtSnapshot) -> StrategyRecommendation:
    """Default strategy surfaced to the chooser; not binding."""
    if debt.has_debt:
        return StrategyRecommendation(
            AllocationStrategy.CREDIT_FIRST,
            'Clearing your credit card debt first avoids interest and unlocks your Safety Net',
        )
    return StrategyRecommendation(
        AllocationStrategy.ENVELOPES_ONLY,
        'No credit card debt to cover',
    )


def summarize_allocation(result: AllocationResult) -> AllocationSummary:
    """Counts and totals for the allocation preview.

    Locked envelopes are counted separately and excluded from the
    funded/partial/unfunded counts.
    """
    open_lines = [line for line in result.lines if not line.locked]
    fully = sum(1 for line in open_lines if line.is_fully_funded)
    partial = sum(1 for line in open_lines if not line.is_fully_funded and line.allocated > 0)
    by_tier = {
        tier: money_sum(line.allocated for line in open_lines if line.priority_tier is tier)
        for tier in PriorityTier
    }
    return AllocationSummary(
        total_gap=money_sum(line.funding_gap for line in open_lines),
        total_allocated=result.total_to_envelopes,
        total_shortfall=money_sum(line.shortfall for line in open_lines),
        fully_funded_count=fully,
        partially_funded_count=partial,
        unfunded_count=len(open_lines) - fully - partial,
        locked_count=len(result.lines) - len(open_lines),
        by_tier=by_tier,
    )
