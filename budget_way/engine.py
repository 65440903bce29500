"""Engine boundary: one pure call per balance-changing event.

Callers pass snapshots of the envelope registry and the debt tracker plus
the newly available balance and the chosen strategy.  All input is
validated before anything is computed; the returned result is what a
ledger applies atomically.

Example:
    >>> result = run_budget_way(
    ...     envelopes=[{'id': 'rent', 'name': 'Rent', 'priority': 'essential',
    ...                 'target_amount': 600, 'current_amount': 0}],
    ...     debt={'starting_debt': 0, 'current_debt': 0},
    ...     available_balance=1000,
    ...     strategy='envelopes_only',
    ... )
    >>> result.allocation.remainder_unallocated
    Decimal('400.00')
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .locks import evaluate_lock_states, goal_steps
from .models import (
    AllocationResult,
    AllocationStrategy,
    DebtSnapshot,
    Envelope,
    GoalStep,
    GoalStepStatus,
    LockState,
    MilestoneProgress,
    StrategyRecommendation,
)
from .money import MoneyLike
from .progress import calculate_milestone_progress
from .validation import (
    EnvelopeLike,
    resolve_strategy,
    validate_balance,
    validate_debt,
    validate_envelopes,
    validate_hybrid_amount,
)
from .waterfall import allocate_validated, recommend_strategy

logger = logging.getLogger(__name__)

DebtLike = Union[DebtSnapshot, Mapping[str, Any], None]


@dataclass(frozen=True)
class BudgetWayResult:
    allocation: AllocationResult
    progress: MilestoneProgress
    lock_states: Dict[GoalStep, LockState]
    steps: Tuple[GoalStepStatus, ...]
    recommendation: StrategyRecommendation

    @property
    def allocations(self):
        return self.allocation.allocations

    @property
    def amount_to_debt(self) -> Decimal:
        return self.allocation.amount_to_debt

    @property
    def remainder_unallocated(self) -> Decimal:
        return self.allocation.remainder_unallocated


@dataclass(frozen=True)
class EngineInput:
    """Validated, normalised engine input."""
    envelopes: Tuple[Envelope, ...]
    debt: DebtSnapshot
    available_balance: Decimal
    strategy: AllocationStrategy
    hybrid_amount: Optional[Decimal]


def prepare_input(
    envelopes: Optional[Iterable[EnvelopeLike]],
    debt: DebtLike,
    available_balance: MoneyLike,
    strategy: Union[AllocationStrategy, str],
    hybrid_amount: Optional[MoneyLike] = None,
) -> EngineInput:
    """Validate everything up front.

    Raises:
        InvalidInput: On any invalid field; nothing has been computed yet
    """
    validated_envelopes = validate_envelopes(envelopes)
    validated_debt = validate_debt(debt)
    balance = validate_balance(available_balance)
    chosen = resolve_strategy(strategy)
    amount = None
    if chosen is AllocationStrategy.HYBRID:
        amount = validate_hybrid_amount(hybrid_amount, validated_debt, balance)
    if validated_debt.current_debt > validated_debt.starting_debt:
        logger.warning(
            "Current debt %s exceeds starting debt %s",
            validated_debt.current_debt, validated_debt.starting_debt,
        )
    return EngineInput(validated_envelopes, validated_debt, balance, chosen, amount)


def allocate(
    envelopes: Optional[Iterable[EnvelopeLike]],
    debt: DebtLike,
    available_balance: MoneyLike,
    strategy: Union[AllocationStrategy, str],
    hybrid_amount: Optional[MoneyLike] = None,
) -> AllocationResult:
    """Validate input and compute where the available balance goes."""
    data = prepare_input(envelopes, debt, available_balance, strategy, hybrid_amount)
    return allocate_validated(data.envelopes, data.debt, data.available_balance,
                              data.strategy, data.hybrid_amount)


def evaluate(
    envelopes: Optional[Iterable[EnvelopeLike]],
    debt: DebtLike,
):
    """Progress, lock states and step table without allocating anything."""
    validated_envelopes = validate_envelopes(envelopes)
    validated_debt = validate_debt(debt)
    progress = calculate_milestone_progress(validated_envelopes)
    states = evaluate_lock_states(validated_envelopes, validated_debt, progress)
    steps = tuple(goal_steps(validated_envelopes, validated_debt, progress))
    return progress, states, steps


def run_budget_way(
    envelopes: Optional[Iterable[EnvelopeLike]],
    debt: DebtLike,
    available_balance: MoneyLike,
    strategy: Union[AllocationStrategy, str],
    hybrid_amount: Optional[MoneyLike] = None,
) -> BudgetWayResult:
    """Full engine run: allocation, milestone progress and goal step states.

    Args:
        envelopes: Envelope snapshots or registry rows (ordinary and suggested)
        debt: Debt snapshot or mapping; ``None`` means no debt
        available_balance: Newly available money (>= 0)
        strategy: ``credit_first``, ``envelopes_only`` or ``hybrid``
        hybrid_amount: Amount sent to debt under ``hybrid``; ignored otherwise

    Returns:
        BudgetWayResult

    Raises:
        InvalidInput: If any input is invalid
    """
    data = prepare_input(envelopes, debt, available_balance, strategy, hybrid_amount)
    allocation = allocate_validated(data.envelopes, data.debt, data.available_balance,
                                    data.strategy, data.hybrid_amount)
    progress = calculate_milestone_progress(data.envelopes)
    states = evaluate_lock_states(data.envelopes, data.debt, progress)
    steps = tuple(goal_steps(data.envelopes, data.debt, progress))
    return BudgetWayResult(
        allocation=allocation,
        progress=progress,
        lock_states=states,
        steps=steps,
        recommendation=recommend_strategy(data.debt),
    )
