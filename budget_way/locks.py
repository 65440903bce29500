"""Lock evaluation for the Budget Way goal steps.

Every status is recomputed from the current facts (envelope balances, debt
snapshot, milestone progress); no transition history is stored, so there
are no illegal transitions to guard against.

Rules:

* starter stash is never locked; completed at 100%, active above 0%,
  pending otherwise
* debt is completed when there never was debt or it has been cleared,
  active otherwise
* safety net and CC holding are locked while any debt remains, and follow
  the starter stash rule once unlocked
* a suggested step with no envelope yet is pending, whatever its default
  target
* essentials are completed when overall progress reaches the essentials
  threshold and essentials are not underfunded
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from . import config
from .models import (
    DebtSnapshot,
    Envelope,
    GoalStep,
    GoalStepStatus,
    LockState,
    MilestoneProgress,
    SuggestionType,
)
from .money import HUNDRED, ZERO, format_currency
from .progress import progress_pct
from .settings import get_budget_way_settings

# Suggested envelope types that stay locked until all debt is paid
DEBT_GATED_TYPES = frozenset({SuggestionType.SAFETY_NET, SuggestionType.CC_HOLDING})

_STEP_FOR_TYPE = {
    SuggestionType.STARTER_STASH: GoalStep.STARTER_STASH,
    SuggestionType.SAFETY_NET: GoalStep.SAFETY_NET,
    SuggestionType.CC_HOLDING: GoalStep.CC_HOLDING,
}
_TYPE_FOR_STEP = {step: kind for kind, step in _STEP_FOR_TYPE.items()}


def progress_state(current: Decimal, target: Decimal) -> LockState:
    """Completed/active/pending from balances alone (never locked)."""
    pct = progress_pct(current, target)
    if pct >= HUNDRED:
        return LockState.COMPLETED
    if pct > ZERO:
        return LockState.ACTIVE
    return LockState.PENDING


def is_type_locked(suggestion_type: SuggestionType, debt: DebtSnapshot) -> bool:
    return suggestion_type in DEBT_GATED_TYPES and debt.has_debt


def is_envelope_locked(envelope: Envelope, debt: DebtSnapshot) -> bool:
    """Whether the waterfall must skip this envelope."""
    return is_type_locked(envelope.suggestion_type, debt)


def envelope_state(envelope: Envelope, debt: DebtSnapshot) -> LockState:
    if is_envelope_locked(envelope, debt):
        return LockState.LOCKED
    return progress_state(envelope.current_amount, envelope.target_amount)


def debt_state(debt: DebtSnapshot) -> LockState:
    if debt.starting_debt <= 0 or not debt.has_debt:
        return LockState.COMPLETED
    return LockState.ACTIVE


def essentials_state(progress: MilestoneProgress, threshold: Optional[Decimal] = None) -> LockState:
    if threshold is None:
        threshold = config.ESSENTIALS_THRESHOLD
    if progress.overall_progress >= threshold and not progress.essentials_underfunded:
        return LockState.COMPLETED
    return LockState.ACTIVE


def find_suggested(envelopes: Sequence[Envelope], suggestion_type: SuggestionType) -> Optional[Envelope]:
    """First envelope (by position, then id) standing for a suggested goal."""
    matches = [e for e in envelopes if e.suggestion_type is suggestion_type]
    if not matches:
        return None
    return min(matches, key=lambda e: (e.position, e.id))


def _default_target(step: GoalStep) -> Decimal:
    if step is GoalStep.STARTER_STASH:
        return config.STARTER_STASH_TARGET
    return ZERO


def _suggested_step_values(step: GoalStep, envelopes: Sequence[Envelope]):
    envelope = find_suggested(envelopes, _TYPE_FOR_STEP[step])
    if envelope is not None:
        return envelope.target_amount, envelope.current_amount, True
    target = _default_target(step)
    return target, ZERO, target > 0


def evaluate_lock_states(
    envelopes: Sequence[Envelope],
    debt: DebtSnapshot,
    progress: MilestoneProgress,
) -> Dict[GoalStep, LockState]:
    """Status of every goal step, in step order."""
    states: Dict[GoalStep, LockState] = {GoalStep.ESSENTIALS: essentials_state(progress)}
    for step in (GoalStep.STARTER_STASH, GoalStep.DEBT, GoalStep.SAFETY_NET, GoalStep.CC_HOLDING):
        if step is GoalStep.DEBT:
            states[step] = debt_state(debt)
            continue
        if is_type_locked(_TYPE_FOR_STEP[step], debt):
            states[step] = LockState.LOCKED
            continue
        if find_suggested(envelopes, _TYPE_FOR_STEP[step]) is None:
            # Nothing saved toward this goal yet
            states[step] = LockState.PENDING
            continue
        target, current, _ = _suggested_step_values(step, envelopes)
        states[step] = progress_state(current, target)
    return states


def _describe(step: GoalStep, state: LockState, texts: Dict[str, str],
              progress: MilestoneProgress, debt: DebtSnapshot, target: Decimal) -> str:
    if step is GoalStep.ESSENTIALS:
        key = 'needs_funding' if progress.needs_funding > 0 else 'on_track'
        return texts[key].format(needs_funding=progress.needs_funding, total_count=progress.total_count)
    if step is GoalStep.DEBT:
        if debt.starting_debt <= 0:
            return texts['no_debt']
        if debt.has_debt and debt.active_debt is not None:
            return texts['active_debt'].format(
                name=debt.active_debt.name,
                balance=format_currency(debt.active_debt.balance),
            )
        return texts['cleared']
    if state is LockState.LOCKED and 'locked' in texts:
        return texts['locked']
    return texts.get('default', '').format(target=format_currency(target))


def goal_steps(
    envelopes: Sequence[Envelope],
    debt: DebtSnapshot,
    progress: MilestoneProgress,
) -> List[GoalStepStatus]:
    """Build the ordered step table every presenter renders.

    Args:
        envelopes: Validated envelopes (ordinary and suggested)
        debt: Current debt snapshot
        progress: Milestone progress computed from the same envelopes

    Returns:
        One GoalStepStatus per step, ordered by step number
    """
    states = evaluate_lock_states(envelopes, debt, progress)
    rows: List[GoalStepStatus] = []
    for entry in sorted(get_budget_way_settings()['steps'], key=lambda s: s['step']):
        step = GoalStep(entry['id'])
        state = states[step]
        applicable = True
        if step is GoalStep.ESSENTIALS:
            target, current = progress.total_target, progress.total_current
        elif step is GoalStep.DEBT:
            if debt.starting_debt <= 0:
                target, current = ZERO, ZERO
            else:
                target, current = debt.starting_debt, debt.amount_paid
        else:
            target, current, applicable = _suggested_step_values(step, envelopes)

        if target > 0:
            pct = progress_pct(current, target)
        else:
            pct = HUNDRED if state is LockState.COMPLETED else ZERO
        display = pct
        if state is LockState.LOCKED and debt.starting_debt > 0:
            display = debt.payoff_progress

        rows.append(GoalStepStatus(
            step=step,
            number=int(entry['step']),
            title=entry['title'],
            icon=entry.get('icon', ''),
            state=state,
            target=target,
            current=current,
            progress=pct,
            display_progress=display,
            applicable=applicable,
            description=_describe(step, state, entry.get('descriptions', {}), progress, debt, target),
        ))
    return rows
