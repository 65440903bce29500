"""Milestone progress calculation.

Derives per-envelope and overall completion figures from the current
envelope balances.  Nothing here is stored: the calculator is re-run after
every balance change and has no side effects.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import config
from .models import Envelope, Milestone, MilestoneProgress, PriorityTier
from .money import HUNDRED, ZERO, money_sum, percent_of
from .settings import get_budget_way_settings

logger = logging.getLogger(__name__)

ONE = Decimal('1')
# Overall funding ratio from which "Everything On Track" shows as in progress
ON_TRACK_FROM = Decimal('0.8')


def progress_pct(current: Decimal, target: Decimal) -> Decimal:
    """Completion percentage of one envelope, clamped to ``[0, 100]``.

    A zero-target envelope has nothing to fund and counts as complete.

    Example:
        >>> progress_pct(Decimal('250'), Decimal('1000'))
        Decimal('25.00')
        >>> progress_pct(Decimal('0'), Decimal('0'))
        Decimal('100')
    """
    if target <= 0:
        return HUNDRED
    return max(ZERO, min(HUNDRED, percent_of(current, target)))


def is_funded(envelope: Envelope) -> bool:
    return envelope.current_amount >= envelope.target_amount


def ordinary_envelopes(envelopes: Iterable[Envelope]) -> List[Envelope]:
    """Envelopes that count toward the "fill envelopes" step."""
    return [e for e in envelopes if not e.is_suggested and not e.is_tracking]


def aggregate_progress(envelopes: Sequence[Envelope], empty: Decimal = ZERO) -> Decimal:
    """``total_current / total_target * 100`` clamped to 100; ``empty`` when nothing is targeted."""
    total_target = money_sum(e.target_amount for e in envelopes)
    if total_target <= 0:
        return empty
    total_current = money_sum(e.current_amount for e in envelopes)
    return min(HUNDRED, percent_of(total_current, total_target))


def tier_funding_ratio(envelopes: Sequence[Envelope]) -> Decimal:
    """Funding ratio in ``[0, 1]`` for a group; a group with no target is complete."""
    return aggregate_progress(envelopes, empty=HUNDRED) / HUNDRED


def essentials_progress(envelopes: Sequence[Envelope]) -> Decimal:
    """Aggregate progress of the essential tier (100 when there are no essential targets)."""
    essentials = [e for e in envelopes if e.priority_tier is PriorityTier.ESSENTIAL]
    return aggregate_progress(essentials, empty=HUNDRED)


def _milestone_rules(ratios: Dict[str, Decimal]) -> Dict[str, Tuple[bool, bool, Decimal]]:
    """Map milestone id to ``(achieved, in_progress, progress)``."""
    p1 = ratios['essential']
    p2 = ratios['important']
    overall = ratios['overall']
    rules = {
        'essential': (p1 >= ONE, ZERO < p1 < ONE, p1),
        'important': (p1 >= ONE and p2 >= ONE, p1 >= ONE and ZERO < p2 < ONE, p2),
        'complete': (
            overall >= ONE,
            ON_TRACK_FROM <= overall < ONE,
            overall,
        ),
    }
    for key in ('budget_way', 'extra'):
        ratio = ratios[key]
        rules[key] = (ratio >= ONE, ZERO < ratio < ONE, ratio)
    return rules


def build_milestones(envelopes: Sequence[Envelope]) -> List[Milestone]:
    """Evaluate the funding ladder defined in the settings catalogue.

    Ordinary envelopes are grouped by tier; suggested envelopes form the
    Budget Way rung; the final rung looks at every non-tracking envelope.
    """
    ordinary = ordinary_envelopes(envelopes)
    suggested = [e for e in envelopes if e.is_suggested and not e.is_tracking]
    ratios = {
        'essential': tier_funding_ratio([e for e in ordinary if e.priority_tier is PriorityTier.ESSENTIAL]),
        'important': tier_funding_ratio([e for e in ordinary if e.priority_tier is PriorityTier.IMPORTANT]),
        'extra': tier_funding_ratio([e for e in ordinary if e.priority_tier is PriorityTier.EXTRA]),
        'budget_way': tier_funding_ratio(suggested),
        'overall': tier_funding_ratio(ordinary + suggested),
    }
    rules = _milestone_rules(ratios)

    milestones: List[Milestone] = []
    for entry in get_budget_way_settings().get('milestones', []):
        rule = rules.get(entry['id'])
        if rule is None:
            logger.warning("Skipping milestone %r with no evaluation rule", entry['id'])
            continue
        achieved, in_progress, ratio = rule
        milestones.append(Milestone(
            id=entry['id'],
            label=entry['label'],
            threshold=int(entry['threshold']),
            achieved=achieved,
            in_progress=in_progress,
            progress=ratio,
        ))
    return milestones


def calculate_milestone_progress(
    envelopes: Sequence[Envelope],
    essentials_threshold: Optional[Decimal] = None,
    envelope_row_threshold: Optional[Decimal] = None,
) -> MilestoneProgress:
    """Compute the milestone progress snapshot for a set of envelopes.

    Args:
        envelopes: Validated envelopes; suggested and tracking envelopes are
            excluded from the headline figures but feed the milestone ladder
        essentials_threshold: Aggregate essential progress (%) below which
            essentials are underfunded; defaults to ``config.ESSENTIALS_THRESHOLD``
        envelope_row_threshold: Overall progress (%) below which the envelope
            row stays visible; defaults to ``config.ENVELOPE_ROW_THRESHOLD``

    Returns:
        MilestoneProgress snapshot
    """
    if essentials_threshold is None:
        essentials_threshold = config.ESSENTIALS_THRESHOLD
    if envelope_row_threshold is None:
        envelope_row_threshold = config.ENVELOPE_ROW_THRESHOLD

    ordinary = ordinary_envelopes(envelopes)
    total_target = money_sum(e.target_amount for e in ordinary)
    total_current = money_sum(e.current_amount for e in ordinary)
    overall = aggregate_progress(ordinary, empty=ZERO)
    needs_funding = sum(1 for e in ordinary if not is_funded(e))
    essential_pct = essentials_progress(ordinary)
    underfunded = essential_pct < essentials_threshold

    progress = MilestoneProgress(
        overall_progress=overall,
        total_target=total_target,
        total_current=total_current,
        funding_gap=max(ZERO, total_target - total_current),
        funded_count=len(ordinary) - needs_funding,
        total_count=len(ordinary),
        needs_funding=needs_funding,
        essentials_progress=essential_pct,
        essentials_underfunded=underfunded,
        should_show_envelope_row=overall < envelope_row_threshold or underfunded,
        milestones=tuple(build_milestones(envelopes)),
    )
    logger.debug(
        "Milestone progress: overall=%s%% funded=%d/%d essentials=%s%%",
        overall, progress.funded_count, progress.total_count, essential_pct,
    )
    return progress
