"""Tabular views of engine results for presenters.

Every function turns an engine result into a ``pandas.DataFrame`` with
display-ready column names.  Money and percentages are converted to floats
here, at the presentation edge; the engine itself stays in ``Decimal``.
"""

from __future__ import annotations

from typing import Dict, Optional, Sequence

import pandas as pd

from .models import AllocationResult, AllocationSummary, Envelope, GoalStepStatus, MilestoneProgress

ALLOCATION_COLUMNS = [
    'Envelope', 'Name', 'Tier', 'Gap', 'Allocated', 'Shortfall', 'Status',
]
STEP_COLUMNS = [
    'Step', 'Title', 'Status', 'Target', 'Current', 'Difference', 'Progress %',
    'Display Progress %', 'Applicable', 'Description',
]


def _line_status(locked: bool, allocated: float, gap: float) -> str:
    if locked:
        return 'Locked'
    if allocated >= gap:
        return 'Funded'
    if allocated > 0:
        return 'Partial'
    return 'Unfunded'


def allocation_frame(
    result: AllocationResult,
    envelopes: Optional[Sequence[Envelope]] = None,
    *,
    include_debt: bool = True,
) -> pd.DataFrame:
    """Per-envelope allocation table in waterfall order.

    Args:
        result: Allocation result from the engine
        envelopes: Optional envelopes used to look up display names
        include_debt: Add a leading "Debt" row with the amount sent to debt

    Returns:
        DataFrame with columns Envelope, Name, Tier, Gap, Allocated,
        Shortfall, Status
    """
    names: Dict[str, str] = {e.id: e.name for e in envelopes or ()}
    rows = []
    if include_debt and result.amount_to_debt > 0:
        rows.append({
            'Envelope': 'debt',
            'Name': 'Debt paydown',
            'Tier': '',
            'Gap': float(result.amount_to_debt),
            'Allocated': float(result.amount_to_debt),
            'Shortfall': 0.0,
            'Status': 'Debt',
        })
    for line in result.lines:
        gap = float(line.funding_gap)
        allocated = float(line.allocated)
        rows.append({
            'Envelope': line.envelope_id,
            'Name': names.get(line.envelope_id, line.envelope_id),
            'Tier': line.priority_tier.value.title(),
            'Gap': gap,
            'Allocated': allocated,
            'Shortfall': float(line.shortfall),
            'Status': _line_status(line.locked, allocated, gap),
        })
    return pd.DataFrame(rows, columns=ALLOCATION_COLUMNS)


def goal_steps_frame(steps: Sequence[GoalStepStatus]) -> pd.DataFrame:
    """The Budget Way step table (one row per step)."""
    rows = [{
        'Step': step.number,
        'Title': step.title,
        'Status': step.state.value.title(),
        'Target': float(step.target),
        'Current': float(step.current),
        'Difference': float(step.difference),
        'Progress %': round(float(step.progress), 2),
        'Display Progress %': round(float(step.display_progress), 2),
        'Applicable': step.applicable,
        'Description': step.description,
    } for step in steps]
    return pd.DataFrame(rows, columns=STEP_COLUMNS)


def milestone_frame(progress: MilestoneProgress) -> pd.DataFrame:
    """Funding ladder with achieved/in-progress flags and progress in percent."""
    rows = [{
        'Milestone': m.label,
        'Threshold': m.threshold,
        'Achieved': m.achieved,
        'In Progress': m.in_progress,
        'Progress %': round(float(m.progress) * 100.0, 2),
    } for m in progress.milestones]
    return pd.DataFrame(rows, columns=['Milestone', 'Threshold', 'Achieved', 'In Progress', 'Progress %'])


def tier_summary_frame(summary: AllocationSummary) -> pd.DataFrame:
    """Allocated amount per tier, indexed by tier name."""
    series = pd.Series(
        {tier.value.title(): float(amount) for tier, amount in summary.by_tier.items()},
        name='Allocated',
        dtype=float,
    )
    frame = series.to_frame()
    frame.index.name = 'Tier'
    return frame
