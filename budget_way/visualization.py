"""Plotly figures for allocation results and goal progress.

Both functions return a ``plotly.graph_objects.Figure`` that a presenter can
render as-is.  Layout beyond titles and axis labels is left to the caller.
"""

from __future__ import annotations

from typing import Sequence

import plotly.graph_objects as go

from .models import AllocationResult, GoalStepStatus, LockState, PriorityTier
from .waterfall import summarize_allocation

STATE_COLOURS = {
    LockState.COMPLETED: '#7A9E9A',
    LockState.ACTIVE: '#6B9ECE',
    LockState.PENDING: '#C9CED6',
    LockState.LOCKED: '#9CA3AF',
}


def create_allocation_waterfall(result: AllocationResult, title: str | None = None) -> go.Figure:
    """Waterfall of where the available balance flows.

    Parameters
    ----------
    result : AllocationResult
        Allocation computed by the engine.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Income bar, one decreasing bar each for debt and every priority
        tier, and a closing total for the unallocated remainder.
    """
    if result.available_balance <= 0:
        fig = go.Figure()
        fig.update_layout(title="No funds to allocate")
        return fig

    by_tier = summarize_allocation(result).by_tier
    labels = ['Available', 'Debt']
    values = [float(result.available_balance), -float(result.amount_to_debt)]
    for tier in PriorityTier:
        labels.append(tier.value.title())
        values.append(-float(by_tier.get(tier, 0)))
    labels.append('Unallocated')
    values.append(float(result.remainder_unallocated))
    measures = ['absolute'] + ['relative'] * (len(labels) - 2) + ['total']

    fig = go.Figure(go.Waterfall(
        x=labels,
        y=values,
        measure=measures,
        text=[f"${abs(v):,.2f}" for v in values],
        textposition='outside',
    ))
    fig.update_layout(
        title=title or f"Allocation ({result.strategy.value.replace('_', ' ')})",
        yaxis_title="Amount",
        showlegend=False,
    )
    return fig


def create_goal_progress_chart(steps: Sequence[GoalStepStatus], title: str | None = None) -> go.Figure:
    """Horizontal bar per goal step, coloured by state."""
    if not steps:
        fig = go.Figure()
        fig.update_layout(title="No data to display")
        return fig
    labels = [f"{s.number}. {s.title}" for s in steps]
    fig = go.Figure(go.Bar(
        x=[float(s.display_progress) for s in steps],
        y=labels,
        orientation='h',
        marker_color=[STATE_COLOURS[s.state] for s in steps],
        text=[s.state.value.title() for s in steps],
        textposition='auto',
    ))
    fig.update_layout(
        title=title or "The Budget Way",
        xaxis=dict(title="Progress %", range=[0, 100]),
        yaxis=dict(autorange='reversed'),
    )
    return fig
