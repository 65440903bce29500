"""Top-level package for The Budget Way engine.

The engine tracks a household's progress through a fixed sequence of
financial milestones and decides how newly available money is spread
across budgeting envelopes.  The primary modules are:

* ``progress`` – milestone progress calculator
* ``locks`` – lock evaluator for the goal steps
* ``waterfall`` – strategy split and priority waterfall
* ``engine`` – validated entry points that tie everything together
* ``ledger`` – reference ledger applying results atomically
* ``reporting`` / ``visualization`` – pandas tables and Plotly figures

To preview a scenario from the command line you can execute:

```bash
budget-way scenario.json --strategy credit_first
```
"""

from .engine import BudgetWayResult, allocate, evaluate, run_budget_way
from .errors import BudgetWayError, InvalidInput, StaleSnapshotError
from .models import (
    ActiveDebt,
    AllocationResult,
    AllocationStrategy,
    DebtSnapshot,
    Envelope,
    EnvelopeAllocation,
    EnvelopeSubtype,
    GoalStep,
    LockState,
    MilestoneProgress,
    PriorityTier,
    SuggestionType,
)

__all__ = [
    'ActiveDebt',
    'AllocationResult',
    'AllocationStrategy',
    'BudgetWayError',
    'BudgetWayResult',
    'DebtSnapshot',
    'Envelope',
    'EnvelopeAllocation',
    'EnvelopeSubtype',
    'GoalStep',
    'InvalidInput',
    'LockState',
    'MilestoneProgress',
    'PriorityTier',
    'StaleSnapshotError',
    'SuggestionType',
    'allocate',
    'evaluate',
    'run_budget_way',
]
