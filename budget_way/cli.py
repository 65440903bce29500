"""Command-line preview of a Budget Way run.

Loads a JSON scenario, runs the engine and prints the step table, the
allocation table and the per-tier summary::

    budget-way scenario.json --strategy hybrid --hybrid-amount 200

A scenario file looks like::

    {
      "available_balance": 1000,
      "strategy": "envelopes_only",
      "debt": {"starting_debt": 2000, "current_debt": 1500},
      "envelopes": [
        {"id": "rent", "name": "Rent", "priority": "essential",
         "subtype": "bill", "target_amount": 600, "current_amount": 0}
      ]
    }
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .engine import run_budget_way
from .errors import InvalidInput
from .money import format_currency
from .reporting import allocation_frame, goal_steps_frame, milestone_frame, tier_summary_frame
from .validation import validate_envelopes
from .waterfall import summarize_allocation

logger = logging.getLogger(__name__)

# Fields a scenario must set, either in the file or on the command line
REQUIRED_KEYS = ('available_balance', 'strategy')


def load_scenario(path: Path) -> Dict[str, Any]:
    """Read a scenario file, raising ``InvalidInput`` when it is not a JSON object."""
    try:
        with path.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidInput(f"{path} must contain a JSON object")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='budget-way',
        description='Preview how The Budget Way would allocate an available balance.',
    )
    parser.add_argument('scenario', type=Path, help='Path to a scenario JSON file')
    parser.add_argument('--strategy', choices=['credit_first', 'envelopes_only', 'hybrid'],
                        help='Override the scenario strategy')
    parser.add_argument('--hybrid-amount', help='Amount sent to debt under the hybrid strategy')
    parser.add_argument('--balance', help='Override the available balance')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log engine decisions')
    return parser


def render(scenario: Dict[str, Any], out=None) -> None:
    """Run the engine for ``scenario`` and print the tables."""
    out = out or sys.stdout
    missing = [key for key in REQUIRED_KEYS if scenario.get(key) in (None, '')]
    if missing:
        raise InvalidInput(f"Scenario is missing required fields: {', '.join(missing)}")
    envelopes = validate_envelopes(scenario.get('envelopes') or [])
    result = run_budget_way(
        envelopes=envelopes,
        debt=scenario.get('debt'),
        available_balance=scenario['available_balance'],
        strategy=scenario['strategy'],
        hybrid_amount=scenario.get('hybrid_amount'),
    )
    allocation = result.allocation
    lines: List[str] = [
        f"Available: {format_currency(allocation.available_balance)}",
        f"Strategy: {allocation.strategy.value} "
        f"(recommended: {result.recommendation.strategy.value} – {result.recommendation.reason})",
        f"To debt: {format_currency(allocation.amount_to_debt)}",
        f"To envelopes: {format_currency(allocation.total_to_envelopes)}",
        f"Unallocated: {format_currency(allocation.remainder_unallocated)}",
        '',
        'Goal steps:',
        goal_steps_frame(result.steps).drop(columns=['Description']).to_string(index=False),
        '',
        'Milestones:',
        milestone_frame(result.progress).to_string(index=False),
        '',
        'Allocations:',
        allocation_frame(allocation, envelopes).to_string(index=False),
        '',
        'By tier:',
        tier_summary_frame(summarize_allocation(allocation)).to_string(),
    ]
    print('\n'.join(lines), file=out)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if not args.scenario.exists():
        print(f"Scenario file not found: {args.scenario}", file=sys.stderr)
        return 1

    try:
        scenario = load_scenario(args.scenario)
        if args.strategy:
            scenario['strategy'] = args.strategy
        if args.hybrid_amount is not None:
            scenario['hybrid_amount'] = args.hybrid_amount
        if args.balance is not None:
            scenario['available_balance'] = args.balance
        render(scenario)
    except InvalidInput as exc:
        logger.debug("Rejected scenario %s", args.scenario, exc_info=True)
        print(f"Invalid scenario: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
