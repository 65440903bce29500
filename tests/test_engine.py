import random
from decimal import Decimal

import pytest

from budget_way import allocate, evaluate, run_budget_way
from budget_way.models import AllocationStrategy, GoalStep, LockState, SuggestionType
from budget_way.money import money_sum

from helpers import NO_DEBT, debt, env

STRATEGIES = ['credit_first', 'envelopes_only', 'hybrid']


def _allocated(result):
    return [(a.envelope_id, a.amount) for a in result.allocations]


def test_envelopes_only_fills_tiers_in_priority_order():
    result = allocate(
        [
            env('rent', 'essential', target=600),
            env('insurance', 'important', target=300),
            env('dining', 'extra', target=500),
        ],
        NO_DEBT,
        1000,
        'envelopes_only',
    )
    assert _allocated(result) == [
        ('rent', Decimal('600')),
        ('insurance', Decimal('300')),
        ('dining', Decimal('100')),
    ]
    assert result.amount_to_debt == 0
    assert result.remainder_unallocated == 0


def test_credit_first_sends_everything_to_debt_when_debt_exceeds_balance():
    envelopes = [env('rent', 'essential', target=600), env('dining', 'extra', target=500)]
    result = allocate(envelopes, debt(2000), 500, AllocationStrategy.CREDIT_FIRST)
    assert result.amount_to_debt == Decimal('500')
    assert result.remainder_unallocated == 0
    assert result.allocations == ()
    assert all(line.allocated == 0 for line in result.lines)


def test_hybrid_splits_between_debt_and_envelopes():
    envelopes = [env('rent', 'essential', target=250), env('gym', 'important', target=100)]
    result = allocate(envelopes, debt(2000), 500, 'hybrid', hybrid_amount=200)
    assert result.amount_to_debt == Decimal('200')
    assert result.envelope_pool == Decimal('300')
    assert _allocated(result) == [('rent', Decimal('250')), ('gym', Decimal('50'))]
    assert result.remainder_unallocated == 0


@pytest.mark.parametrize('strategy', STRATEGIES)
@pytest.mark.parametrize('balance', [0, 300, 5000])
def test_safety_net_locked_and_unfunded_while_debt_exists(strategy, balance):
    envelopes = [env('safety', 'essential', target=1000, suggestion='safety_net')]
    result = run_budget_way(envelopes, debt(2000), balance, strategy, hybrid_amount=min(balance, 100))
    assert result.allocation.amount_for('safety') == 0
    assert result.lock_states[GoalStep.SAFETY_NET] is LockState.LOCKED


def test_empty_envelope_list_leaves_full_balance_unallocated():
    result = allocate([], NO_DEBT, 750, 'envelopes_only')
    assert result.allocations == ()
    assert result.remainder_unallocated == Decimal('750')


def test_everything_funded_is_a_normal_outcome():
    result = run_budget_way([env('rent', target=100, current=100)], NO_DEBT, 40, 'credit_first')
    assert result.allocations == ()
    assert result.amount_to_debt == 0
    assert result.remainder_unallocated == Decimal('40')


def test_run_budget_way_bundles_progress_states_and_recommendation():
    envelopes = [
        {'id': 'rent', 'name': 'Rent', 'priority': 'essential', 'subtype': 'bill',
         'target_amount': '1200', 'current_amount': '400', 'due_day': 1},
        {'id': 'starter', 'name': 'Starter Stash', 'suggestion_type': 'starter-stash',
         'priority': 'essential', 'target_amount': 1000, 'current_amount': 300},
        {'id': 'cc', 'name': 'CC Holding', 'suggestion_type': 'cc-holding',
         'target_amount': 500},
    ]
    result = run_budget_way(
        envelopes,
        {'starting_debt': 3000, 'current_debt': 1800, 'active_debt': {'name': 'Visa', 'balance': 650}},
        2000,
        'hybrid',
        hybrid_amount='400',
    )

    assert result.amount_to_debt == Decimal('400')
    assert _allocated(result.allocation) == [
        ('rent', Decimal('800')),
        ('starter', Decimal('700')),
    ]
    assert result.remainder_unallocated == Decimal('100')
    assert result.progress.total_count == 1
    assert result.lock_states[GoalStep.DEBT] is LockState.ACTIVE
    assert result.lock_states[GoalStep.CC_HOLDING] is LockState.LOCKED
    assert result.recommendation.strategy is AllocationStrategy.CREDIT_FIRST
    assert [s.number for s in result.steps] == [1, 2, 3, 4, 5]


def test_evaluate_without_allocating():
    progress, states, steps = evaluate([env('rent', target=100, current=100)], None)
    assert progress.overall_progress == 100
    assert states[GoalStep.ESSENTIALS] is LockState.COMPLETED
    assert states[GoalStep.DEBT] is LockState.COMPLETED
    assert len(steps) == 5


def test_hybrid_amount_is_ignored_for_other_strategies():
    result = allocate([env('rent', target=100)], debt(50), 100, 'envelopes_only', hybrid_amount=99999)
    assert result.amount_to_debt == 0


# Properties over generated inputs ------------------------------------------

def _random_money(rng, upper_cents):
    return Decimal(rng.randint(0, upper_cents)) / 100


def _random_case(rng):
    envelopes = []
    for index in range(rng.randint(0, 12)):
        suggestion = rng.choice(list(SuggestionType)) if rng.random() < 0.3 else SuggestionType.NONE
        envelopes.append(env(
            f"env-{index:02d}",
            rng.choice(['essential', 'important', 'extra']),
            target=_random_money(rng, 300000),
            current=_random_money(rng, 200000),
            suggestion=suggestion.value,
            subtype=rng.choice(['bill', 'spending', 'savings', 'goal', 'tracking']),
            due_day=rng.choice([None, 1, 10, 28]),
            position=rng.randint(0, 3),
        ))
    current_debt = _random_money(rng, 400000) if rng.random() < 0.6 else Decimal('0')
    snapshot = debt(current=current_debt, starting=current_debt + _random_money(rng, 100000))
    balance = _random_money(rng, 800000)
    strategy = rng.choice(STRATEGIES)
    ceiling = min(snapshot.current_debt, balance)
    hybrid = (Decimal(rng.randint(0, int(ceiling * 100))) / 100) if strategy == 'hybrid' else None
    return envelopes, snapshot, balance, strategy, hybrid


CASES = [_random_case(random.Random(seed)) for seed in range(60)]


@pytest.mark.parametrize('case', CASES)
def test_allocation_properties(case):
    envelopes, snapshot, balance, strategy, hybrid = case
    result = allocate(envelopes, snapshot, balance, strategy, hybrid_amount=hybrid)
    by_id = {e.id: e for e in envelopes}

    # conservation
    total = money_sum(a.amount for a in result.allocations) + result.amount_to_debt + result.remainder_unallocated
    assert total == result.available_balance
    assert result.available_balance == balance

    # debt cap
    assert result.amount_to_debt <= min(snapshot.current_debt, result.available_balance)

    # gap cap and non-negative amounts
    for allocation in result.allocations:
        assert Decimal('0') < allocation.amount <= by_id[allocation.envelope_id].funding_gap
    assert result.remainder_unallocated >= 0

    # lock exclusion
    if snapshot.has_debt:
        for allocation in result.allocations:
            assert by_id[allocation.envelope_id].suggestion_type not in (
                SuggestionType.SAFETY_NET, SuggestionType.CC_HOLDING,
            )

    # priority monotonicity: nothing flows past an envelope left short
    open_lines = [line for line in result.lines if not line.locked]
    tiers = [line.priority_tier.rank for line in open_lines]
    assert tiers == sorted(tiers)
    short_seen = False
    for line in open_lines:
        if short_seen:
            assert line.allocated == 0
        if line.shortfall > 0:
            short_seen = True

    # anything left over means every open gap was filled
    if result.remainder_unallocated > 0:
        assert all(line.shortfall == 0 for line in open_lines)


@pytest.mark.parametrize('case', CASES[:10])
def test_identical_inputs_give_identical_results(case):
    envelopes, snapshot, balance, strategy, hybrid = case
    first = run_budget_way(envelopes, snapshot, balance, strategy, hybrid_amount=hybrid)
    second = run_budget_way(list(reversed(envelopes)), snapshot, balance, strategy, hybrid_amount=hybrid)
    assert first.allocation == second.allocation
    assert first == run_budget_way(envelopes, snapshot, balance, strategy, hybrid_amount=hybrid)
