from decimal import Decimal

from budget_way import config
from budget_way.progress import (
    calculate_milestone_progress,
    essentials_progress,
    ordinary_envelopes,
    progress_pct,
)

from helpers import env


def _mixed_envelopes():
    return [
        env('rent', 'essential', target=500, current=400),
        env('insurance', 'important', target=300, current=0),
        env('dining', 'extra', target=200, current=100),
        env('starter', 'essential', target=1000, current=0, suggestion='starter_stash'),
        env('fuel-log', 'extra', target=900, current=0, subtype='tracking'),
    ]


def test_progress_pct_clamps_and_treats_zero_target_as_complete():
    assert progress_pct(Decimal('250'), Decimal('1000')) == 25
    assert progress_pct(Decimal('1500'), Decimal('1000')) == 100
    assert progress_pct(Decimal('0'), Decimal('0')) == 100
    assert progress_pct(Decimal('50'), Decimal('0')) == 100
    assert progress_pct(Decimal('0'), Decimal('10')) == 0


def test_ordinary_envelopes_exclude_suggested_and_tracking():
    ids = [e.id for e in ordinary_envelopes(_mixed_envelopes())]
    assert ids == ['rent', 'insurance', 'dining']


def test_milestone_progress_headline_figures():
    progress = calculate_milestone_progress(_mixed_envelopes())

    assert progress.total_target == Decimal('1000')
    assert progress.total_current == Decimal('500')
    assert progress.overall_progress == 50
    assert progress.funding_gap == Decimal('500')
    assert progress.total_count == 3
    assert progress.needs_funding == 3
    assert progress.funded_count == 0
    assert progress.essentials_progress == 80
    # exactly at the threshold is not underfunded
    assert progress.essentials_underfunded is False
    assert progress.should_show_envelope_row is True


def test_essentials_underfunded_just_below_threshold():
    progress = calculate_milestone_progress([
        env('rent', 'essential', target=500, current=399),
        env('power', 'essential', target=0, current=0),
    ])
    assert progress.essentials_progress < 80
    assert progress.essentials_underfunded is True


def test_essentials_threshold_can_be_overridden(monkeypatch):
    envelopes = [env('rent', 'essential', target=500, current=400)]
    monkeypatch.setattr(config, 'ESSENTIALS_THRESHOLD', Decimal('90'))
    assert calculate_milestone_progress(envelopes).essentials_underfunded is True
    assert calculate_milestone_progress(envelopes, essentials_threshold=Decimal('50')).essentials_underfunded is False


def test_no_essential_envelopes_is_not_underfunded():
    assert essentials_progress([env('dining', 'extra', target=100, current=0)]) == 100
    progress = calculate_milestone_progress([env('dining', 'extra', target=100, current=0)])
    assert progress.essentials_underfunded is False


def test_empty_and_zero_target_inputs():
    empty = calculate_milestone_progress([])
    assert empty.overall_progress == 0
    assert empty.total_count == 0
    assert empty.needs_funding == 0

    zero = calculate_milestone_progress([env('misc', 'extra')])
    assert zero.overall_progress == 0
    assert zero.funded_count == 1
    assert zero.needs_funding == 0


def test_over_funded_envelopes_do_not_push_progress_past_100():
    progress = calculate_milestone_progress([
        env('rent', 'essential', target=200, current=300),
        env('power', 'essential', target=100, current=100),
    ])
    assert progress.overall_progress == 100
    assert progress.funding_gap == 0
    assert progress.funded_count == 2
    assert progress.should_show_envelope_row is False


def test_milestone_ladder_and_next_milestone():
    progress = calculate_milestone_progress([
        env('rent', 'essential', target=500, current=500),
        env('insurance', 'important', target=300, current=0),
        env('dining', 'extra', target=200, current=100),
    ])
    ladder = {m.id: m for m in progress.milestones}

    assert [m.label for m in progress.milestones] == [
        'Essentials Covered',
        'Important Covered',
        'My Budget Way Complete',
        'Extras Funded',
        'Everything On Track',
    ]
    assert ladder['essential'].achieved
    assert not ladder['important'].achieved
    assert not ladder['important'].in_progress
    # no suggested envelopes means nothing left to fund there
    assert ladder['budget_way'].achieved
    assert ladder['extra'].in_progress
    assert ladder['extra'].progress == Decimal('0.5')
    assert not ladder['complete'].in_progress
    assert progress.next_milestone.label == 'Important Covered'


def test_everything_on_track_in_progress_from_eighty_percent():
    progress = calculate_milestone_progress([
        env('rent', 'essential', target=1000, current=850),
    ])
    complete = progress.milestones[-1]
    assert complete.id == 'complete'
    assert complete.in_progress
    assert not complete.achieved
