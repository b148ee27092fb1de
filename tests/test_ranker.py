from dataclasses import replace
from datetime import timedelta

import pytest

from scorebot.engine import score_market_advanced
from scorebot.models import DeadlineScore, MovingMarketScore
from scorebot.ranker import (
    detect_opportunities,
    explain_score,
    filter_by_edge,
    filter_by_tier,
    rank_by_attention,
    rank_by_edge,
    rank_scores,
    score_deadline_market,
    score_moving_market,
)


@pytest.fixture
def base_score(make_context, make_snapshot, now):
    context = make_context(
        title="Will the bill pass by the end of the session?",
        category="Politics",
        end_date=now + timedelta(days=5),
    )
    return score_market_advanced(context, [make_snapshot(yes_price=0.2, liquidity=2000)], now=now)


def _deadline(market_id, edge):
    return DeadlineScore(
        id=market_id,
        title=f"Market {market_id}",
        market_prob=0.5,
        model_prob=0.5 + edge,
        edge=edge,
        delay_risk=0.5,
        time_remaining_days=10.0,
        rationale=[],
    )


def _mover(market_id, attention, change_24h=0.0):
    return MovingMarketScore(
        id=market_id,
        title=f"Market {market_id}",
        current_price=0.5,
        price_change_1h=None,
        price_change_24h=change_24h,
        volume_spike=None,
        volume_z_score=0.0,
        attention_score=attention,
        liquidity=None,
        velocity_1h=0.0,
        velocity_24h=0.0,
        acceleration=0.0,
    )


class TestScoreDeadlineMarket:
    def test_not_time_bound(self, make_context, make_snapshot, now):
        assert score_deadline_market(make_context(), make_snapshot(), now=now) is None

    def test_missing_price(self, make_context, make_snapshot, now):
        context = make_context(title="Will it launch by June?")
        assert score_deadline_market(context, make_snapshot(yes_price=None), now=now) is None

    def test_delay_adjusted_edge(self, make_context, make_snapshot, now):
        context = make_context(
            title="Will the court rule before the recess?",
            category="Legal",
            end_date=now + timedelta(days=20),
        )

        scored = score_deadline_market(context, make_snapshot(yes_price=0.6, liquidity=10000), now=now)

        assert scored.market_prob == 0.6
        assert scored.model_prob == pytest.approx(0.3)
        assert scored.edge == pytest.approx(-0.3)
        assert scored.delay_risk == pytest.approx(1.0)
        assert scored.time_remaining_days == pytest.approx(20.0)
        assert scored.liquidity == 10000


class TestScoreMovingMarket:
    def test_no_snapshots(self, make_context, now):
        assert score_moving_market(make_context(), [], now=now) is None

    def test_summarizes_movement(self, make_context, make_snapshot, now):
        snapshots = [
            make_snapshot(yes_price=0.7, volume_24h=500000, liquidity=50000, price_change_24h=0.2),
            make_snapshot(hours_ago=0.5, yes_price=0.6, volume_24h=50000),
            make_snapshot(hours_ago=2, yes_price=0.5, volume_24h=150000),
            make_snapshot(hours_ago=3, yes_price=0.5, volume_24h=50000),
            make_snapshot(hours_ago=4, yes_price=0.5, volume_24h=150000),
        ]

        moving = score_moving_market(make_context(), snapshots, now=now)

        assert moving.current_price == 0.7
        assert moving.volume_z_score == pytest.approx(8.0)
        assert moving.volume_spike == pytest.approx(8.0)
        assert moving.attention_score == pytest.approx(1.0)
        assert moving.velocity_1h == pytest.approx(0.1)
        assert moving.velocity_24h == pytest.approx(0.2)

    def test_no_spike_reports_none(self, make_context, make_snapshot, now):
        moving = score_moving_market(make_context(), [make_snapshot()], now=now)

        assert moving.volume_spike is None
        assert moving.volume_z_score == 0.0


def test_rank_and_filter_by_edge():
    scores = [_deadline("a", 0.02), _deadline("b", -0.3), _deadline("c", 0.1)]

    assert [s.id for s in rank_by_edge(scores)] == ["b", "c", "a"]
    assert [s.id for s in filter_by_edge(scores)] == ["b", "c"]
    assert [s.id for s in filter_by_edge(scores, min_edge=0.2)] == ["b"]


def test_rank_by_attention_drops_missing():
    ranked = rank_by_attention([_mover("a", 0.2), None, _mover("b", 0.9)])
    assert [m.id for m in ranked] == ["b", "a"]


def test_detect_opportunities():
    deadline_scores = [
        _deadline("quiet", -0.2),
        _deadline("crowded", -0.2),
        _deadline("untracked", 0.08),
        _deadline("small-edge", 0.01),
    ]
    moving_scores = [
        _mover("quiet", 0.1),
        _mover("crowded", 0.8, change_24h=-0.15),
        _mover("drifting", 0.9, change_24h=0.05),
        None,
    ]

    opportunities = detect_opportunities(deadline_scores, moving_scores)

    assert [(o.type, o.market_id) for o in opportunities] == [
        ("deadline-undervalued", "quiet"),
        ("deadline-undervalued", "untracked"),
        ("momentum", "crowded"),
    ]
    assert opportunities[1].attention == 0.0
    assert opportunities[2].price_change == -0.15
    assert opportunities[2].edge is None


def test_detect_opportunities_keeps_duplicate_movers():
    moving_scores = [_mover("dup", 0.8, change_24h=0.2), _mover("dup", 0.9, change_24h=-0.3)]

    opportunities = detect_opportunities([], moving_scores)

    assert [o.price_change for o in opportunities] == [0.2, -0.3]


def test_rank_scores_is_deterministic(base_score):
    scores = [
        replace(base_score, id="c", composite_score=70.0, edge=-0.1),
        replace(base_score, id="b", composite_score=70.0, edge=0.1),
        replace(base_score, id="a", composite_score=70.0, edge=0.3),
        replace(base_score, id="z", composite_score=90.0, edge=0.0),
    ]

    assert [s.id for s in rank_scores(scores)] == ["z", "a", "b", "c"]
    assert [s.id for s in rank_scores(list(reversed(scores)))] == ["z", "a", "b", "c"]


def test_filter_by_tier(base_score):
    scores = [replace(base_score, id=tier, tier=tier) for tier in ("S", "A", "B", "C", "D")]

    assert [s.id for s in filter_by_tier(scores)] == ["S", "A", "B", "C"]
    assert [s.id for s in filter_by_tier(scores, "a")] == ["S", "A"]
    assert len(filter_by_tier(scores, "D")) == 5


def test_explain_score(base_score):
    assert explain_score(base_score) == (
        "Score: 67.5 (A) | Edge: -20.0% (NO) | Delay risk: 100% | "
        "Time: 5 days | Momentum: neutral | Size: SMALL"
    )


@pytest.mark.parametrize("days, expected", [
    (None, "Time: unknown"),
    (0.25, "Time: 6 hours"),
    (0.0, "Time: expired"),
])
def test_explain_score_time_formats(base_score, days, expected):
    assert expected in explain_score(replace(base_score, time_remaining_days=days))
