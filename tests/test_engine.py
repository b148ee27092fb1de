from datetime import timedelta

import pytest

from scorebot.engine import score_market_advanced, score_markets


@pytest.fixture
def deadline_market(make_context, make_snapshot, now):
    context = make_context(
        title="Will the bill pass by the end of the session?",
        category="Politics",
        end_date=now + timedelta(days=5),
    )
    return context, [make_snapshot(yes_price=0.20, no_price=0.80, liquidity=2000)]


@pytest.fixture
def spiking_market(make_context, make_snapshot):
    history = [
        make_snapshot(hours_ago=hours, volume_24h=volume)
        for hours, volume in ((1, 50000), (2, 150000), (3, 50000), (4, 150000))
    ]
    latest = make_snapshot(
        volume_24h=500000,
        liquidity=50000,
        price_change_1h=0.0,
        price_change_24h=0.0,
    )
    return make_context(), [latest] + history


def test_no_snapshots_returns_none(make_context, now):
    assert score_market_advanced(make_context(), [], now=now) is None


@pytest.mark.parametrize("price", [0.0, 1.0, 1.2, -0.1])
def test_degenerate_price_returns_none(price, make_context, make_snapshot, now):
    assert score_market_advanced(make_context(), [make_snapshot(yes_price=price)], now=now) is None


def test_short_dated_overpriced_deadline_market(deadline_market, now):
    context, snapshots = deadline_market

    score = score_market_advanced(context, snapshots, now=now)

    assert score.id == "m1"
    assert score.category == "Politics"
    assert score.model_prob == 0.0
    assert score.delay_risk == 1.0
    assert score.edge == pytest.approx(-0.20)
    assert score.edge_direction == "NO"
    assert score.time_remaining_days == pytest.approx(5.0)
    assert score.urgency == "critical"
    assert score.attention_score == pytest.approx(0.008)
    assert score.momentum == "neutral"

    assert [s.type for s in score.signals] == ["deadline-overpriced", "attention-arbitrage"]
    assert score.primary_signal == score.signals[0]
    assert score.primary_signal.strength == pytest.approx(1.0)
    assert score.primary_signal.confidence == pytest.approx(0.9)
    assert score.signals[1].strength == pytest.approx(0.6)

    assert score.composite_score == pytest.approx(67.525)
    assert score.tier == "A"
    assert score.kelly_fraction == pytest.approx(0.25)
    assert score.suggested_size == "small"
    assert score.liquidity == 2000
    assert len(score.rationale) == 3


def test_scoring_is_deterministic(deadline_market, now):
    context, snapshots = deadline_market
    assert score_market_advanced(context, snapshots, now=now) == score_market_advanced(
        context, snapshots, now=now
    )


def test_score_is_immutable_and_hashable(deadline_market, now):
    context, snapshots = deadline_market

    score = score_market_advanced(context, snapshots, now=now)

    assert isinstance(score.signals, tuple)
    assert isinstance(score.rationale, tuple)
    assert isinstance(score.primary_signal.rationale, tuple)
    assert hash(score) == hash(score_market_advanced(context, snapshots, now=now))
    with pytest.raises(AttributeError):
        score.signals.append(score.primary_signal)


def test_volume_spike_without_price_move(spiking_market, now):
    context, snapshots = spiking_market

    score = score_market_advanced(context, snapshots, now=now)

    assert score.time_remaining_days is None
    assert score.urgency == "unknown"
    assert score.edge == 0.0
    assert score.edge_direction == "YES"
    assert score.volume_z_score == pytest.approx(8.0)
    assert score.is_volume_spike
    assert score.attention_score == pytest.approx(0.6)
    assert [s.type for s in score.signals] == ["volume-precursor"]
    assert score.primary_signal.direction == "WATCH"
    assert score.composite_score == pytest.approx(95.0)
    assert score.tier == "S"
    assert score.kelly_fraction == 0.0
    assert score.suggested_size == "skip"


def test_missing_prices_use_defaults(make_context, make_snapshot, now):
    score = score_market_advanced(make_context(), [make_snapshot(yes_price=None)], now=now)

    assert score.current_yes_price == 0.5
    assert score.current_no_price == 0.5


def test_no_price_derived_from_yes(make_context, make_snapshot, now):
    score = score_market_advanced(make_context(), [make_snapshot(yes_price=0.3)], now=now)
    assert score.current_no_price == pytest.approx(0.7)


def test_velocity_falls_back_to_history(make_context, make_snapshot, now):
    snapshots = [
        make_snapshot(yes_price=0.6),
        make_snapshot(hours_ago=0.5, yes_price=0.5),
        make_snapshot(hours_ago=10, yes_price=0.4),
    ]

    score = score_market_advanced(make_context(), snapshots, now=now)

    assert score.price_velocity_1h == pytest.approx(0.1)
    assert score.price_velocity_24h == pytest.approx(0.2)
    assert score.momentum == "bullish"
    assert score.volatility == pytest.approx(0.0816, abs=1e-4)


def test_snapshot_price_changes_take_precedence(make_context, make_snapshot, now):
    snapshots = [
        make_snapshot(yes_price=0.6, price_change_1h=-0.01, price_change_24h=-0.07),
        make_snapshot(hours_ago=0.5, yes_price=0.5),
    ]

    score = score_market_advanced(make_context(), snapshots, now=now)

    assert score.price_velocity_1h == pytest.approx(-0.01)
    assert score.price_velocity_24h == pytest.approx(-0.07)
    assert score.momentum == "bearish"


def test_deadline_parsed_from_text(make_context, make_snapshot, now):
    context = make_context(title="Will the merger close by March 31, 2026?")

    score = score_market_advanced(context, [make_snapshot(yes_price=0.5, liquidity=50000)], now=now)

    assert score.time_remaining_days == pytest.approx(74.5)
    assert score.urgency == "moderate"
    assert score.model_prob == pytest.approx(0.4)


@pytest.mark.parametrize("yes_price", [0.01, 0.25, 0.5, 0.75, 0.99])
@pytest.mark.parametrize("days", [None, 2, 45, 400])
def test_score_invariants(yes_price, days, make_context, make_snapshot, now):
    end_date = now + timedelta(days=days) if days is not None else None
    context = make_context(title="Will it ship by the deadline?", end_date=end_date, category="crypto")

    score = score_market_advanced(context, [make_snapshot(yes_price=yes_price, liquidity=8000)], now=now)

    assert 0.0 <= score.model_prob <= 1.0
    assert 0.0 <= score.delay_risk <= 1.0
    assert 0.0 <= score.composite_score <= 100.0
    assert 0.0 <= score.kelly_fraction <= 0.25
    assert score.edge == pytest.approx(score.model_prob - yes_price)
    assert score.tier in ("S", "A", "B", "C", "D")


def test_score_markets_drops_unscorable_and_keeps_order(make_context, make_snapshot, now):
    markets = [
        (make_context(id="b"), [make_snapshot(yes_price=0.4)]),
        (make_context(id="resolved"), [make_snapshot(yes_price=1.0)]),
        (make_context(id="empty"), []),
        (make_context(id="a"), [make_snapshot(yes_price=0.6)]),
    ]

    scores = score_markets(markets, now=now)

    assert [s.id for s in scores] == ["b", "a"]
