from datetime import timedelta

import pytest

from scorebot.probability import deadline_delay_model


def _penalty(market_prob, output):
    return market_prob - output.model_prob


def test_no_deadline_leaves_probability_unchanged(now):
    output = deadline_delay_model(0.42, end_date=None, liquidity=1000, category="Crypto", now=now)

    assert output.model_prob == 0.42
    assert output.delay_risk == 0.0
    assert output.confidence == 0.3
    assert output.rationale == ("No deadline available; cannot assess delay risk.",)


def test_short_dated_illiquid_politics_market(now):
    output = deadline_delay_model(
        0.20,
        end_date=now + timedelta(days=5),
        liquidity=2000,
        category="Politics",
        now=now,
    )

    # 0.25 (time) + 0.08 (liquidity) + 0.03 (category) = 0.36
    assert output.model_prob == 0.0
    assert output.delay_risk == 1.0
    assert output.confidence == pytest.approx(0.81)
    assert len(output.rationale) == 3
    assert output.rationale[-1].startswith("Politics")


@pytest.mark.parametrize("days, penalty, confidence", [
    (3, 0.25, 0.9),
    (20, 0.18, 0.85),
    (60, 0.10, 0.75),
    (120, 0.04, 0.65),
    (400, 0.02, 0.5),
])
def test_time_buckets(days, penalty, confidence, now):
    output = deadline_delay_model(0.8, end_date=now + timedelta(days=days), liquidity=50000, now=now)

    assert output.model_prob == pytest.approx(0.8 - penalty)
    assert output.delay_risk == pytest.approx(penalty / 0.30)
    assert output.confidence == pytest.approx(confidence)
    assert output.rationale[-1] == "High liquidity: Price likely more accurate."


@pytest.mark.parametrize("liquidity, extra_penalty, confidence_factor", [
    (None, 0.08, 0.9),
    (4999, 0.08, 0.9),
    (5000, 0.04, 0.95),
    (19999, 0.04, 0.95),
    (20000, 0.0, 1.0),
])
def test_liquidity_adjustment(liquidity, extra_penalty, confidence_factor, now):
    output = deadline_delay_model(0.8, end_date=now + timedelta(days=400), liquidity=liquidity, now=now)

    assert _penalty(0.8, output) == pytest.approx(0.02 + extra_penalty)
    assert output.confidence == pytest.approx(0.5 * confidence_factor)


@pytest.mark.parametrize("category, extra_penalty", [
    ("Crypto", 0.05),
    ("DeFi Protocol", 0.05),
    ("Regulation", 0.08),
    ("Legal", 0.08),
    ("US-current-affairs Politics", 0.03),
    ("Crypto regulation", 0.05),
    ("Sports", 0.0),
    (None, 0.0),
])
def test_category_adjustment_first_match_wins(category, extra_penalty, now):
    output = deadline_delay_model(
        0.8,
        end_date=now + timedelta(days=400),
        liquidity=50000,
        category=category,
        now=now,
    )

    assert _penalty(0.8, output) == pytest.approx(0.02 + extra_penalty)


@pytest.mark.parametrize("market_prob", [0.0, 0.01, 0.3, 0.5, 0.99, 1.0])
@pytest.mark.parametrize("days", [None, 1, 10, 45, 150, 500])
@pytest.mark.parametrize("liquidity", [0, 10000, 100000])
def test_outputs_are_probabilities(market_prob, days, liquidity, now):
    end_date = now + timedelta(days=days) if days is not None else None
    output = deadline_delay_model(market_prob, end_date=end_date, liquidity=liquidity,
                                  category="legal", now=now)

    assert 0.0 <= output.model_prob <= 1.0
    assert 0.0 <= output.delay_risk <= 1.0
    assert 0.0 <= output.confidence <= 1.0


@pytest.mark.parametrize("liquidity, category", [
    (1000, None),
    (10000, "crypto"),
    (50000, "politics"),
])
def test_penalty_never_decreases_as_deadline_approaches(liquidity, category, now):
    penalties = [
        _penalty(0.95, deadline_delay_model(
            0.95,
            end_date=now + timedelta(days=days),
            liquidity=liquidity,
            category=category,
            now=now,
        ))
        for days in (400, 179, 100, 89, 31, 29, 8, 6, 1, 0)
    ]

    assert penalties == sorted(penalties)


def test_past_deadline_uses_most_severe_bucket(now):
    output = deadline_delay_model(0.9, end_date=now - timedelta(days=2), liquidity=50000, now=now)
    assert output.model_prob == pytest.approx(0.65)
