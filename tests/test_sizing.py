import pytest

from scorebot.sizing import calculate_kelly, suggest_size


@pytest.mark.parametrize("model_prob, price, direction, expected", [
    (0.6, 0.4, "YES", 0.25),     # raw Kelly 0.333, capped
    (0.55, 0.5, "YES", 0.10),
    (0.45, 0.5, "NO", 0.10),
    (0.3, 0.5, "YES", 0.0),      # negative edge never bets
    (0.0, 0.2, "NO", 0.25),
])
def test_calculate_kelly(model_prob, price, direction, expected):
    assert calculate_kelly(model_prob, price, direction) == pytest.approx(expected)


@pytest.mark.parametrize("price, direction", [
    (0.0, "YES"),
    (1.0, "YES"),
    (1.0, "NO"),
    (0.0, "NO"),
])
def test_calculate_kelly_degenerate_prices(price, direction):
    assert calculate_kelly(0.5, price, direction) == 0.0


@pytest.mark.parametrize("model_prob", [0.0, 0.2, 0.5, 0.8, 1.0])
@pytest.mark.parametrize("price", [0.01, 0.3, 0.7, 0.99])
@pytest.mark.parametrize("direction", ["YES", "NO"])
def test_kelly_is_bounded(model_prob, price, direction):
    assert 0.0 <= calculate_kelly(model_prob, price, direction) <= 0.25


@pytest.mark.parametrize("kelly, tier, liquidity, expected", [
    (0.01, "S", 100000, "skip"),
    (0.25, "D", 100000, "skip"),
    (0.25, "S", 4999, "small"),
    (0.20, "A", 100000, "large"),
    (0.20, "B", 100000, "medium"),
    (0.08, "S", 100000, "medium"),
    (0.05, "S", 100000, "small"),
    (0.02, "C", 5000, "small"),
])
def test_suggest_size(kelly, tier, liquidity, expected):
    assert suggest_size(kelly, tier, liquidity) == expected
