"""
Kelly-criterion position sizing.

Turns the model probability and the market price into a bet fraction and
a discrete size bucket. The fraction is capped at a quarter of bankroll
regardless of how confident the model is.
"""

import logging

from scorebot.models import (
    DIRECTION_YES,
    SIZE_LARGE,
    SIZE_MEDIUM,
    SIZE_SKIP,
    SIZE_SMALL,
)

# Configure module logger
logger = logging.getLogger(__name__)

MAX_KELLY_FRACTION = 0.25

MIN_KELLY_TO_TRADE = 0.02
MEDIUM_KELLY = 0.08
LARGE_KELLY = 0.15
SMALL_ONLY_LIQUIDITY = 5000


def calculate_kelly(model_prob: float, market_price: float, direction: str) -> float:
    """
    Calculate the clamped Kelly fraction for a binary market bet.

    A YES bet pays market_price to win 1; a NO bet pays (1 - market_price).

    Args:
        model_prob: Model probability of YES
        market_price: Current YES price
        direction: "YES" or "NO"

    Returns:
        Bet fraction between 0.0 and 0.25; 0.0 for a resolved/degenerate price
    """
    p = model_prob if direction == DIRECTION_YES else 1 - model_prob
    price = market_price if direction == DIRECTION_YES else 1 - market_price

    if price <= 0 or price >= 1:
        return 0.0

    # Net odds: win amount per unit staked
    b = (1 - price) / price

    # f = (bp - q) / b where q = 1 - p
    q = 1 - p
    kelly = (b * p - q) / b

    return max(0.0, min(MAX_KELLY_FRACTION, kelly))


def suggest_size(kelly: float, tier: str, liquidity: float) -> str:
    """
    Suggest a discrete position size.

    Thin markets are capped at "small" whatever the Kelly fraction says.

    Args:
        kelly: Clamped Kelly fraction
        tier: Composite score tier
        liquidity: Market liquidity in USD

    Returns:
        "skip", "small", "medium" or "large"
    """
    if kelly < MIN_KELLY_TO_TRADE or tier == "D":
        return SIZE_SKIP
    if liquidity < SMALL_ONLY_LIQUIDITY:
        return SIZE_SMALL

    if kelly >= LARGE_KELLY and tier in ("S", "A"):
        return SIZE_LARGE
    if kelly >= MEDIUM_KELLY:
        return SIZE_MEDIUM

    return SIZE_SMALL
