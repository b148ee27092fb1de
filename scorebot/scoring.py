"""
Composite scorer and tier classifier.

Combines edge, signal strength, liquidity and volume activity into a
single 0-100 opportunity score and maps it onto the ordinal S/A/B/C/D tiers.
"""

import logging

from scorebot.models import MOMENTUM_NEUTRAL, TIERS, OpportunitySignal
from scorebot.utils import clamp

# Configure module logger
logger = logging.getLogger(__name__)

BASE_SCORE = 50.0

EDGE_WEIGHT = 0.3          # up to 30 points for a 100% edge
SIGNAL_POINTS = 25.0       # average signal weight x 25
LIQUIDITY_POINTS = 10.0    # liquidity score x 10
MAX_VOLUME_POINTS = 10.0   # 3 points per z, capped
MOMENTUM_POINTS = 5.0
LOW_ATTENTION_PENALTY = 5.0
LOW_ATTENTION_THRESHOLD = 0.2

# (minimum score, tier), checked from best to worst
TIER_THRESHOLDS = [
    (80.0, "S"),
    (65.0, "A"),
    (50.0, "B"),
    (35.0, "C"),
]


def calculate_composite_score(
    edge: float,
    delay_risk: float,
    attention_score: float,
    volume_z_score: float,
    liquidity_score: float,
    momentum: str,
    signals: list[OpportunitySignal]
) -> float:
    """
    Calculate the composite opportunity score.

    Starts at 50 and adds edge, average signal weight, liquidity, volume
    activity and momentum contributions; markets with very low attention
    lose 5 points (harder to exit). Delay risk is already reflected in
    the edge and does not contribute on its own.

    Args:
        edge: Model edge
        delay_risk: Normalized delay risk
        attention_score: Attention score (0.0 to 1.0)
        volume_z_score: Volume z-score
        liquidity_score: Normalized liquidity (0.0 to 1.0)
        momentum: Momentum regime
        signals: Generated opportunity signals

    Returns:
        Score between 0.0 and 100.0
    """
    score = BASE_SCORE

    score += abs(edge) * 100 * EDGE_WEIGHT

    if signals:
        avg_signal_weight = sum(signal.weight for signal in signals) / len(signals)
        score += avg_signal_weight * SIGNAL_POINTS

    score += liquidity_score * LIQUIDITY_POINTS

    score += min(MAX_VOLUME_POINTS, volume_z_score * 3)

    if momentum != MOMENTUM_NEUTRAL:
        score += MOMENTUM_POINTS

    if attention_score < LOW_ATTENTION_THRESHOLD:
        score -= LOW_ATTENTION_PENALTY

    return clamp(score, 0.0, 100.0)


def score_tier(score: float) -> str:
    """Map a composite score to its tier: S>=80, A>=65, B>=50, C>=35, else D."""
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return "D"


def tier_rank(tier: str) -> int:
    """Ordinal position of a tier, 0 for S. Unknown tiers rank below D."""
    try:
        return TIERS.index(tier)
    except ValueError:
        return len(TIERS)
