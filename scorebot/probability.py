"""
Probability model for deadline-bound markets.

Adjusts a market's quoted probability for the risk that the event will
not resolve on schedule. The adjustment is a deterministic penalty built
from three components: time to deadline, liquidity and category.
"""

import logging
from datetime import datetime
from typing import Optional

from scorebot.deadline import time_remaining_days
from scorebot.models import ModelOutput
from scorebot.utils import clamp01

# Configure module logger
logger = logging.getLogger(__name__)

# Practical maximum accumulable penalty, used to normalize delay risk
MAX_DELAY_PENALTY = 0.30

NO_DEADLINE_CONFIDENCE = 0.3

# (upper bound in days, penalty, confidence, rationale); first match wins
TIME_BUCKETS = [
    (7, 0.25, 0.9, "< 7 days: Very high delay risk for unfinished items."),
    (30, 0.18, 0.85, "< 30 days: High delay risk; insufficient buffer."),
    (90, 0.10, 0.75, "< 90 days: Moderate delay risk."),
    (180, 0.04, 0.65, "< 6 months: Light delay risk."),
]
DISTANT_BUCKET = (0.02, 0.5, "> 6 months: Minimal delay risk from timeline.")

LOW_LIQUIDITY = 5000
MEDIUM_LIQUIDITY = 20000

# (keywords, penalty, rationale); first match wins
CATEGORY_ADJUSTMENTS = [
    (("crypto", "protocol"), 0.05, "Crypto/protocol: Historical delays common."),
    (("regulation", "legal"), 0.08, "Regulatory/legal: Procedural delays expected."),
    (("politics",), 0.03, "Politics: Moderate unpredictability."),
]


def deadline_delay_model(
    market_prob: float,
    end_date: Optional[datetime] = None,
    liquidity: Optional[float] = None,
    category: Optional[str] = None,
    now: Optional[datetime] = None
) -> ModelOutput:
    """
    Adjust market probability for deadline delay risk.

    Markets without a deadline are returned unadjusted with low confidence.
    Otherwise a delay penalty is accumulated from the time bucket, the
    liquidity band and the category, and subtracted from the market
    probability. Delay risk is the penalty normalized by MAX_DELAY_PENALTY.

    Args:
        market_prob: Market-implied probability (0.0 to 1.0)
        end_date: Resolution deadline
        liquidity: Market liquidity in USD
        category: Market category label
        now: Reference time (defaults to the current UTC time)

    Returns:
        ModelOutput with adjusted probability, delay risk, confidence and rationale
    """
    market_prob = clamp01(market_prob)
    days = time_remaining_days(end_date, now)

    if days is None:
        return ModelOutput(
            model_prob=market_prob,
            delay_risk=0.0,
            confidence=NO_DEADLINE_CONFIDENCE,
            rationale=("No deadline available; cannot assess delay risk.",),
        )

    rationale: list[str] = []

    # Time-based penalty
    delay_penalty, confidence, reason = _time_penalty(days)
    rationale.append(reason)

    # Liquidity-based adjustment (thin markets = noise)
    liq = liquidity or 0.0
    if liq < LOW_LIQUIDITY:
        delay_penalty += 0.08
        confidence *= 0.9
        rationale.append("Low liquidity: Price may be noisy/optimistic.")
    elif liq < MEDIUM_LIQUIDITY:
        delay_penalty += 0.04
        confidence *= 0.95
        rationale.append("Medium liquidity: Some noise expected.")
    else:
        rationale.append("High liquidity: Price likely more accurate.")

    # Category-specific adjustment
    cat = (category or "").lower()
    for keywords, penalty, reason in CATEGORY_ADJUSTMENTS:
        if any(keyword in cat for keyword in keywords):
            delay_penalty += penalty
            rationale.append(reason)
            break

    return ModelOutput(
        model_prob=clamp01(market_prob - delay_penalty),
        delay_risk=clamp01(delay_penalty / MAX_DELAY_PENALTY),
        confidence=confidence,
        rationale=tuple(rationale),
    )


def _time_penalty(days: float) -> tuple[float, float, str]:
    """Return (penalty, confidence, rationale) for the first matching time bucket."""
    for upper_bound, penalty, confidence, reason in TIME_BUCKETS:
        if days < upper_bound:
            return penalty, confidence, reason

    penalty, confidence, reason = DISTANT_BUCKET
    return penalty, confidence, reason
