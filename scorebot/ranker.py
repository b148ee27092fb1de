"""
Ranker module for ordering and filtering scored markets.

This module provides the list-level views built on top of the engine:
deadline scoring, mover scoring, ranking by edge, attention or composite
score, and detection of high-edge/low-attention and momentum opportunities.
All orderings are deterministic.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from scorebot.deadline import extract_deadline, is_time_bound_market, time_remaining_days
from scorebot.detectors import attention_score, price_velocity, volume_spike_score
from scorebot.models import (
    AdvancedScore,
    DeadlineScore,
    MarketContext,
    MarketSnapshot,
    MovingMarketScore,
    Opportunity,
    PricePoint,
)
from scorebot.probability import deadline_delay_model
from scorebot.scoring import tier_rank
from scorebot.utils import clamp01, ensure_utc, utc_now

# Configure module logger
logger = logging.getLogger(__name__)

OPPORTUNITY_DEADLINE = "deadline-undervalued"
OPPORTUNITY_MOMENTUM = "momentum"

MOMENTUM_PRICE_CHANGE = 0.1


def score_deadline_market(
    context: MarketContext,
    snapshot: MarketSnapshot,
    now: Optional[datetime] = None
) -> Optional[DeadlineScore]:
    """
    Score a single time-bound market for deadline delay risk.

    Args:
        context: Market context
        snapshot: Current snapshot of the market
        now: Reference time (defaults to the current UTC time)

    Returns:
        DeadlineScore, or None if the market is not time-bound or has no YES price
    """
    if not is_time_bound_market(context.title, context.rules, context.description):
        return None

    if snapshot.yes_price is None:
        return None

    now = ensure_utc(now) if now else utc_now()
    market_prob = clamp01(snapshot.yes_price)
    deadline = extract_deadline(context.title, context.rules, context.end_date, now=now)

    model = deadline_delay_model(
        market_prob,
        end_date=deadline,
        liquidity=snapshot.liquidity,
        category=context.category,
        now=now,
    )

    return DeadlineScore(
        id=context.id,
        title=context.title,
        market_prob=market_prob,
        model_prob=model.model_prob,
        edge=model.model_prob - market_prob,
        delay_risk=model.delay_risk,
        time_remaining_days=time_remaining_days(deadline, now),
        rationale=model.rationale,
        yes_price=snapshot.yes_price,
        liquidity=snapshot.liquidity,
    )


def score_moving_market(
    context: MarketContext,
    snapshots: Sequence[MarketSnapshot],
    now: Optional[datetime] = None
) -> Optional[MovingMarketScore]:
    """
    Summarize price and volume movement of a market.

    Args:
        context: Market context
        snapshots: Snapshot history, newest first
        now: Reference time for the velocity windows

    Returns:
        MovingMarketScore, or None if there are no snapshots
    """
    if not snapshots:
        return None

    latest = snapshots[0]

    volume = volume_spike_score(
        latest.volume_24h,
        [s.volume_24h for s in snapshots[1:20]],
    )

    price_history = [
        PricePoint(price=s.yes_price, timestamp=s.captured_at)
        for s in snapshots
        if s.yes_price and s.yes_price > 0
    ]
    velocity = price_velocity(price_history, now)

    return MovingMarketScore(
        id=context.id,
        title=context.title,
        current_price=latest.yes_price or 0.0,
        price_change_1h=latest.price_change_1h,
        price_change_24h=latest.price_change_24h,
        volume_spike=volume.volume_z_score if volume.is_spike else None,
        volume_z_score=volume.volume_z_score,
        attention_score=attention_score(latest.volume_24h, latest.price_change_24h, latest.liquidity),
        liquidity=latest.liquidity,
        velocity_1h=velocity.velocity_1h,
        velocity_24h=velocity.velocity_24h,
        acceleration=velocity.acceleration,
    )


def rank_by_edge(markets: list[DeadlineScore]) -> list[DeadlineScore]:
    """Sort deadline scores by absolute edge, largest first."""
    return sorted(markets, key=lambda m: abs(m.edge), reverse=True)


def filter_by_edge(markets: list[DeadlineScore], min_edge: float = 0.05) -> list[DeadlineScore]:
    """Keep deadline scores whose absolute edge is at least min_edge."""
    return [m for m in markets if abs(m.edge) >= min_edge]


def rank_by_attention(markets: list[Optional[MovingMarketScore]]) -> list[MovingMarketScore]:
    """Drop missing entries and sort moving markets by attention, highest first."""
    present = [m for m in markets if m is not None]
    return sorted(present, key=lambda m: m.attention_score, reverse=True)


def detect_opportunities(
    deadline_scores: list[DeadlineScore],
    moving_scores: list[Optional[MovingMarketScore]],
    min_edge: float = 0.05,
    min_attention: float = 0.3
) -> list[Opportunity]:
    """
    Detect opportunities across deadline and mover views.

    Two kinds are reported:
    - deadline-undervalued: edge of at least min_edge on a market the
      crowd is not watching (attention below min_attention)
    - momentum: attention of at least min_attention with a 24h move
      larger than 10%

    Args:
        deadline_scores: Output of score_deadline_market
        moving_scores: Output of score_moving_market
        min_edge: Minimum absolute edge for deadline opportunities
        min_attention: Attention threshold separating the two kinds

    Returns:
        Deadline opportunities first, then momentum opportunities
    """
    movers = [m for m in moving_scores if m is not None]
    opportunities: list[Opportunity] = []

    for scored in deadline_scores:
        moving = next((m for m in movers if m.id == scored.id), None)
        attention = moving.attention_score if moving else 0.0

        if abs(scored.edge) >= min_edge and attention < min_attention:
            opportunities.append(Opportunity(
                type=OPPORTUNITY_DEADLINE,
                market_id=scored.id,
                title=scored.title,
                reason="High edge, low attention",
                attention=attention,
                edge=scored.edge,
            ))

    for moving in movers:
        if (
            moving.attention_score >= min_attention
            and abs(moving.price_change_24h or 0.0) > MOMENTUM_PRICE_CHANGE
        ):
            opportunities.append(Opportunity(
                type=OPPORTUNITY_MOMENTUM,
                market_id=moving.id,
                title=moving.title,
                reason="High attention + strong price movement",
                attention=moving.attention_score,
                price_change=moving.price_change_24h,
            ))

    logger.info(f"Detected {len(opportunities)} opportunities")
    return opportunities


def rank_scores(scores: list[AdvancedScore]) -> list[AdvancedScore]:
    """
    Rank advanced scores for display.

    Ordered by composite score, then absolute edge (both descending),
    then market id so that equal scores always come out in the same order.
    """
    return sorted(scores, key=lambda s: (-s.composite_score, -abs(s.edge), s.id))


def filter_by_tier(scores: list[AdvancedScore], min_tier: str = "C") -> list[AdvancedScore]:
    """Keep scores whose tier is min_tier or better."""
    cutoff = tier_rank(min_tier.upper())
    return [s for s in scores if tier_rank(s.tier) <= cutoff]


def explain_score(score: AdvancedScore) -> str:
    """
    Generate a one-line human-readable explanation of a score.

    Args:
        score: AdvancedScore to describe

    Returns:
        Explanation string
    """
    if score.time_remaining_days is None:
        time_str = "unknown"
    elif score.time_remaining_days >= 1:
        time_str = f"{score.time_remaining_days:.0f} days"
    elif score.time_remaining_days > 0:
        time_str = f"{score.time_remaining_days * 24:.0f} hours"
    else:
        time_str = "expired"

    return (
        f"Score: {score.composite_score:.1f} ({score.tier}) | "
        f"Edge: {score.edge * 100:+.1f}% ({score.edge_direction}) | "
        f"Delay risk: {score.delay_risk:.0%} | "
        f"Time: {time_str} | "
        f"Momentum: {score.momentum} | "
        f"Size: {score.suggested_size.upper()}"
    )
