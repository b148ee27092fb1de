"""
Market scoring engine.

This module runs the full scoring pipeline for a market:
1. Classify the market as time-bound and resolve its deadline
2. Adjust the market probability with the delay model
3. Run the volume, attention, velocity and volatility detectors
4. Generate opportunity signals
5. Compute the composite score and tier
6. Size the position with the Kelly criterion

Every function here is pure: no I/O, no shared state. The only
time-dependent input is `now`, which callers should pin when they need
reproducible output.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from scorebot.deadline import (
    deadline_urgency,
    extract_deadline,
    is_time_bound_market,
    time_remaining_days,
)
from scorebot.detectors import (
    attention_score,
    liquidity_score,
    price_velocity,
    realized_volatility,
    volume_spike_score,
)
from scorebot.models import (
    DIRECTION_NO,
    DIRECTION_YES,
    AdvancedScore,
    MarketContext,
    MarketSnapshot,
    PricePoint,
)
from scorebot.probability import deadline_delay_model
from scorebot.scoring import calculate_composite_score, score_tier
from scorebot.signals import detect_momentum, generate_signals, primary_signal
from scorebot.sizing import calculate_kelly, suggest_size
from scorebot.utils import calculate_edge, ensure_utc, utc_now

# Configure module logger
logger = logging.getLogger(__name__)

# Snapshots the engine reads, newest first
SNAPSHOT_WINDOW = 30
VOLUME_HISTORY_END = 20
VOLATILITY_WINDOW = 20

DEFAULT_YES_PRICE = 0.5


def score_market_advanced(
    context: MarketContext,
    snapshots: Sequence[MarketSnapshot],
    now: Optional[datetime] = None
) -> Optional[AdvancedScore]:
    """
    Score a market from its context and snapshot history.

    Args:
        context: Market identity and descriptive attributes
        snapshots: Snapshot history, newest first
        now: Reference time for all date-relative calculations
            (defaults to the current UTC time)

    Returns:
        AdvancedScore, or None when there are no snapshots or the current
        YES price is not strictly between 0 and 1
    """
    if not snapshots:
        logger.debug(f"Market {context.id} not scored: no snapshots")
        return None

    now = ensure_utc(now) if now else utc_now()
    window = list(snapshots[:SNAPSHOT_WINDOW])
    latest = window[0]

    current_yes = latest.yes_price if latest.yes_price is not None else DEFAULT_YES_PRICE
    current_no = latest.no_price if latest.no_price is not None else 1 - current_yes

    if current_yes <= 0 or current_yes >= 1:
        logger.debug(f"Market {context.id} not scored: degenerate YES price {current_yes}")
        return None

    is_by_date = is_time_bound_market(context.title, context.rules, context.description)
    deadline = extract_deadline(context.title, context.rules, context.end_date, now=now)

    # Delay model and edge
    model = deadline_delay_model(
        current_yes,
        end_date=deadline,
        liquidity=latest.liquidity,
        category=context.category,
        now=now,
    )
    edge = calculate_edge(model.model_prob, current_yes)
    edge_direction = DIRECTION_YES if edge >= 0 else DIRECTION_NO

    # Timing
    days_left = time_remaining_days(deadline, now)
    urgency = deadline_urgency(days_left)

    # Detectors
    volume_history = [s.volume_24h for s in window[1:VOLUME_HISTORY_END]]
    volume = volume_spike_score(latest.volume_24h, volume_history)

    attention = attention_score(latest.volume_24h, latest.price_change_24h, latest.liquidity)
    liquidity = latest.liquidity or 0.0
    liq_score = liquidity_score(liquidity)

    velocity_1h, velocity_24h = _velocities(latest, window, now)
    volatility = realized_volatility([s.yes_price for s in window[:VOLATILITY_WINDOW]])

    momentum = detect_momentum(velocity_1h, velocity_24h, volume.volume_z_score)

    # Signals
    signals = generate_signals(
        edge=edge,
        edge_direction=edge_direction,
        delay_risk=model.delay_risk,
        is_by_date=is_by_date,
        attention_score=attention,
        volume_z_score=volume.volume_z_score,
        is_volume_spike=volume.is_spike,
        momentum=momentum,
        velocity_24h=velocity_24h,
        time_remaining_days=days_left,
        liquidity=liquidity,
    )

    # Score, tier and sizing
    composite = calculate_composite_score(
        edge=edge,
        delay_risk=model.delay_risk,
        attention_score=attention,
        volume_z_score=volume.volume_z_score,
        liquidity_score=liq_score,
        momentum=momentum,
        signals=signals,
    )
    tier = score_tier(composite)
    kelly = calculate_kelly(model.model_prob, current_yes, edge_direction)

    return AdvancedScore(
        id=context.id,
        title=context.title,
        category=context.category,
        current_yes_price=current_yes,
        current_no_price=current_no,
        model_prob=model.model_prob,
        edge=edge,
        edge_direction=edge_direction,
        delay_risk=model.delay_risk,
        volatility=volatility,
        liquidity=liquidity,
        liquidity_score=liq_score,
        time_remaining_days=days_left,
        urgency=urgency,
        attention_score=attention,
        volume_z_score=volume.volume_z_score,
        is_volume_spike=volume.is_spike,
        price_velocity_1h=velocity_1h,
        price_velocity_24h=velocity_24h,
        momentum=momentum,
        signals=tuple(signals),
        primary_signal=primary_signal(signals),
        kelly_fraction=kelly,
        suggested_size=suggest_size(kelly, tier, liquidity),
        composite_score=composite,
        tier=tier,
        rationale=model.rationale,
    )


def _velocities(
    latest: MarketSnapshot,
    window: Sequence[MarketSnapshot],
    now: datetime
) -> tuple[float, float]:
    """
    1h and 24h velocities for the newest snapshot.

    The snapshot's own price-change fields are used when present; a
    missing field falls back to the velocity measured over the window.
    """
    if latest.price_change_1h is not None and latest.price_change_24h is not None:
        return latest.price_change_1h, latest.price_change_24h

    history = [
        PricePoint(price=s.yes_price, timestamp=s.captured_at)
        for s in window
        if s.yes_price
    ]
    measured = price_velocity(history, now)

    velocity_1h = latest.price_change_1h if latest.price_change_1h is not None else measured.velocity_1h
    velocity_24h = latest.price_change_24h if latest.price_change_24h is not None else measured.velocity_24h
    return velocity_1h, velocity_24h


def score_markets(
    markets: Iterable[tuple[MarketContext, Sequence[MarketSnapshot]]],
    now: Optional[datetime] = None
) -> list[AdvancedScore]:
    """
    Score a batch of markets against one shared reference time.

    Markets that cannot be scored are dropped. Input order is preserved.

    Args:
        markets: (context, snapshots) pairs
        now: Reference time shared by every market in the batch

    Returns:
        List of AdvancedScore objects
    """
    now = ensure_utc(now) if now else utc_now()

    scores: list[AdvancedScore] = []
    for context, snapshots in markets:
        score = score_market_advanced(context, snapshots, now=now)
        if score is not None:
            scores.append(score)

    logger.debug(f"Scored {len(scores)} markets")
    return scores
