"""
Statistical detectors over a market's snapshot history.

Each detector is an independent pure function. When there is not enough
data to say anything, a detector degrades to a neutral value (zero score,
no spike, zero velocity) instead of raising.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

from scorebot.models import PricePoint, PriceVelocity, VolumeAnalysis
from scorebot.utils import ensure_utc, utc_now

# Configure module logger
logger = logging.getLogger(__name__)

MIN_VOLUME_HISTORY = 3
SPIKE_Z_THRESHOLD = 2.0

# Attention normalization caps and weights
ATTENTION_VOLUME_CAP = 100000
ATTENTION_PRICE_CHANGE_CAP = 0.2
ATTENTION_LIQUIDITY_CAP = 50000
ATTENTION_VOLUME_WEIGHT = 0.4
ATTENTION_PRICE_WEIGHT = 0.4
ATTENTION_LIQUIDITY_WEIGHT = 0.2

LIQUIDITY_SCORE_CAP = 50000
VOLATILITY_WINDOW = 20


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _population_std(values: Sequence[float], mean: float) -> float:
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def volume_spike_score(
    current_volume: Optional[float],
    history: Sequence[Optional[float]]
) -> VolumeAnalysis:
    """
    Detect unusual volume with a one-sided z-score test.

    Only positive history values are used. With fewer than three usable
    points, or no variance, the z-score is 0 and no spike is reported.

    Args:
        current_volume: Current 24h volume
        history: Previous 24h volume observations

    Returns:
        VolumeAnalysis with z-score, spike flag (z > 2.0) and rationale
    """
    current = current_volume or 0.0
    usable = [v for v in history if v is not None and v > 0]

    if len(usable) < MIN_VOLUME_HISTORY:
        return VolumeAnalysis(
            volume_z_score=0.0,
            is_spike=False,
            rationale="Insufficient volume history",
        )

    mean = _mean(usable)
    std_dev = _population_std(usable, mean)

    if std_dev == 0:
        return VolumeAnalysis(
            volume_z_score=0.0,
            is_spike=False,
            rationale="No volume variance detected",
        )

    z_score = (current - mean) / std_dev
    is_spike = z_score > SPIKE_Z_THRESHOLD

    rationale = f"Current: {current:.0f}, Mean: {mean:.0f}, Z: {z_score:.2f}"
    if is_spike:
        rationale += " - SPIKE DETECTED"

    return VolumeAnalysis(
        volume_z_score=z_score,
        is_spike=is_spike,
        rationale=rationale,
    )


def price_velocity(
    price_history: Sequence[PricePoint],
    now: Optional[datetime] = None
) -> PriceVelocity:
    """
    Measure the rate of price change over 1-hour and 24-hour windows.

    Each velocity is the newest price minus the oldest price inside the
    window, or 0 when the window holds fewer than two points.
    Acceleration compares the 1h move with the average hourly 24h move.

    Args:
        price_history: Price observations in any order
        now: Reference time (defaults to the current UTC time)

    Returns:
        PriceVelocity with velocity_1h, velocity_24h and acceleration
    """
    if len(price_history) < 2:
        return PriceVelocity(velocity_1h=0.0, velocity_24h=0.0, acceleration=0.0)

    now = ensure_utc(now) if now else utc_now()
    ordered = sorted(price_history, key=lambda p: ensure_utc(p.timestamp), reverse=True)

    velocity_1h = _window_change(ordered, now - timedelta(hours=1))
    velocity_24h = _window_change(ordered, now - timedelta(hours=24))

    return PriceVelocity(
        velocity_1h=velocity_1h,
        velocity_24h=velocity_24h,
        acceleration=velocity_1h - velocity_24h / 24,
    )


def _window_change(ordered: Sequence[PricePoint], since: datetime) -> float:
    """Newest minus oldest price among newest-first points at or after since."""
    window = [p for p in ordered if ensure_utc(p.timestamp) >= since]
    if len(window) < 2:
        return 0.0
    return window[0].price - window[-1].price


def attention_score(
    volume: Optional[float],
    price_change_24h: Optional[float],
    liquidity: Optional[float]
) -> float:
    """
    Estimate how much participation a market currently attracts.

    Weighted sum of capped volume, absolute 24h price change and
    liquidity, each normalized to [0, 1]. Result is in [0, 1].
    """
    volume = volume or 0.0
    price_change = abs(price_change_24h or 0.0)
    liquidity = liquidity or 0.0

    volume_part = min(volume / ATTENTION_VOLUME_CAP, 1) * ATTENTION_VOLUME_WEIGHT
    price_part = min(price_change / ATTENTION_PRICE_CHANGE_CAP, 1) * ATTENTION_PRICE_WEIGHT
    liquidity_part = min(liquidity / ATTENTION_LIQUIDITY_CAP, 1) * ATTENTION_LIQUIDITY_WEIGHT

    return volume_part + price_part + liquidity_part


def realized_volatility(prices: Sequence[Optional[float]]) -> float:
    """
    Population standard deviation of recent prices.

    Takes the first VOLATILITY_WINDOW prices (newest first) and ignores
    missing or zero entries. Returns 0.0 with fewer than two usable prices.
    """
    window = [p for p in prices[:VOLATILITY_WINDOW] if p]
    if len(window) < 2:
        return 0.0
    return _population_std(window, _mean(window))


def liquidity_score(liquidity: Optional[float]) -> float:
    """Liquidity normalized to [0, 1] against LIQUIDITY_SCORE_CAP."""
    return min(1.0, (liquidity or 0.0) / LIQUIDITY_SCORE_CAP)
