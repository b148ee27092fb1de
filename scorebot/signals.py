"""
Signal generator that fuses model and detector output into trading signals.

Signals are produced by an ordered table of independent rules. Each rule
is a (predicate, builder) pair evaluated against the same inputs, so a
market may trigger any number of signals. New signal types are added by
appending a rule to SIGNAL_RULES.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from scorebot.models import (
    DIRECTION_NO,
    DIRECTION_WATCH,
    DIRECTION_YES,
    MOMENTUM_BEARISH,
    MOMENTUM_BULLISH,
    MOMENTUM_NEUTRAL,
    SIGNAL_ATTENTION_ARBITRAGE,
    SIGNAL_DEADLINE_OVERPRICED,
    SIGNAL_MEAN_REVERSION,
    SIGNAL_MOMENTUM_ENTRY,
    SIGNAL_VOLUME_PRECURSOR,
    OpportunitySignal,
)

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalInputs:
    """Everything a signal rule may look at for one market."""
    edge: float
    edge_direction: str
    delay_risk: float
    is_by_date: bool
    attention_score: float
    volume_z_score: float
    is_volume_spike: bool
    momentum: str
    velocity_24h: float
    time_remaining_days: Optional[float]
    liquidity: float


def detect_momentum(velocity_1h: float, velocity_24h: float, volume_z_score: float) -> str:
    """
    Classify the momentum regime of a market.

    A volume-confirmed move where the 1h and 24h velocities agree takes
    precedence; otherwise a 24h move beyond 5% alone sets the regime.

    Args:
        velocity_1h: 1-hour price change
        velocity_24h: 24-hour price change
        volume_z_score: Volume z-score

    Returns:
        "bullish", "bearish" or "neutral"
    """
    # Strong momentum: both velocities agree and volume confirms
    if velocity_1h > 0.02 and velocity_24h > 0.03 and volume_z_score > 1:
        return MOMENTUM_BULLISH
    if velocity_1h < -0.02 and velocity_24h < -0.03 and volume_z_score > 1:
        return MOMENTUM_BEARISH

    # Weak momentum
    if velocity_24h > 0.05:
        return MOMENTUM_BULLISH
    if velocity_24h < -0.05:
        return MOMENTUM_BEARISH

    return MOMENTUM_NEUTRAL


# 1. Market prices a deadline outcome well above the delay-adjusted model

def _is_deadline_overpriced(s: SignalInputs) -> bool:
    return s.is_by_date and s.delay_risk > 0.5 and s.edge < -0.05


def _deadline_overpriced(s: SignalInputs) -> OpportunitySignal:
    days = s.time_remaining_days
    return OpportunitySignal(
        type=SIGNAL_DEADLINE_OVERPRICED,
        strength=min(1.0, abs(s.edge) * 5),
        direction=DIRECTION_NO,
        confidence=0.7 + s.delay_risk * 0.2,
        rationale=(
            f"High delay risk ({s.delay_risk * 100:.0f}%)",
            f"Market overpriced by {abs(s.edge) * 100:.1f}%",
            f"Only {days:.0f} days remaining" if days and days < 30 else "Procedural delays expected",
        ),
    )


# 2. Directional move confirmed by a volume spike

def _is_momentum_entry(s: SignalInputs) -> bool:
    return s.momentum != MOMENTUM_NEUTRAL and s.is_volume_spike and abs(s.velocity_24h) > 0.08


def _momentum_entry(s: SignalInputs) -> OpportunitySignal:
    return OpportunitySignal(
        type=SIGNAL_MOMENTUM_ENTRY,
        strength=min(1.0, abs(s.velocity_24h) * 5),
        direction=DIRECTION_YES if s.momentum == MOMENTUM_BULLISH else DIRECTION_NO,
        confidence=0.6 + s.volume_z_score * 0.1,
        rationale=(
            f"Strong {s.momentum} momentum",
            f"Price moved {s.velocity_24h * 100:.1f}% in 24h",
            f"Volume spike detected (z={s.volume_z_score:.1f})",
        ),
    )


# 3. Sizable edge that the crowd has not noticed yet

def _is_attention_arbitrage(s: SignalInputs) -> bool:
    return s.attention_score < 0.3 and abs(s.edge) > 0.08


def _attention_arbitrage(s: SignalInputs) -> OpportunitySignal:
    return OpportunitySignal(
        type=SIGNAL_ATTENTION_ARBITRAGE,
        strength=abs(s.edge) * 3,
        direction=s.edge_direction,
        confidence=0.65,
        rationale=(
            "Low market attention",
            f"Significant edge: {s.edge * 100:.1f}%",
            "Potential early entry before crowd",
        ),
    )


# 4. Volume spike without a matching price move

def _is_volume_precursor(s: SignalInputs) -> bool:
    return s.is_volume_spike and abs(s.velocity_24h) < 0.03


def _volume_precursor(s: SignalInputs) -> OpportunitySignal:
    return OpportunitySignal(
        type=SIGNAL_VOLUME_PRECURSOR,
        strength=s.volume_z_score / 4,
        direction=DIRECTION_WATCH,
        confidence=0.5,
        rationale=(
            "Volume spike detected",
            "Price hasn't moved significantly yet",
            "Possible accumulation phase",
        ),
    )


# 5. Extreme move on exhausted volume, bet on the pullback

def _is_mean_reversion(s: SignalInputs) -> bool:
    return abs(s.velocity_24h) > 0.15 and s.volume_z_score > 2.5


def _mean_reversion(s: SignalInputs) -> OpportunitySignal:
    return OpportunitySignal(
        type=SIGNAL_MEAN_REVERSION,
        strength=min(1.0, abs(s.velocity_24h) * 3),
        direction=DIRECTION_NO if s.velocity_24h > 0 else DIRECTION_YES,
        confidence=0.55,
        rationale=(
            f"Extreme price move: {s.velocity_24h * 100:.1f}%",
            "High volume exhaustion likely",
            "Potential reversion opportunity",
        ),
    )


SIGNAL_RULES: list[tuple[Callable[[SignalInputs], bool], Callable[[SignalInputs], OpportunitySignal]]] = [
    (_is_deadline_overpriced, _deadline_overpriced),
    (_is_momentum_entry, _momentum_entry),
    (_is_attention_arbitrage, _attention_arbitrage),
    (_is_volume_precursor, _volume_precursor),
    (_is_mean_reversion, _mean_reversion),
]


def generate_signals(
    edge: float,
    edge_direction: str,
    delay_risk: float,
    is_by_date: bool,
    attention_score: float,
    volume_z_score: float,
    is_volume_spike: bool,
    momentum: str,
    velocity_24h: float,
    time_remaining_days: Optional[float],
    liquidity: float
) -> list[OpportunitySignal]:
    """
    Generate opportunity signals for one market.

    Every rule in SIGNAL_RULES is evaluated independently. The resulting
    signals are sorted by strength x confidence, descending; ties keep
    rule order.

    Returns:
        List of OpportunitySignal objects, strongest first
    """
    inputs = SignalInputs(
        edge=edge,
        edge_direction=edge_direction,
        delay_risk=delay_risk,
        is_by_date=is_by_date,
        attention_score=attention_score,
        volume_z_score=volume_z_score,
        is_volume_spike=is_volume_spike,
        momentum=momentum,
        velocity_24h=velocity_24h,
        time_remaining_days=time_remaining_days,
        liquidity=liquidity,
    )

    signals = [build(inputs) for applies, build in SIGNAL_RULES if applies(inputs)]
    signals.sort(key=lambda signal: signal.weight, reverse=True)

    return signals


def primary_signal(signals: list[OpportunitySignal]) -> Optional[OpportunitySignal]:
    """Return the strongest signal, or None when there are none."""
    return signals[0] if signals else None
