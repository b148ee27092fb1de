"""
Data models for the market opportunity scorer.

This module defines the core dataclasses used throughout the application
for representing market listings, snapshots, model outputs, signals and
the final advanced score. Engine types are frozen: every scoring pass
produces new objects and never updates one in place.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


# Trade directions
DIRECTION_YES = "YES"
DIRECTION_NO = "NO"
DIRECTION_WATCH = "WATCH"

# Momentum regimes
MOMENTUM_BULLISH = "bullish"
MOMENTUM_BEARISH = "bearish"
MOMENTUM_NEUTRAL = "neutral"

# Deadline urgency buckets
URGENCY_CRITICAL = "critical"
URGENCY_URGENT = "urgent"
URGENCY_MODERATE = "moderate"
URGENCY_DISTANT = "distant"
URGENCY_UNKNOWN = "unknown"

# Score tiers, best first
TIERS = ("S", "A", "B", "C", "D")

# Suggested position sizes
SIZE_SKIP = "skip"
SIZE_SMALL = "small"
SIZE_MEDIUM = "medium"
SIZE_LARGE = "large"

# Opportunity signal types
SIGNAL_DEADLINE_OVERPRICED = "deadline-overpriced"
SIGNAL_MOMENTUM_ENTRY = "momentum-entry"
SIGNAL_ATTENTION_ARBITRAGE = "attention-arbitrage"
SIGNAL_VOLUME_PRECURSOR = "volume-precursor"
SIGNAL_MEAN_REVERSION = "mean-reversion"


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Point-in-time observation of a market.

    Attributes:
        captured_at: When the observation was taken
        yes_price: Price of the YES outcome (0.0 to 1.0), None if unknown
        no_price: Price of the NO outcome, None if unknown
        volume_24h: Trailing 24-hour volume in USD
        liquidity: Available liquidity in USD
        price_change_1h: Signed YES-price change over the last hour
        price_change_24h: Signed YES-price change over the last 24 hours
    """
    captured_at: datetime
    yes_price: Optional[float] = None
    no_price: Optional[float] = None
    volume_24h: Optional[float] = None
    liquidity: Optional[float] = None
    price_change_1h: Optional[float] = None
    price_change_24h: Optional[float] = None


@dataclass(frozen=True)
class MarketContext:
    """
    Identity and descriptive attributes of a market.

    Attributes:
        id: Unique market identifier
        title: Market question/title
        rules: Resolution rules text
        description: Market description
        category: Market category/topic
        end_date: Structured resolution date, if the listing has one
    """
    id: str
    title: str
    rules: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    end_date: Optional[datetime] = None


@dataclass(frozen=True)
class MarketListing:
    """A scanned market: its context plus the snapshot observed at scan time."""
    context: MarketContext
    snapshot: MarketSnapshot


@dataclass(frozen=True)
class PricePoint:
    price: float
    timestamp: datetime


@dataclass(frozen=True)
class ModelOutput:
    """
    Result of the deadline delay model.

    Attributes:
        model_prob: Adjusted probability (0.0 to 1.0)
        delay_risk: Normalized delay penalty (0.0 to 1.0)
        confidence: Confidence in the adjustment (0.0 to 1.0)
        rationale: Human-readable reasons, in the order they were applied
    """
    model_prob: float
    delay_risk: float
    confidence: float
    rationale: tuple[str, ...] = ()


@dataclass(frozen=True)
class VolumeAnalysis:
    volume_z_score: float
    is_spike: bool
    rationale: str


@dataclass(frozen=True)
class PriceVelocity:
    velocity_1h: float
    velocity_24h: float
    acceleration: float


@dataclass(frozen=True)
class OpportunitySignal:
    """
    A typed, directional trading signal.

    Attributes:
        type: One of the SIGNAL_* constants
        strength: Signal strength (nominally 0.0 to 1.0)
        direction: "YES", "NO" or "WATCH"
        confidence: Confidence in the signal (0.0 to 1.0)
        rationale: Human-readable reasons
    """
    type: str
    strength: float
    direction: str
    confidence: float
    rationale: tuple[str, ...] = ()

    @property
    def weight(self) -> float:
        """Sort key used to rank signals: strength times confidence."""
        return self.strength * self.confidence


@dataclass(frozen=True)
class AdvancedScore:
    """
    Terminal result of one scoring pass over a market.

    Attributes:
        id: Market identifier
        title: Market title
        category: Market category
        current_yes_price: YES price of the newest snapshot
        current_no_price: NO price of the newest snapshot
        model_prob: Delay-adjusted probability
        edge: model_prob minus current_yes_price
        edge_direction: "YES" if edge >= 0 else "NO"
        delay_risk: Normalized delay risk (0.0 to 1.0)
        volatility: Standard deviation of recent YES prices
        liquidity: Liquidity of the newest snapshot in USD (0.0 if unknown)
        liquidity_score: Liquidity normalized to 0.0 to 1.0
        time_remaining_days: Days until the deadline, None if unknown
        urgency: Deadline urgency bucket
        attention_score: Market attention (0.0 to 1.0)
        volume_z_score: Volume z-score against recent history
        is_volume_spike: Whether the z-score marks a spike
        price_velocity_1h: 1-hour price change
        price_velocity_24h: 24-hour price change
        momentum: "bullish", "bearish" or "neutral"
        signals: Opportunity signals, strongest first
        primary_signal: First signal, None when there are none
        kelly_fraction: Clamped Kelly bet fraction (0.0 to 0.25)
        suggested_size: "skip", "small", "medium" or "large"
        composite_score: Overall score (0 to 100)
        tier: "S", "A", "B", "C" or "D"
        rationale: Rationale of the probability model
    """
    id: str
    title: str
    category: Optional[str]
    current_yes_price: float
    current_no_price: float
    model_prob: float
    edge: float
    edge_direction: str
    delay_risk: float
    volatility: float
    liquidity: float
    liquidity_score: float
    time_remaining_days: Optional[float]
    urgency: str
    attention_score: float
    volume_z_score: float
    is_volume_spike: bool
    price_velocity_1h: float
    price_velocity_24h: float
    momentum: str
    signals: tuple[OpportunitySignal, ...]
    primary_signal: Optional[OpportunitySignal]
    kelly_fraction: float
    suggested_size: str
    composite_score: float
    tier: str
    rationale: tuple[str, ...] = ()


@dataclass(frozen=True)
class DeadlineScore:
    """Delay-risk score of a single time-bound market."""
    id: str
    title: str
    market_prob: float
    model_prob: float
    edge: float
    delay_risk: float
    time_remaining_days: Optional[float]
    rationale: tuple[str, ...]
    yes_price: Optional[float] = None
    liquidity: Optional[float] = None


@dataclass(frozen=True)
class MovingMarketScore:
    """Price and volume movement summary of a single market."""
    id: str
    title: str
    current_price: float
    price_change_1h: Optional[float]
    price_change_24h: Optional[float]
    volume_spike: Optional[float]
    volume_z_score: float
    attention_score: float
    liquidity: Optional[float]
    velocity_1h: float
    velocity_24h: float
    acceleration: float


@dataclass(frozen=True)
class Opportunity:
    """
    Market flagged by the list-level opportunity detector.

    Attributes:
        type: "deadline-undervalued" or "momentum"
        market_id: ID of the flagged market
        title: Market title
        reason: Short reason for the flag
        attention: Attention score at detection time
        edge: Model edge (deadline opportunities only)
        price_change: 24h price change (momentum opportunities only)
    """
    type: str
    market_id: str
    title: str
    reason: str
    attention: float
    edge: Optional[float] = None
    price_change: Optional[float] = None
