"""
Reporter module for generating readable output of scored markets.

This module formats ranked advanced scores with their key metrics and
signals, plus any list-level opportunities, as a plain-text console report.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Optional

from scorebot.config import Config
from scorebot.models import TIERS, AdvancedScore, Opportunity
from scorebot.ranker import explain_score
from scorebot.utils import ensure_utc, format_currency, format_percentage, utc_now

# Configure module logger
logger = logging.getLogger(__name__)

RULE = "=" * 80
SUB_RULE = "-" * 80


def generate_report(
    scores: list[AdvancedScore],
    opportunities: Optional[list[Opportunity]] = None,
    max_scores: Optional[int] = None,
    now: Optional[datetime] = None
) -> str:
    """
    Generate a formatted report of ranked scores.

    Args:
        scores: List of AdvancedScore objects (should be pre-ranked)
        opportunities: Optional list-level opportunities to append
        max_scores: Maximum number of scores to include (uses Config if None)
        now: Timestamp shown in the header (defaults to the current UTC time)

    Returns:
        Formatted report string
    """
    if max_scores is None:
        max_scores = Config.MAX_SCORES_IN_REPORT

    generated = ensure_utc(now) if now else utc_now()
    shown = scores[:max_scores]

    sections = [
        _generate_header(len(scores), generated),
        _generate_summary(scores),
        _generate_scores_section(shown),
    ]
    if opportunities:
        sections.append(_generate_opportunities_section(opportunities))

    return "\n\n".join(sections)


def print_report(
    scores: list[AdvancedScore],
    opportunities: Optional[list[Opportunity]] = None,
    max_scores: Optional[int] = None,
    now: Optional[datetime] = None
) -> None:
    """
    Print report to console.

    Convenience function that generates and prints the report.
    """
    print(generate_report(scores, opportunities, max_scores=max_scores, now=now))


def _generate_header(score_count: int, generated: datetime) -> str:
    return "\n".join([
        RULE,
        "  PREDICTION MARKET SCORER - OPPORTUNITY REPORT",
        RULE,
        f"Generated: {generated.strftime('%Y-%m-%d %H:%M:%S UTC')}",
        f"Markets Scored: {score_count}",
        RULE,
    ])


def _generate_summary(scores: list[AdvancedScore]) -> str:
    """
    Generate summary statistics section.

    Args:
        scores: List of advanced scores

    Returns:
        Summary string
    """
    if not scores:
        return "No markets scored."

    tiers = Counter(score.tier for score in scores)
    sizes = Counter(score.suggested_size for score in scores)
    with_signals = sum(1 for score in scores if score.signals)
    avg_score = sum(score.composite_score for score in scores) / len(scores)
    avg_edge = sum(abs(score.edge) for score in scores) / len(scores)

    tier_line = "  ".join(f"{tier}: {tiers.get(tier, 0)}" for tier in TIERS)
    size_line = "  ".join(f"{size}: {count}" for size, count in sorted(sizes.items()))

    return "\n".join([
        "SUMMARY STATISTICS",
        SUB_RULE,
        f"Tiers: {tier_line}",
        f"Sizes: {size_line}",
        f"Markets With Signals: {with_signals}",
        f"Average Score: {avg_score:.1f}",
        f"Average Edge: {format_percentage(avg_edge)}",
    ])


def _generate_scores_section(scores: list[AdvancedScore]) -> str:
    """Generate the per-market section, one block per score."""
    if not scores:
        return "TOP MARKETS\n" + SUB_RULE + "\nNone."

    lines = ["TOP MARKETS", SUB_RULE]

    for idx, score in enumerate(scores, 1):
        lines.append(f"{idx}. [{score.tier}] {score.title}")
        lines.append(f"   {explain_score(score)}")
        lines.append(
            f"   Price: {score.current_yes_price:.3f} -> Model: {score.model_prob:.3f} | "
            f"Kelly: {format_percentage(score.kelly_fraction)} | "
            f"Liquidity: {format_currency(score.liquidity)} | "
            f"Attention: {score.attention_score:.2f} | "
            f"Volume z: {score.volume_z_score:.2f}"
        )

        for signal in score.signals:
            lines.append(
                f"   > {signal.type} {signal.direction} "
                f"(strength {signal.strength:.2f}, confidence {signal.confidence:.2f}): "
                f"{'; '.join(signal.rationale)}"
            )

        lines.append("")

    return "\n".join(lines).rstrip()


def _generate_opportunities_section(opportunities: list[Opportunity]) -> str:
    lines = ["OPPORTUNITIES", SUB_RULE]

    for opp in opportunities:
        detail = f"attention {opp.attention:.2f}"
        if opp.edge is not None:
            detail += f", edge {opp.edge * 100:+.1f}%"
        if opp.price_change is not None:
            detail += f", 24h move {opp.price_change * 100:+.1f}%"
        lines.append(f"- [{opp.type}] {opp.title}: {opp.reason} ({detail})")

    return "\n".join(lines)
