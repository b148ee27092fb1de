"""
Main orchestration module for the market opportunity scorer.

This module coordinates one scan-and-score cycle:
1. Fetch market listings from Polymarket
2. Record snapshots into the in-memory history
3. Score every tracked market with the engine
4. Rank and filter the scores
5. Detect list-level opportunities
6. Print the report
"""

import argparse
import logging
import signal
import sys
import time
from datetime import datetime
from functools import partial
from typing import Optional

from scorebot.config import Config
from scorebot.engine import score_markets
from scorebot.history import SnapshotHistory
from scorebot.models import AdvancedScore, Opportunity
from scorebot.ranker import (
    detect_opportunities,
    filter_by_edge,
    filter_by_tier,
    rank_by_attention,
    rank_by_edge,
    rank_scores,
    score_deadline_market,
    score_moving_market,
)
from scorebot.reporter import print_report
from scorebot.scanner import fetch_listings
from scorebot.scheduler import get_scheduler_status, start_scheduler, stop_scheduler
from scorebot.utils import utc_now


# Configure logging
def setup_logging() -> None:
    """Configure logging for the application."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_level = getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if Config.LOG_FILE:
        Config.ensure_directories()
        handlers.append(logging.FileHandler(Config.LOG_FILE))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )


logger = logging.getLogger(__name__)


def find_opportunities(
    history: SnapshotHistory,
    now: Optional[datetime] = None
) -> list[Opportunity]:
    """
    Run the deadline and mover views over the history and detect opportunities.

    Args:
        history: Snapshot history to read
        now: Reference time shared by both views

    Returns:
        List of detected opportunities
    """
    deadline_scores = []
    moving_scores = []

    for context, snapshots in history.items():
        if not snapshots:
            continue

        deadline = score_deadline_market(context, snapshots[0], now=now)
        if deadline:
            deadline_scores.append(deadline)

        moving_scores.append(score_moving_market(context, snapshots, now=now))

    return detect_opportunities(
        rank_by_edge(filter_by_edge(deadline_scores, Config.MIN_EDGE)),
        rank_by_attention(moving_scores),
        min_edge=Config.MIN_EDGE,
        min_attention=Config.MIN_ATTENTION,
    )


def run_pipeline(
    history: SnapshotHistory,
    limit: Optional[int] = None,
    min_tier: Optional[str] = None,
    top: Optional[int] = None
) -> Optional[list[AdvancedScore]]:
    """
    Execute one scan-and-score cycle.

    Args:
        history: Snapshot history shared across cycles
        limit: Maximum markets to fetch (uses Config if None)
        min_tier: Worst tier to keep (uses Config if None)
        top: Maximum markets in the report (uses Config if None)

    Returns:
        Ranked scores at or above min_tier, or None if the scan returned nothing
    """
    logger.info("Starting scan-and-score cycle")

    listings = fetch_listings(limit=limit)
    if not listings:
        logger.error("No markets fetched. Cycle aborted.")
        return None

    history.record_all(listings)
    logger.info(f"Tracking {len(history)} markets")

    now = utc_now()
    scores = rank_scores(score_markets(history.items(), now=now))
    logger.info(f"Scored {len(scores)} markets")

    kept = filter_by_tier(scores, min_tier or Config.MIN_TIER)
    logger.info(f"{len(kept)} markets at tier {min_tier or Config.MIN_TIER} or better")

    opportunities = find_opportunities(history, now=now)

    print_report(
        kept,
        opportunities,
        max_scores=top or Config.MAX_SCORES_IN_REPORT,
        now=now,
    )

    return kept


def main() -> int:
    """
    Main entry point for the scorer.

    Supports two modes:
    - Single run: Execute one cycle and exit
    - Scheduled: Run a cycle at intervals, building snapshot history

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(
        description="Prediction Market Opportunity Scorer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Score the current listings once
  python -m scorebot.main

  # Rescan every 15 minutes (SCAN_INTERVAL_MINUTES) and score against history
  python -m scorebot.main --schedule

  # Only show tier A or better, top 5
  python -m scorebot.main --min-tier A --top 5
        """
    )
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Run in scheduled mode (continuous execution at intervals)"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Minutes between cycles (overrides SCAN_INTERVAL_MINUTES config)"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum markets to fetch per cycle (overrides MAX_MARKETS_TO_SCAN)"
    )
    parser.add_argument(
        "--min-tier",
        choices=["S", "A", "B", "C", "D"],
        default=None,
        help="Worst tier to include in the report (overrides MIN_TIER)"
    )
    parser.add_argument(
        "--top",
        type=int,
        default=None,
        help="Maximum markets in the report (overrides MAX_SCORES_IN_REPORT)"
    )

    args = parser.parse_args()

    setup_logging()

    is_valid, errors = Config.validate()
    if not is_valid:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        return 1

    history = SnapshotHistory()
    pipeline = partial(
        run_pipeline,
        history,
        limit=args.limit,
        min_tier=args.min_tier,
        top=args.top,
    )

    if args.schedule:
        return _run_scheduled_mode(pipeline, args.interval)

    return _run_single_mode(pipeline)


def _run_single_mode(pipeline) -> int:
    """
    Run one cycle and exit.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        scores = pipeline()
        return 0 if scores is not None else 1

    except KeyboardInterrupt:
        logger.info("Cycle interrupted by user")
        return 130


def _run_scheduled_mode(pipeline, interval_minutes: Optional[int] = None) -> int:
    """
    Run in scheduled mode with continuous execution.

    Args:
        pipeline: Zero-argument callable running one cycle
        interval_minutes: Minutes between cycles. If None, uses Config.SCAN_INTERVAL_MINUTES

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    logger.info("Starting in scheduled mode")

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        stop_scheduler(wait=True)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not start_scheduler(pipeline, interval_minutes=interval_minutes):
        logger.error("Failed to start scheduler")
        return 1

    status = get_scheduler_status()
    logger.info(f"Interval: {status['interval_minutes']} minutes")
    if status["next_run_time"]:
        logger.info(f"Next run: {status['next_run_time']}")

    # Run initial cycle immediately
    logger.info("Running initial cycle...")
    pipeline()

    logger.info("Scheduler is running. Press Ctrl+C to stop.")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        stop_scheduler(wait=True)
        return 0


if __name__ == "__main__":
    sys.exit(main())
