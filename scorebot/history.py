"""
In-memory snapshot history.

Accumulates the snapshots observed on each scan so that the engine can
score markets against their recent history. Each market keeps a bounded,
newest-first list; the most recent context wins.
"""

import logging
import threading
from typing import Optional

from scorebot.config import Config
from scorebot.models import MarketContext, MarketListing, MarketSnapshot

# Configure module logger
logger = logging.getLogger(__name__)


class SnapshotHistory:
    """
    Bounded per-market snapshot store.

    Safe to share between the scheduler thread and the main thread.
    """

    def __init__(self, limit: Optional[int] = None):
        """
        Initialize an empty history.

        Args:
            limit: Snapshots kept per market. If None, uses Config.SNAPSHOT_HISTORY_LIMIT
        """
        self.limit = limit or Config.SNAPSHOT_HISTORY_LIMIT
        self._snapshots: dict[str, list[MarketSnapshot]] = {}
        self._contexts: dict[str, MarketContext] = {}
        self._lock = threading.Lock()

    def record(self, listing: MarketListing) -> None:
        """
        Record a scanned listing.

        Snapshots are kept ordered newest first by capture time; a snapshot
        with the same capture time as an existing one replaces it.
        """
        market_id = listing.context.id
        snapshot = listing.snapshot

        with self._lock:
            self._contexts[market_id] = listing.context

            existing = [
                s for s in self._snapshots.get(market_id, [])
                if s.captured_at != snapshot.captured_at
            ]
            existing.append(snapshot)
            existing.sort(key=lambda s: s.captured_at, reverse=True)

            self._snapshots[market_id] = existing[:self.limit]

    def record_all(self, listings: list[MarketListing]) -> None:
        for listing in listings:
            self.record(listing)
        logger.debug(f"Recorded {len(listings)} listings ({len(self)} markets tracked)")

    def snapshots(self, market_id: str) -> list[MarketSnapshot]:
        """Return a newest-first copy of a market's snapshots (empty if unknown)."""
        with self._lock:
            return list(self._snapshots.get(market_id, []))

    def context(self, market_id: str) -> Optional[MarketContext]:
        with self._lock:
            return self._contexts.get(market_id)

    def market_ids(self) -> list[str]:
        with self._lock:
            return list(self._contexts)

    def items(self) -> list[tuple[MarketContext, list[MarketSnapshot]]]:
        """Return (context, snapshots) pairs for every tracked market."""
        with self._lock:
            return [
                (context, list(self._snapshots.get(market_id, [])))
                for market_id, context in self._contexts.items()
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)
