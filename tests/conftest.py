"""Shared fixtures for the scorer tests."""

from datetime import datetime, timedelta, timezone

import pytest

from scorebot.models import MarketContext, MarketSnapshot

# Thursday, 15 January 2026, noon UTC
NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_snapshot():
    """Factory for snapshots captured a number of hours before NOW."""
    def _make(hours_ago=0.0, **fields):
        fields.setdefault("yes_price", 0.5)
        return MarketSnapshot(captured_at=NOW - timedelta(hours=hours_ago), **fields)
    return _make


@pytest.fixture
def make_context():
    def _make(**fields):
        fields.setdefault("id", "m1")
        fields.setdefault("title", "Will the team win the championship?")
        return MarketContext(**fields)
    return _make
