"""
Market scanner for fetching active markets from Polymarket.

This module handles the retrieval and normalization of market data from the
Polymarket Gamma API. It performs no scoring - only data fetching and
transformation into MarketContext/MarketSnapshot pairs the engine consumes.
"""

import logging
from typing import Any, Optional
from datetime import datetime
import requests
from requests.exceptions import RequestException, Timeout, ConnectionError

from scorebot.config import Config
from scorebot.models import MarketContext, MarketListing, MarketSnapshot
from scorebot.utils import ensure_utc, retry_with_backoff, safe_float, safe_json_loads, utc_now

# Configure module logger
logger = logging.getLogger(__name__)


def fetch_listings(
    limit: Optional[int] = None,
    now: Optional[datetime] = None
) -> list[MarketListing]:
    """
    Fetch active markets from Polymarket Gamma API.

    Retrieves market data from Polymarket and normalizes it into
    MarketListing objects. Handles API failures gracefully and returns an
    empty list on error.

    Args:
        limit: Maximum number of markets to fetch. If None, uses Config.MAX_MARKETS_TO_SCAN.
        now: Capture time stamped on every snapshot (defaults to the current UTC time)

    Returns:
        List of MarketListing objects. Returns empty list on API failure
        or if no markets are found.
    """
    if limit is None:
        limit = Config.MAX_MARKETS_TO_SCAN

    captured_at = ensure_utc(now) if now else utc_now()

    logger.info(f"Fetching up to {limit} active markets from Polymarket")

    try:
        data = _request_markets(limit)
        logger.info(f"Received response with {len(data) if isinstance(data, list) else 'unknown'} markets")

        listings = _normalize_listings(data, captured_at)

        logger.info(f"Successfully normalized {len(listings)} markets")
        return listings

    except Timeout:
        logger.error(f"Request to Polymarket API timed out after {Config.API_TIMEOUT}s")
        return []

    except ConnectionError as e:
        logger.error(f"Connection error while fetching markets: {e}")
        return []

    except RequestException as e:
        logger.error(f"API request failed: {e}")
        if getattr(e, "response", None) is not None:
            logger.error(f"Response status: {e.response.status_code}")
            logger.error(f"Response body: {e.response.text[:500]}")
        return []

    except ValueError as e:
        logger.error(f"Failed to parse JSON response: {e}")
        return []


@retry_with_backoff(
    max_retries=Config.API_MAX_RETRIES,
    initial_delay=1.0,
    exceptions=(Timeout, ConnectionError)
)
def _request_markets(limit: int) -> Any:
    """Issue the Gamma /markets request and return the decoded JSON body."""
    url = f"{Config.GAMMA_API_URL}/markets"

    params = {
        "active": "true",
        "closed": "false",  # Only active markets
        "limit": limit,
        "offset": 0,
    }

    logger.debug(f"Requesting markets from {url} with params: {params}")

    response = requests.get(
        url,
        params=params,
        timeout=Config.API_TIMEOUT,
        headers={
            "Accept": "application/json",
            "User-Agent": "PolymarketScoreBot/1.0"
        }
    )

    response.raise_for_status()
    return response.json()


def _normalize_listings(api_data: Any, captured_at: datetime) -> list[MarketListing]:
    """
    Normalize raw API response data into MarketListing objects.

    Invalid entries are skipped and logged.

    Args:
        api_data: List of market dictionaries from Polymarket API.
        captured_at: Capture time for the snapshots.

    Returns:
        List of normalized MarketListing objects.
    """
    listings: list[MarketListing] = []

    if not isinstance(api_data, list):
        logger.warning(f"Expected list of markets, got {type(api_data)}")
        return listings

    for idx, market_data in enumerate(api_data):
        if not isinstance(market_data, dict):
            logger.warning(f"Skipping market at index {idx}: not an object")
            continue

        try:
            listing = parse_listing(market_data, captured_at)
            if listing:
                listings.append(listing)
        except Exception as e:
            logger.warning(f"Failed to parse market at index {idx}: {e}")
            logger.debug(f"Market data: {market_data}", exc_info=True)
            continue

    return listings


def parse_listing(data: dict, captured_at: Optional[datetime] = None) -> Optional[MarketListing]:
    """
    Parse a single Gamma market dictionary into a MarketListing.

    Args:
        data: Dictionary containing market data from API.
        captured_at: Capture time for the snapshot (defaults to now).

    Returns:
        MarketListing if the record has an id, None otherwise.
    """
    market_id = data.get("id")
    if not market_id:
        logger.debug("Market missing 'id' field, skipping")
        return None

    captured_at = ensure_utc(captured_at) if captured_at else utc_now()

    context = MarketContext(
        id=str(market_id),
        title=data.get("question") or data.get("title") or "Unknown Market",
        rules=data.get("rules") or None,
        description=data.get("description") or None,
        category=data.get("category") or None,
        end_date=_parse_end_date(data.get("endDate") or data.get("end_date")),
    )

    yes_price, no_price = _extract_prices(data)

    snapshot = MarketSnapshot(
        captured_at=captured_at,
        yes_price=yes_price,
        no_price=no_price,
        volume_24h=safe_float(data.get("volume24hr") or data.get("volume24h"), None),
        liquidity=safe_float(data.get("liquidityNum") or data.get("liquidity"), None),
        price_change_1h=safe_float(data.get("oneHourPriceChange"), None),
        price_change_24h=safe_float(data.get("oneDayPriceChange"), None),
    )

    return MarketListing(context=context, snapshot=snapshot)


def _extract_prices(data: dict) -> tuple[Optional[float], Optional[float]]:
    """
    Extract YES and NO prices from market data.

    Polymarket provides outcomes and outcomePrices as parallel arrays,
    often JSON-encoded: ["Yes", "No"] -> ["0.65", "0.35"]. Falls back to
    the first/second outcome when there are no Yes/No labels.

    Args:
        data: Market data dictionary.

    Returns:
        (yes_price, no_price); either may be None.
    """
    outcomes = safe_json_loads(data.get("outcomes"), [])
    outcome_prices = safe_json_loads(data.get("outcomePrices"), [])

    if not outcomes or not outcome_prices:
        logger.debug("Market missing outcomes or outcomePrices")
        return None, None

    # Ensure we have matching arrays
    if len(outcomes) != len(outcome_prices):
        logger.debug(f"Mismatched outcomes ({len(outcomes)}) and prices ({len(outcome_prices)})")
        return None, None

    labels = [str(outcome).lower() for outcome in outcomes]
    yes_index = labels.index("yes") if "yes" in labels else 0
    no_index = labels.index("no") if "no" in labels else (1 if len(labels) > 1 else None)

    yes_price = safe_float(outcome_prices[yes_index], None)
    no_price = safe_float(outcome_prices[no_index], None) if no_index is not None else None

    return yes_price, no_price


def _parse_end_date(date_str: Optional[str]) -> Optional[datetime]:
    """
    Parse end date string into a UTC datetime.

    Handles ISO 8601 format and common variations.

    Args:
        date_str: Date string from API (ISO 8601 format expected).

    Returns:
        Datetime object if parsing succeeds, None otherwise.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        # Try ISO 8601 format first
        return ensure_utc(datetime.fromisoformat(date_str.replace('Z', '+00:00')))
    except ValueError:
        pass

    # Try common alternative formats
    formats = [
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
    ]

    for fmt in formats:
        try:
            return ensure_utc(datetime.strptime(date_str, fmt))
        except ValueError:
            continue

    logger.debug(f"Could not parse end_date: {date_str}")
    return None
