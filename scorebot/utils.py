"""
Utility functions for the market opportunity scorer.

This module provides shared helper utilities used across the codebase.
All functions are pure helpers with no domain logic.
"""

import json
import logging
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

# Configure module logger
logger = logging.getLogger(__name__)

# Type variable for generic function typing
T = TypeVar('T')


def safe_json_loads(value: Any, default: Optional[Any] = None) -> Optional[Any]:
    """
    Parse a JSON-encoded string, or return the value as-is if already decoded.

    The Gamma API returns some list fields (outcomes, outcomePrices) as
    JSON-encoded strings and others as real lists.

    Args:
        value: JSON string, or an already-decoded list/dict
        default: Default value to return if parsing fails (default: None)

    Returns:
        Decoded value, or default if parsing fails
    """
    if isinstance(value, (list, dict)):
        return value

    if not value or not isinstance(value, str):
        return default

    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        logger.debug(f"JSON decode error: {e}")
        return default


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Return a timezone-aware datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calculate_edge(
    estimated_probability: float,
    market_probability: float
) -> float:
    """
    Calculate edge between estimated and market probability.

    Edge = estimated_probability - market_probability

    Positive edge means market is underpricing (estimated > market).
    Negative edge means market is overpricing (estimated < market).

    Args:
        estimated_probability: Estimated true probability (0.0 to 1.0)
        market_probability: Current market probability (0.0 to 1.0)

    Returns:
        Edge value (can be negative, zero, or positive)

    Raises:
        ValueError: If probabilities are outside [0.0, 1.0] range
    """
    if not (0.0 <= estimated_probability <= 1.0):
        raise ValueError(
            f"estimated_probability must be between 0.0 and 1.0, got {estimated_probability}"
        )

    if not (0.0 <= market_probability <= 1.0):
        raise ValueError(
            f"market_probability must be between 0.0 and 1.0, got {market_probability}"
        )

    return estimated_probability - market_probability


def retry_with_backoff(
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,)
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator for retrying function calls with exponential backoff.

    Retries the decorated function on specified exceptions with exponential
    backoff between attempts. Useful for API calls and network operations.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Initial delay in seconds before first retry (default: 1.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)
        exceptions: Tuple of exceptions to catch and retry on (default: Exception)

    Returns:
        Decorator function

    Example:
        @retry_with_backoff(max_retries=3, initial_delay=1.0)
        def api_call():
            # API call code
            pass
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            last_exception = None
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except exceptions as e:
                    last_exception = e

                    if attempt < max_retries:
                        logger.warning(
                            f"{func.__name__} failed (attempt {attempt + 1}/{max_retries + 1}): {e}. "
                            f"Retrying in {delay:.2f}s..."
                        )
                        time.sleep(delay)

                        # Calculate next delay with exponential backoff
                        delay = min(delay * exponential_base, max_delay)
                    else:
                        logger.error(
                            f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
                        )

            # All retries exhausted, raise last exception
            raise last_exception

        return wrapper

    return decorator


def clamp(value: float, min_value: float, max_value: float) -> float:
    """
    Clamp a value between minimum and maximum bounds.

    Args:
        value: Value to clamp
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Clamped value between min_value and max_value

    Raises:
        ValueError: If min_value > max_value
    """
    if min_value > max_value:
        raise ValueError(f"min_value ({min_value}) must be <= max_value ({max_value})")

    return max(min_value, min(value, max_value))


def clamp01(value: float) -> float:
    """Clamp a probability-like value to [0.0, 1.0]."""
    return max(0.0, min(1.0, value))


def safe_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Safely convert a value to float with a default fallback.

    Handles None, strings, integers, and floats. Returns default on failure.

    Args:
        value: Value to convert (string, int, float, or None)
        default: Default value if conversion fails (default: 0.0)

    Returns:
        Float value or default if conversion fails
    """
    if value is None:
        return default

    if isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        return float(value)

    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default

    return default


def format_percentage(value: float, decimals: int = 1) -> str:
    """
    Format a fraction as a percentage string.

    Args:
        value: Fraction (0.05 -> "5.0%")
        decimals: Number of decimal places (default: 1)

    Returns:
        Formatted percentage string (e.g., "65.5%")
    """
    return f"{value * 100.0:.{decimals}f}%"


def format_currency(value: float, decimals: int = 0) -> str:
    """
    Format a float value as a currency string.

    Args:
        value: Float value to format
        decimals: Number of decimal places (default: 0)

    Returns:
        Formatted currency string (e.g., "$1,234.56")
    """
    if decimals == 0:
        return f"${value:,.0f}"
    else:
        return f"${value:,.{decimals}f}"
