"""Delay policy between upload attempts.

This module provides:
- backoff_delay: Exponential backoff for a given attempt number
- DEFAULT_* constants for the policy
"""

from __future__ import annotations

# Default retry configuration
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_BACKOFF = 60.0  # seconds


def backoff_delay(
    attempt: int,
    initial_backoff: float,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
) -> float:
    """Get the delay to wait after a failed attempt.

    Args:
        attempt: 1-based number of the attempt that just failed.
        initial_backoff: Delay after the first failure (0 disables waiting).
        backoff_multiplier: Multiplier applied for each further failure.
        max_backoff: Upper bound on the delay.

    Returns:
        Delay in seconds.
    """
    if initial_backoff <= 0 or attempt < 1:
        return 0.0
    return min(initial_backoff * backoff_multiplier ** (attempt - 1), max_backoff)
