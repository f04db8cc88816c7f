"""Backoff strategies for zkgmbridge poll loops.

The packet tracker and the allowance confirmation loop both sleep between
attempts; the delay schedule for both comes from :class:`BackoffStrategy`.
"""

import random
from dataclasses import dataclass


@dataclass
class BackoffStrategy:
    """Backoff strategy configuration."""

    strategy_type: str = "fixed"  # fixed, linear, exponential
    base_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.strategy_type not in ("fixed", "linear", "exponential"):
            raise ValueError(f"Unknown backoff strategy: {self.strategy_type}")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")

    def get_delay(self, attempt: int) -> float:
        """Get delay before the given attempt (1-based)."""
        if attempt <= 0:
            return 0.0

        if self.strategy_type == "exponential":
            delay = self.base_delay * (self.multiplier ** (attempt - 1))
        elif self.strategy_type == "linear":
            delay = self.base_delay * attempt
        else:
            delay = self.base_delay

        # Cap at max delay
        delay = min(delay, self.max_delay)

        if self.jitter:
            delay *= random.uniform(0.5, 1.5)

        return delay

    @classmethod
    def fixed(cls, delay: float) -> "BackoffStrategy":
        """Constant delay between attempts."""
        return cls(strategy_type="fixed", base_delay=delay, max_delay=max(delay, 0.0))
