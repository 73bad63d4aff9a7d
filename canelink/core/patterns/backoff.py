from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class LinearBackoff:
    """Wait ``base_delay * n`` seconds before the n-th retry (n is 1-indexed)."""
    base_delay: float = 3.0               # seconds
    max_attempts: int = 5

    def __post_init__(self):
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")

    def delay(self, attempt: int) -> float:
        if attempt < 1:
            raise ValueError(f"attempt numbers start at 1, got {attempt}")
        return self.base_delay * attempt

    def exhausted(self, attempts: int) -> bool:
        """True once ``attempts`` retries have already been spent."""
        return attempts >= self.max_attempts
