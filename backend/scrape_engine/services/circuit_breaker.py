"""Per-board circuit breaker."""

import logging
import time

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Opens after ``threshold`` consecutive failures and stays open for ``cooldown`` seconds.

    A success resets the failure count. Once the cooldown elapses the
    breaker closes again and the next failure starts a fresh count.
    """

    def __init__(self, threshold: int, cooldown: float, name: str = ""):
        self.threshold = max(1, threshold)
        self.cooldown = cooldown
        self.name = name
        self.consecutive_failures = 0
        self.opened_at: float | None = None

    def _now(self) -> float:
        return time.monotonic()

    def _expire(self) -> None:
        if self.opened_at is not None and self._now() - self.opened_at >= self.cooldown:
            logger.info(f"Circuit for {self.name or 'board'} closed after cooldown")
            self.opened_at = None
            self.consecutive_failures = 0

    @property
    def is_open(self) -> bool:
        self._expire()
        return self.opened_at is not None

    @property
    def remaining(self) -> float:
        """Seconds until the breaker closes (0 when closed)."""
        if not self.is_open:
            return 0.0
        return max(self.cooldown - (self._now() - self.opened_at), 0.0)

    def record_success(self) -> None:
        self.consecutive_failures = 0
        self.opened_at = None

    def record_failure(self) -> None:
        self._expire()
        self.consecutive_failures += 1
        if self.opened_at is None and self.consecutive_failures >= self.threshold:
            self.opened_at = self._now()
            logger.warning(
                f"Circuit for {self.name or 'board'} opened after "
                f"{self.consecutive_failures} consecutive failures ({self.cooldown:.0f}s cooldown)"
            )

    def snapshot(self) -> dict:
        return {
            "open": self.is_open,
            "consecutive_failures": self.consecutive_failures,
            "threshold": self.threshold,
            "cooldown": self.cooldown,
            "remaining": round(self.remaining, 1),
        }
