import logging
import threading
import time
from typing import Callable, Optional

from relay.models.processor import CircuitState, ProcessorMetrics

logger = logging.getLogger(__name__)


class ProcessorHealth:
    """
    Consecutive-failure circuit breaker plus lifetime counters for one processor.

    States:
      CLOSED    -> traffic flows; failure_threshold consecutive failures trip it
      OPEN      -> unhealthy until recovery_timeout has passed since the last failure
      HALF_OPEN -> healthy again; next success closes, next failure re-opens

    Counters accumulate for the life of the process with no time decay, so
    approval_rate is skewed by old failures on long uptimes. Known limitation.
    """

    def __init__(
        self,
        processor_id: str,
        failure_threshold: int = 3,
        recovery_timeout_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.processor_id = processor_id
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout_seconds
        self._clock = clock
        self._lock = threading.Lock()

        self._total = 0
        self._successes = 0
        self._total_latency_ms = 0.0
        self._consecutive_failures = 0
        self._last_failure_at: Optional[float] = None
        self._state = CircuitState.CLOSED

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def record(self, success: bool, latency_ms: float) -> None:
        with self._lock:
            self._total += 1
            if success:
                self._successes += 1
                self._total_latency_ms += latency_ms
                self._consecutive_failures = 0
                if self._state == CircuitState.HALF_OPEN:
                    self._state = CircuitState.CLOSED
                    logger.info(f"[{self.processor_id}] Circuit CLOSED — recovery probe succeeded")
            else:
                self._consecutive_failures += 1
                self._last_failure_at = self._clock()
                if self._state == CircuitState.HALF_OPEN:
                    self._state = CircuitState.OPEN
                    logger.warning(f"[{self.processor_id}] Circuit re-OPENED — recovery probe failed")
                elif (
                    self._state == CircuitState.CLOSED
                    and self._consecutive_failures >= self._failure_threshold
                ):
                    self._state = CircuitState.OPEN
                    logger.warning(
                        f"[{self.processor_id}] Circuit OPEN after "
                        f"{self._consecutive_failures} consecutive failures"
                    )
            self._maybe_half_open()

    def is_healthy(self) -> bool:
        """
        False only while OPEN and inside the recovery timeout.
        Side effect: the first check after the timeout moves OPEN -> HALF_OPEN.
        """
        with self._lock:
            self._maybe_half_open()
            return self._state != CircuitState.OPEN

    def _maybe_half_open(self) -> None:
        if self._state != CircuitState.OPEN or self._last_failure_at is None:
            return
        if self._clock() - self._last_failure_at >= self._recovery_timeout:
            self._state = CircuitState.HALF_OPEN
            logger.info(f"[{self.processor_id}] Circuit HALF_OPEN — attempting recovery")

    def metrics(self) -> ProcessorMetrics:
        """Point-in-time metrics. May apply the OPEN -> HALF_OPEN transition."""
        with self._lock:
            self._maybe_half_open()
            total = self._total
            failures = total - self._successes
            return ProcessorMetrics(
                avg_latency_ms=(
                    self._total_latency_ms / max(self._successes, 1) if total > 0 else 0.0
                ),
                approval_rate=self._successes / total if total > 0 else 1.0,
                total_volume=total,
                circuit_state=self._state,
                last_error_rate=failures / total if total > 0 else 0.0,
            )

    def reset(self) -> None:
        """Reset to CLOSED with zeroed counters (for testing / admin)."""
        with self._lock:
            self._total = 0
            self._successes = 0
            self._total_latency_ms = 0.0
            self._consecutive_failures = 0
            self._last_failure_at = None
            self._state = CircuitState.CLOSED

    @property
    def status_snapshot(self) -> dict:
        """Thread-safe snapshot for the /processors/status endpoint."""
        with self._lock:
            self._maybe_half_open()
            now = self._clock()

            recovery_remaining = None
            if self._state == CircuitState.OPEN and self._last_failure_at is not None:
                elapsed = now - self._last_failure_at
                recovery_remaining = max(0.0, self._recovery_timeout - elapsed)

            last_failure = None
            if self._last_failure_at is not None:
                last_failure = f"{now - self._last_failure_at:.1f}s ago"

            return {
                "state": self._state,
                "consecutive_failures": self._consecutive_failures,
                "last_failure_at": last_failure,
                "recovery_remaining_seconds": recovery_remaining,
            }
