import threading
import time
from typing import Callable, Optional

from relay.circuit_breaker.breaker import ProcessorHealth
from relay.config import Settings
from relay.models.processor import CircuitState, ProcessorMetrics


class HealthMonitor:
    """
    Stores one ProcessorHealth per processor id.
    Created once at app startup and handed to the engine; tests build
    their own so every test starts from fresh state.

    Entries are created lazily on the first recorded outcome. Each entry
    has its own lock, so updates for different processors never contend.
    """

    def __init__(
        self,
        failure_threshold: int = 3,
        recovery_timeout_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout_seconds
        self._clock = clock
        self._entries: dict[str, ProcessorHealth] = {}
        self._entries_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "HealthMonitor":
        return cls(
            failure_threshold=settings.CB_FAILURE_THRESHOLD,
            recovery_timeout_seconds=settings.CB_RECOVERY_TIMEOUT_SECONDS,
            **kwargs,
        )

    def get(self, processor_id: str) -> ProcessorHealth:
        with self._entries_lock:
            entry = self._entries.get(processor_id)
            if entry is None:
                entry = ProcessorHealth(
                    processor_id,
                    failure_threshold=self._failure_threshold,
                    recovery_timeout_seconds=self._recovery_timeout,
                    clock=self._clock,
                )
                self._entries[processor_id] = entry
            return entry

    # Pre-registering makes a processor show up in snapshots before any traffic
    register = get

    def find(self, processor_id: str) -> Optional[ProcessorHealth]:
        """Existing entry or None; read paths never create one."""
        with self._entries_lock:
            return self._entries.get(processor_id)

    def record(self, processor_id: str, success: bool, latency_ms: float) -> None:
        self.get(processor_id).record(success, latency_ms)

    def is_healthy(self, processor_id: str) -> bool:
        """
        True unless the processor is OPEN and its recovery timeout has not elapsed.

        This is a side-effecting read: the first call after the timeout
        flips OPEN -> HALF_OPEN. Processors never seen are healthy.
        """
        entry = self.find(processor_id)
        if entry is None:
            return True
        return entry.is_healthy()

    def metrics(self, processor_id: str) -> ProcessorMetrics:
        entry = self.find(processor_id)
        if entry is None:
            return ProcessorMetrics()
        return entry.metrics()

    def status(self, processor_id: str) -> dict:
        entry = self.find(processor_id)
        if entry is None:
            return {
                "state": CircuitState.CLOSED,
                "consecutive_failures": 0,
                "last_failure_at": None,
                "recovery_remaining_seconds": None,
            }
        return entry.status_snapshot

    def snapshot(self) -> dict[str, ProcessorMetrics]:
        with self._entries_lock:
            entries = list(self._entries.items())
        return {pid: entry.metrics() for pid, entry in entries}

    async def fetch_snapshot(self) -> dict[str, ProcessorMetrics]:
        """Best available snapshot; for a single process that is the local one."""
        return self.snapshot()

    def known_ids(self) -> list[str]:
        with self._entries_lock:
            return list(self._entries.keys())

    def reset(self, processor_id: str) -> None:
        entry = self.find(processor_id)
        if entry is not None:
            entry.reset()

    def inject_failures(self, processor_id: str, count: int) -> None:
        """
        Record *count* synthetic failures with zero latency.
        Intended for demo / integration-testing only.

        Each failure goes through record(), so a ClusterHealthMonitor forwards it.
        """
        for _ in range(count):
            self.record(processor_id, False, 0.0)
