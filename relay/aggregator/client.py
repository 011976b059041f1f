import asyncio
import logging
import threading
import time
import uuid
from typing import Any, Callable, Optional

from pydantic import ValidationError

from relay.aggregator.messages import (
    MetricReset,
    MetricsRequest,
    MetricsResponse,
    MetricUpdate,
    parse_message,
)
from relay.circuit_breaker.monitor import HealthMonitor
from relay.models.processor import ProcessorMetrics

logger = logging.getLogger(__name__)

Snapshot = dict[str, ProcessorMetrics]


class ClusterHealthMonitor(HealthMonitor):
    """
    Worker-side HealthMonitor for a multi-process deployment.

    Every recorded outcome and every reset updates the local copy and is
    forwarded to the aggregation authority. is_healthy() only reads the
    local copy, so the request hot path never waits on another process;
    the local view is best-effort and reflects only this worker's own
    traffic.

    fetch_snapshot() asks the authority for the consolidated view and falls
    back to the local snapshot when no reply arrives within response_timeout.
    """

    def __init__(
        self,
        worker_id: str,
        outbound: Any,
        inbound: Any,
        response_timeout: float = 1.0,
        failure_threshold: int = 3,
        recovery_timeout_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(
            failure_threshold=failure_threshold,
            recovery_timeout_seconds=recovery_timeout_seconds,
            clock=clock,
        )
        self.worker_id = worker_id
        self._outbound = outbound
        self._inbound = inbound
        self._response_timeout = response_timeout
        # request_id -> (loop, future) awaiting the authority's reply
        self._pending: dict[str, tuple[asyncio.AbstractEventLoop, asyncio.Future]] = {}
        self._pending_lock = threading.Lock()
        self._listener: Optional[threading.Thread] = None

    def record(self, processor_id: str, success: bool, latency_ms: float) -> None:
        super().record(processor_id, success, latency_ms)
        update = MetricUpdate(processor_id=processor_id, success=success, latency_ms=latency_ms)
        self._outbound.put(update.model_dump())

    def reset(self, processor_id: str) -> None:
        super().reset(processor_id)
        self._outbound.put(MetricReset(processor_id=processor_id).model_dump())

    async def fetch_snapshot(self) -> Snapshot:
        loop = asyncio.get_running_loop()
        request_id = uuid.uuid4().hex
        future: asyncio.Future = loop.create_future()
        with self._pending_lock:
            self._pending[request_id] = (loop, future)

        try:
            self._outbound.put(
                MetricsRequest(request_id=request_id, worker_id=self.worker_id).model_dump()
            )
            return await asyncio.wait_for(future, timeout=self._response_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"[worker {self.worker_id}] No metrics reply within "
                f"{self._response_timeout}s — using local snapshot"
            )
            return self.snapshot()
        finally:
            with self._pending_lock:
                self._pending.pop(request_id, None)

    def deliver(self, raw: dict) -> None:
        """Resolve the pending request a reply belongs to. Late replies are dropped."""
        try:
            message = parse_message(raw)
        except ValidationError:
            logger.warning(f"[worker {self.worker_id}] Dropping malformed reply: {raw!r}")
            return
        if not isinstance(message, MetricsResponse):
            return

        with self._pending_lock:
            waiter = self._pending.get(message.request_id)
        if waiter is None:
            logger.debug(f"[worker {self.worker_id}] Late reply {message.request_id} dropped")
            return
        loop, future = waiter
        loop.call_soon_threadsafe(_resolve, future, message.metrics)

    def _listen(self) -> None:
        while True:
            raw = self._inbound.get()
            if raw is None:
                break
            self.deliver(raw)

    def start(self) -> None:
        self._listener = threading.Thread(
            target=self._listen, name=f"metrics-listener-{self.worker_id}", daemon=True
        )
        self._listener.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._inbound.put(None)
        if self._listener is not None:
            self._listener.join(timeout)
            self._listener = None


def _resolve(future: asyncio.Future, metrics: Snapshot) -> None:
    if not future.done():
        future.set_result(metrics)
