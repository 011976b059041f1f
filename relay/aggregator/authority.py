import logging
import threading
from dataclasses import dataclass, field
from multiprocessing.context import BaseContext
from typing import Any, Optional

from pydantic import ValidationError

from relay.aggregator.messages import (
    MetricReset,
    MetricsRequest,
    MetricsResponse,
    MetricUpdate,
    parse_message,
)
from relay.circuit_breaker.monitor import HealthMonitor

logger = logging.getLogger(__name__)


@dataclass
class ClusterChannels:
    """
    Queues linking workers to the authority.

    inbox:    every worker -> authority (updates and snapshot requests)
    outboxes: authority -> one worker, keyed by worker id (snapshot replies)
    """

    inbox: Any
    outboxes: dict[str, Any] = field(default_factory=dict)


def create_channels(worker_ids: list[str], ctx: BaseContext) -> ClusterChannels:
    return ClusterChannels(
        inbox=ctx.Queue(),
        outboxes={wid: ctx.Queue() for wid in worker_ids},
    )


class AggregationAuthority:
    """
    Single source of truth for circuit state across worker processes.

    Drains the shared inbox on a daemon thread, applies every forwarded
    outcome to its own HealthMonitor and answers snapshot requests on the
    requesting worker's outbox. Putting ``None`` on the inbox stops it.
    """

    def __init__(self, monitor: HealthMonitor, channels: ClusterChannels):
        self.monitor = monitor
        self._channels = channels
        self._thread: Optional[threading.Thread] = None

    def handle(self, raw: dict) -> None:
        try:
            message = parse_message(raw)
        except ValidationError:
            logger.warning(f"Dropping malformed aggregator message: {raw!r}")
            return

        if isinstance(message, MetricUpdate):
            self.monitor.record(message.processor_id, message.success, message.latency_ms)
        elif isinstance(message, MetricReset):
            self.monitor.reset(message.processor_id)
        elif isinstance(message, MetricsRequest):
            outbox = self._channels.outboxes.get(message.worker_id)
            if outbox is None:
                logger.warning(f"Metrics request from unknown worker {message.worker_id}")
                return
            response = MetricsResponse(
                request_id=message.request_id,
                metrics=self.monitor.snapshot(),
            )
            outbox.put(response.model_dump())
        else:
            logger.warning(f"Authority ignoring unexpected {message.type}")

    def serve_forever(self) -> None:
        logger.info("Aggregation authority listening for worker metrics")
        while True:
            raw = self._channels.inbox.get()
            if raw is None:
                break
            self.handle(raw)
        logger.info("Aggregation authority stopped")

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self.serve_forever, name="aggregation-authority", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._channels.inbox.put(None)
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


def run_authority(
    channels: ClusterChannels,
    failure_threshold: int,
    recovery_timeout_seconds: float,
) -> None:
    """Process entry point: serve until a None arrives on the inbox."""
    monitor = HealthMonitor(
        failure_threshold=failure_threshold,
        recovery_timeout_seconds=recovery_timeout_seconds,
    )
    AggregationAuthority(monitor, channels).serve_forever()
