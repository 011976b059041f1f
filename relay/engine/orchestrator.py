import logging
import time
from typing import Optional

from relay.circuit_breaker.monitor import HealthMonitor
from relay.config import Settings
from relay.exceptions import FailoverExhausted, GatewayError
from relay.models.payment import PaymentRequest
from relay.models.processor import OrchestrationResult, RouteDecision
from relay.models.risk import RiskAssessment, RiskLevel
from relay.engine.routing import Router
from relay.processors.base import AbstractProcessor, call_processor
from relay.processors.registry import ProcessorRegistry
from relay.risk.scorer import assess_risk

logger = logging.getLogger(__name__)


class OrchestrationEngine:
    """
    Scores, routes and settles one payment with at most one failover hop.

    Flow:
      HIGH risk          -> primary forced to the high-security processor
      otherwise          -> first matching routing rule, else the default
      primary unhealthy  -> never invoked; straight to failover
      primary succeeds   -> record success, return
      primary fails      -> record failure, failover
      failover succeeds  -> record success, tag retries=1 + original error
      failover fails     -> record failure, raise FailoverExhausted (no 3rd try)

    Health bookkeeping only takes the monitor's locks for the duration of
    each call; nothing is held across a processor invocation.
    """

    def __init__(
        self,
        registry: ProcessorRegistry,
        monitor: HealthMonitor,
        settings: Settings,
        router: Optional[Router] = None,
    ):
        self._registry = registry
        self._monitor = monitor
        self._settings = settings
        self._router = router or Router(
            settings.DEFAULT_PROCESSOR_ID or settings.FAILOVER_PROCESSOR_ID
        )

    @property
    def monitor(self) -> HealthMonitor:
        return self._monitor

    def choose_route(self, request: PaymentRequest, risk: RiskAssessment) -> RouteDecision:
        if risk.level == RiskLevel.HIGH:
            return RouteDecision(
                processor_id=self._settings.HIGH_SECURITY_PROCESSOR_ID,
                reason="High risk override to secure vault",
            )
        return self._router.decide(request)

    def failover_id_for(self, primary_id: str) -> str:
        if primary_id == self._settings.FAILOVER_PROCESSOR_ID:
            return self._settings.FAILOVER_ALTERNATE_ID
        return self._settings.FAILOVER_PROCESSOR_ID

    def _resolve(self, processor_id: str) -> AbstractProcessor:
        if self._settings.DEFAULT_PROCESSOR_ID:
            return self._registry.get_or_default(processor_id, self._settings.DEFAULT_PROCESSOR_ID)
        return self._registry.get(processor_id)

    async def orchestrate(self, request: PaymentRequest) -> OrchestrationResult:
        logger.info(f"New incoming request: {request.amount} {request.currency.value}")

        risk = assess_risk(request)
        logger.info(
            f"Risk assessment: {risk.level.value.upper()} (score={risk.score}, flags={risk.flags})"
        )

        route = self.choose_route(request, risk)
        if risk.level == RiskLevel.HIGH:
            logger.warning(f"HIGH RISK detected — overriding route to {route.processor_id}")

        processor = self._resolve(route.processor_id)

        # --- Circuit Breaker Gate ---
        # Checked on the processor actually resolved, which may be the default
        if not self._monitor.is_healthy(processor.id):
            logger.warning(f"[{processor.id}] Circuit OPEN — immediate failover")
            return await self._failover(
                request,
                risk,
                processor.id,
                original_error=f"circuit open for {processor.id}",
            )

        logger.info(f"Primary route: {processor.name} ({processor.id})")

        start = time.monotonic()
        try:
            result = await call_processor(processor, request, self._settings.PROCESSOR_TIMEOUT_MS)
        except GatewayError as exc:
            elapsed_ms = (time.monotonic() - start) * 1000
            self._monitor.record(processor.id, False, elapsed_ms)
            logger.warning(
                f"[{processor.id}] Primary route FAILED ({exc.cause}) after "
                f"{elapsed_ms:.1f}ms — failing over"
            )
            return await self._failover(request, risk, processor.id, original_error=str(exc))

        self._monitor.record(processor.id, True, result.processing_time_ms)
        logger.info(
            f"[{processor.id}] APPROVED txn={result.transaction_id} "
            f"latency={result.processing_time_ms:.1f}ms"
        )
        return OrchestrationResult(result=result, risk=risk, route=route)

    async def _failover(
        self,
        request: PaymentRequest,
        risk: RiskAssessment,
        primary_id: str,
        original_error: str,
    ) -> OrchestrationResult:
        failover_id = self.failover_id_for(primary_id)
        # Attempted regardless of its own circuit state
        processor = self._registry.get(failover_id)

        start = time.monotonic()
        try:
            result = await call_processor(processor, request, self._settings.PROCESSOR_TIMEOUT_MS)
        except GatewayError as exc:
            self._monitor.record(failover_id, False, (time.monotonic() - start) * 1000)
            logger.error(f"[{failover_id}] Failover route FAILED: {exc.cause}")
            raise FailoverExhausted(failover_id, exc.cause, original_error) from exc

        self._monitor.record(failover_id, True, result.processing_time_ms)
        logger.info(f"[{failover_id}] Auto-recovered via failover (original error: {original_error})")

        result = result.model_copy(
            update={
                "retries": 1,
                "original_error": original_error,
                "message": "Auto-recovered via dynamic failover",
            }
        )
        return OrchestrationResult(
            result=result,
            risk=risk,
            route=RouteDecision(
                processor_id=failover_id,
                reason=f"Failover from {primary_id}",
            ),
        )
