import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from relay.circuit_breaker.monitor import HealthMonitor
from relay.config import Settings, settings as default_settings
from relay.engine.orchestrator import OrchestrationEngine
from relay.exceptions import FailoverExhausted, GatewayError, RelayError, UnknownProcessor
from relay.models.response import HealthResponse
from relay.processors.adyen_eu import AdyenEurope
from relay.processors.base import AbstractProcessor
from relay.processors.registry import ProcessorRegistry
from relay.processors.sec_vault import HighSecurityVault
from relay.processors.stripe_us import StripeUS
from relay.processors.uk_local import UKLocalAcquirer
from relay.routers import payments, processors

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def default_processors(settings: Settings) -> list[AbstractProcessor]:
    return [
        StripeUS(failure_rate=settings.SIMULATED_FAILURE_RATE),
        AdyenEurope(),
        UKLocalAcquirer(),
        HighSecurityVault(),
    ]


def create_app(
    settings: Optional[Settings] = None,
    processor_list: Optional[list[AbstractProcessor]] = None,
    monitor: Optional[HealthMonitor] = None,
) -> FastAPI:
    """
    Build the HTTP front for one worker.

    processor_list and monitor are injectable so tests (and the cluster
    launcher) can supply deterministic processors or a ClusterHealthMonitor.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- Startup ---
        logger.info(f"Payment relay worker {os.getpid()} starting up...")

        registry = ProcessorRegistry(
            processor_list if processor_list is not None else default_processors(settings)
        )
        health = monitor or HealthMonitor.from_settings(settings)

        # Pre-register so /processors/metrics lists every processor before any traffic
        for pid in registry.ids():
            health.register(pid)

        app.state.settings = settings
        app.state.registry = registry
        app.state.monitor = health
        app.state.engine = OrchestrationEngine(registry, health, settings)
        app.state.started_at = time.monotonic()

        logger.info(
            f"Processors loaded: {registry.ids()} | "
            f"failure_threshold={settings.CB_FAILURE_THRESHOLD} | "
            f"recovery_timeout={settings.CB_RECOVERY_TIMEOUT_SECONDS}s | "
            f"processor_timeout={settings.PROCESSOR_TIMEOUT_MS}ms"
        )

        yield

        # --- Shutdown ---
        logger.info(f"Payment relay worker {os.getpid()} shutting down.")
        for pid, m in health.snapshot().items():
            logger.info(
                f"Final [{pid}]: {m.total_volume} attempts | "
                f"{m.approval_rate:.1%} approval | state={m.circuit_state.value}"
            )

    app = FastAPI(
        title="Payment Relay Orchestrator",
        description=(
            "Risk-aware payment routing across interchangeable processors with "
            "per-processor circuit breaking and single-hop automatic failover."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(payments.router, tags=["Payments"])
    app.include_router(processors.router, tags=["Processor Health"])

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        status_code = 500 if isinstance(exc, UnknownProcessor) else 502
        if isinstance(exc, (GatewayError, FailoverExhausted)):
            logger.error(f"{request.method} {request.url.path} - {exc}")
        else:
            logger.error(f"{request.method} {request.url.path} - {exc}", exc_info=True)
        return JSONResponse(status_code=status_code, content={"status": "error", **exc.to_dict()})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred. Please try again later."},
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health(request: Request) -> HealthResponse:
        return HealthResponse(
            status="OK",
            pid=os.getpid(),
            uptime_seconds=round(time.monotonic() - request.app.state.started_at, 2),
        )

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "service": "Payment Relay Orchestrator",
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()
