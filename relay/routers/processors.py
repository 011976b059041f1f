from fastapi import APIRouter, HTTPException, Request

from relay.models.processor import ProcessorMetrics, ProcessorStatusResponse

router = APIRouter()


@router.get("/processors/metrics", response_model=dict[str, ProcessorMetrics])
async def get_processor_metrics(request: Request) -> dict[str, ProcessorMetrics]:
    """
    Health snapshot for every known processor:
    avgLatencyMs, approvalRate, totalVolume, circuitState, lastErrorRate.

    In a multi-process deployment this is the consolidated view from the
    aggregation authority (falling back to this worker's own view).
    """
    return await request.app.state.monitor.fetch_snapshot()


@router.get("/processors/status", response_model=list[ProcessorStatusResponse])
async def get_processor_status(request: Request) -> list[ProcessorStatusResponse]:
    """
    Circuit breaker detail for every registered processor, including the
    time left before an OPEN circuit is probed again.
    """
    monitor = request.app.state.monitor
    return [
        ProcessorStatusResponse(id=p.id, name=p.name, **monitor.status(p.id))
        for p in request.app.state.registry
    ]


def _known_or_404(processor_id: str, request: Request) -> None:
    if processor_id not in request.app.state.registry:
        raise HTTPException(status_code=404, detail=f"Processor '{processor_id}' not found")


@router.post(
    "/processors/{processor_id}/reset",
    tags=["Testing"],
    summary="Reset a processor's circuit breaker to CLOSED with zeroed counters",
)
async def reset_circuit_breaker(processor_id: str, request: Request) -> dict:
    _known_or_404(processor_id, request)
    request.app.state.monitor.reset(processor_id)
    return {"processor": processor_id, "action": "reset", "state": "CLOSED"}


@router.post(
    "/processors/{processor_id}/inject-failures",
    tags=["Testing"],
    summary="Record synthetic failures against a processor",
)
async def inject_failures(processor_id: str, count: int, request: Request) -> dict:
    """
    Records *count* failures directly on the processor's circuit breaker.
    Reaching the consecutive-failure threshold opens the circuit immediately.

    Use together with /processors/{id}/reset to demonstrate failover
    deterministically.
    """
    if count < 1 or count > 200:
        raise HTTPException(status_code=422, detail="count must be between 1 and 200")
    _known_or_404(processor_id, request)
    monitor = request.app.state.monitor
    monitor.inject_failures(processor_id, count)
    snap = monitor.status(processor_id)
    return {
        "processor": processor_id,
        "injected_failures": count,
        "state": snap["state"],
        "consecutive_failures": snap["consecutive_failures"],
    }
