from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from relay.models.risk import RiskAssessment


class ProcessorResult(BaseModel):
    success: bool
    transaction_id: str
    processor_id: str
    fee: Decimal = Decimal("0")
    processing_time_ms: float = 0.0
    message: Optional[str] = None
    retries: Optional[int] = None          # set only when produced via failover
    original_error: Optional[str] = None   # primary failure that caused the failover


class CircuitState(str, Enum):
    CLOSED = "CLOSED"        # healthy, passing calls through
    OPEN = "OPEN"            # tripped, primary traffic is not routed here
    HALF_OPEN = "HALF_OPEN"  # recovery timeout elapsed, next outcome decides


class ProcessorMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    avg_latency_ms: float = Field(0.0, alias="avgLatencyMs")
    approval_rate: float = Field(1.0, alias="approvalRate")
    total_volume: int = Field(0, alias="totalVolume")
    circuit_state: CircuitState = Field(CircuitState.CLOSED, alias="circuitState")
    last_error_rate: float = Field(0.0, alias="lastErrorRate")


class ProcessorStatusResponse(BaseModel):
    id: str
    name: str
    state: CircuitState
    consecutive_failures: int
    last_failure_at: Optional[str] = None
    recovery_remaining_seconds: Optional[float] = None


class RouteDecision(BaseModel):
    processor_id: str
    reason: str


class OrchestrationResult(BaseModel):
    result: ProcessorResult
    risk: RiskAssessment
    route: RouteDecision
