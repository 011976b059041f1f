from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from relay.models.processor import OrchestrationResult


class PaymentInsights(BaseModel):
    optimization_reason: str
    processed_at: datetime


class PaymentResponse(BaseModel):
    status: Literal["success"] = "success"
    data: OrchestrationResult
    insights: PaymentInsights


class HealthResponse(BaseModel):
    status: str
    pid: int
    uptime_seconds: float
