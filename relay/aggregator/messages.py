"""
Messages exchanged between worker processes and the aggregation authority.

They cross process boundaries as plain dicts (``model_dump()``) so the
queues never need to pickle pydantic classes; ``parse_message`` turns a
dict back into the right model using the ``type`` discriminator.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from relay.models.processor import ProcessorMetrics


class MetricUpdate(BaseModel):
    """Fire-and-forget outcome of one processor attempt."""

    type: Literal["METRIC_UPDATE"] = "METRIC_UPDATE"
    processor_id: str
    success: bool
    latency_ms: float


class MetricReset(BaseModel):
    """Admin reset of one processor's breaker; the authority mirrors it."""

    type: Literal["METRIC_RESET"] = "METRIC_RESET"
    processor_id: str


class MetricsRequest(BaseModel):
    type: Literal["GET_METRICS_REQUEST"] = "GET_METRICS_REQUEST"
    request_id: str
    worker_id: str


class MetricsResponse(BaseModel):
    type: Literal["GET_METRICS_RESPONSE"] = "GET_METRICS_RESPONSE"
    request_id: str
    metrics: dict[str, ProcessorMetrics]


AggregatorMessage = Annotated[
    Union[MetricUpdate, MetricReset, MetricsRequest, MetricsResponse],
    Field(discriminator="type"),
]

_adapter: TypeAdapter[AggregatorMessage] = TypeAdapter(AggregatorMessage)


def parse_message(raw: dict) -> Union[MetricUpdate, MetricReset, MetricsRequest, MetricsResponse]:
    return _adapter.validate_python(raw)
