"""Errors raised by the orchestration core.

The core does not decide how these are reported. Each error carries the
context a caller needs (processor id, elapsed time, cause) and can be
flattened with ``to_dict()`` for logging or an HTTP body.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for every error raised by the relay core."""

    def to_dict(self) -> dict:
        return {"error": type(self).__name__, "message": str(self)}


class GatewayError(RelayError):
    """A single processor attempt failed."""

    def __init__(self, processor_id: str, cause: str, elapsed_ms: float = 0.0):
        self.processor_id = processor_id
        self.cause = cause
        self.elapsed_ms = elapsed_ms
        super().__init__(f"{processor_id}: {cause}")

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "processor_id": self.processor_id,
            "cause": self.cause,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }


class ProcessorError(GatewayError):
    """The processor signalled an internal failure."""


class ProcessorTimeout(GatewayError):
    """The processor did not answer within its bound."""

    def __init__(self, processor_id: str, timeout_ms: float, elapsed_ms: Optional[float] = None):
        self.timeout_ms = timeout_ms
        super().__init__(
            processor_id,
            f"timed out after {timeout_ms:.0f}ms",
            elapsed_ms if elapsed_ms is not None else timeout_ms,
        )


class FailoverExhausted(RelayError):
    """The single failover attempt failed as well. Terminal."""

    def __init__(self, fallback_id: str, cause: str, original_error: Optional[str] = None):
        self.fallback_id = fallback_id
        self.cause = cause
        self.original_error = original_error
        super().__init__(f"Failover to {fallback_id} failed: {cause}")

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "fallback_id": self.fallback_id,
            "cause": self.cause,
            "original_error": self.original_error,
        }


class UnknownProcessor(RelayError):
    """Routing resolved to an id the registry does not know."""

    def __init__(self, processor_id: str):
        self.processor_id = processor_id
        super().__init__(f"Processor '{processor_id}' is not registered")

    def to_dict(self) -> dict:
        return {**super().to_dict(), "processor_id": self.processor_id}
