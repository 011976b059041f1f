import asyncio
import time
from abc import ABC, abstractmethod

from relay.exceptions import GatewayError, ProcessorError, ProcessorTimeout
from relay.models.payment import PaymentRequest
from relay.models.processor import ProcessorResult


class AbstractProcessor(ABC):
    id: str
    name: str

    @abstractmethod
    async def process(self, request: PaymentRequest, timeout_ms: float) -> ProcessorResult:
        """
        Settle the given payment.
        Raises ProcessorError on failure; never returns a half-filled result.
        """


async def call_processor(
    processor: AbstractProcessor,
    request: PaymentRequest,
    timeout_ms: float,
) -> ProcessorResult:
    """
    Invoke *processor* raced against *timeout_ms*.

    On expiry the invocation is cancelled and its result discarded.
    Anything the processor raises comes back as a GatewayError subclass
    so callers only ever handle one family of failures.
    """
    start = time.monotonic()
    try:
        result = await asyncio.wait_for(
            processor.process(request, timeout_ms),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        raise ProcessorTimeout(
            processor.id, timeout_ms, elapsed_ms=(time.monotonic() - start) * 1000
        ) from None
    except GatewayError:
        raise
    except Exception as exc:
        raise ProcessorError(
            processor.id,
            str(exc) or type(exc).__name__,
            elapsed_ms=(time.monotonic() - start) * 1000,
        ) from exc

    if not result.success:
        raise ProcessorError(
            processor.id,
            result.message or "declined",
            elapsed_ms=(time.monotonic() - start) * 1000,
        )
    return result
