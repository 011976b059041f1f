"""
Fault strategies for simulated processors.

A strategy is awaited before a simulated processor settles a payment. It
either returns (the payment goes through), raises ProcessorError (the
processor reports a failure) or sleeps (the processor hangs until the
caller's timeout fires). Tests pass deterministic strategies; the running
service gives stripe_us a seeded RandomFailures.
"""

import asyncio
import random
from typing import Optional

from relay.exceptions import ProcessorError
from relay.models.payment import PaymentRequest


class FaultStrategy:
    """Base strategy: never fails."""

    async def __call__(self, processor_id: str, request: PaymentRequest) -> None:
        return None


NoFaults = FaultStrategy


class AlwaysFail(FaultStrategy):
    def __init__(self, message: str = "Gateway Timeout") -> None:
        self._message = message

    async def __call__(self, processor_id: str, request: PaymentRequest) -> None:
        raise ProcessorError(processor_id, self._message)


class FailFirst(FaultStrategy):
    """Fail the first *count* calls, then let everything through."""

    def __init__(self, count: int, message: str = "Gateway Timeout") -> None:
        self._remaining = count
        self._message = message

    async def __call__(self, processor_id: str, request: PaymentRequest) -> None:
        if self._remaining > 0:
            self._remaining -= 1
            raise ProcessorError(processor_id, self._message)


class RandomFailures(FaultStrategy):
    def __init__(
        self,
        rate: float,
        seed: Optional[int] = None,
        message: str = "Gateway Timeout",
    ) -> None:
        self._rate = rate
        self._rng = random.Random(seed)
        self._message = message

    async def __call__(self, processor_id: str, request: PaymentRequest) -> None:
        if self._rng.random() < self._rate:
            raise ProcessorError(processor_id, self._message)


class Hang(FaultStrategy):
    """Simulate a hung connection; the caller's wait_for fires first."""

    def __init__(self, seconds: float = 60.0) -> None:
        self._seconds = seconds

    async def __call__(self, processor_id: str, request: PaymentRequest) -> None:
        await asyncio.sleep(self._seconds)
