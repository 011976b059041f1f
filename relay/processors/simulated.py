"""
SimulatedProcessor — shared process() implementation for all built-in processors.

stripe_us, adyen_eu, uk_local and sec_vault each extend this class and
supply their identity, latency and fee schedule via __init__. Failures
are never random inside this class; they come from the injected
FaultStrategy.
"""

import asyncio
import time
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from relay.models.payment import PaymentRequest
from relay.models.processor import ProcessorResult
from relay.processors.base import AbstractProcessor
from relay.processors.faults import FaultStrategy

_CENT = Decimal("0.01")


class SimulatedProcessor(AbstractProcessor):
    """
    Parameterised simulated processor.

    Args:
        id:          Stable processor identifier used by routing and health.
        name:        Display label.
        latency_ms:  Simulated settlement latency.
        fee_rate:    Proportional fee, e.g. "0.029" = 2.9 %.
        fixed_fee:   Flat fee added per transaction.
        txn_prefix:  Prefix of the processor-assigned transaction id.
        faults:      Strategy awaited before settling; defaults to never failing.
        message:     Optional message attached to every successful result.
    """

    def __init__(
        self,
        id: str,
        name: str,
        latency_ms: float,
        fee_rate: str,
        fixed_fee: str,
        txn_prefix: str,
        faults: Optional[FaultStrategy] = None,
        message: Optional[str] = None,
    ) -> None:
        self.id = id
        self.name = name
        self.latency_ms = latency_ms
        self.fee_rate = Decimal(fee_rate)
        self.fixed_fee = Decimal(fixed_fee)
        self._txn_prefix = txn_prefix
        self._faults = faults or FaultStrategy()
        self._message = message
        self.call_count = 0

    def fee_for(self, amount: Decimal) -> Decimal:
        return (amount * self.fee_rate + self.fixed_fee).quantize(_CENT, rounding=ROUND_HALF_UP)

    async def process(self, request: PaymentRequest, timeout_ms: float) -> ProcessorResult:
        self.call_count += 1
        start = time.monotonic()
        await asyncio.sleep(self.latency_ms / 1000)
        await self._faults(self.id, request)
        return ProcessorResult(
            success=True,
            transaction_id=f"{self._txn_prefix}_{uuid.uuid4()}",
            processor_id=self.id,
            fee=self.fee_for(request.amount),
            processing_time_ms=(time.monotonic() - start) * 1000,
            message=self._message,
        )
