from typing import Optional

from relay.processors.faults import FaultStrategy, RandomFailures
from relay.processors.simulated import SimulatedProcessor


# Stripe: global default and the designated failover processor.
# Intermittent failures at the configured rate demonstrate failover.
class StripeUS(SimulatedProcessor):
    def __init__(self, faults: Optional[FaultStrategy] = None, failure_rate: float = 0.05) -> None:
        super().__init__(
            id="stripe_us",
            name="Stripe (US East)",
            latency_ms=150,
            fee_rate="0.029",   # 2.9% + 0.30
            fixed_fee="0.30",
            txn_prefix="st",
            faults=faults if faults is not None else RandomFailures(failure_rate),
        )
