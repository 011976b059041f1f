from typing import Optional

from relay.processors.faults import FaultStrategy
from relay.processors.simulated import SimulatedProcessor


# Adyen: regional European route, lower latency than the global default
class AdyenEurope(SimulatedProcessor):
    def __init__(self, faults: Optional[FaultStrategy] = None) -> None:
        super().__init__(
            id="adyen_eu",
            name="Adyen (Europe/Amsterdam)",
            latency_ms=80,
            fee_rate="0.02",    # 2.0% + 0.10
            fixed_fee="0.10",
            txn_prefix="ad",
            faults=faults,
        )
