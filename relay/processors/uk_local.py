from typing import Optional

from relay.processors.faults import FaultStrategy
from relay.processors.simulated import SimulatedProcessor


# UK local acquirer: cheapest and fastest, only routed for London night traffic
class UKLocalAcquirer(SimulatedProcessor):
    def __init__(self, faults: Optional[FaultStrategy] = None) -> None:
        super().__init__(
            id="uk_local",
            name="UK Local Merchant Services",
            latency_ms=40,
            fee_rate="0.015",   # 1.5% + 0.05
            fixed_fee="0.05",
            txn_prefix="uk",
            faults=faults,
        )
