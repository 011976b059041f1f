from typing import Optional

from relay.processors.faults import FaultStrategy
from relay.processors.simulated import SimulatedProcessor


# Secure vault: high-risk transactions only. Slow and expensive (MFA flow).
class HighSecurityVault(SimulatedProcessor):
    def __init__(self, faults: Optional[FaultStrategy] = None) -> None:
        super().__init__(
            id="sec_vault",
            name="Quantum Secure Vault (High Risk Only)",
            latency_ms=600,
            fee_rate="0.05",    # 5.0% + 2.00
            fixed_fee="2.00",
            txn_prefix="sv",
            faults=faults,
            message="Processed via High-Security MFA flow",
        )
