"""Builders for payment requests, deterministic processors and a fake clock."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from relay.models.payment import PaymentRequest
from relay.processors.faults import FaultStrategy
from relay.processors.simulated import SimulatedProcessor

# Defaults: a London visa customer paying in GBP at 14:00 local, no risk flags
_BASE = {
    "amount": Decimal("250.00"),
    "currency": "GBP",
    "brand": "visa",
    "user_id": "123e4567-e89b-12d3-a456-426614174000",
    "city": "London",
    "country": "UK",
    "timezone": "Europe/London",
    "timestamp": "2026-01-15T14:00:00+00:00",
}


def build_request(**overrides) -> PaymentRequest:
    f = {**_BASE, **overrides}
    return PaymentRequest(
        amount=Decimal(str(f["amount"])),
        currency=f["currency"],
        payment_method={
            "type": "card",
            "brand": f["brand"],
            "last4": "4242",
            "expiry_month": 12,
            "expiry_year": 2028,
            "country": f["country"],
        },
        metadata={
            "user_id": f["user_id"],
            "user_location": {
                "city": f["city"],
                "country": f["country"],
                "timezone": f["timezone"],
            },
            "device_ip": "1.2.3.4",
            "timestamp": (
                f["timestamp"]
                if isinstance(f["timestamp"], datetime)
                else datetime.fromisoformat(f["timestamp"])
            ),
        },
    )


def build_processor(
    processor_id: str,
    faults: Optional[FaultStrategy] = None,
    latency_ms: float = 0,
) -> SimulatedProcessor:
    """Zero-latency processor whose failures come only from *faults*."""
    return SimulatedProcessor(
        id=processor_id,
        name=f"Test {processor_id}",
        latency_ms=latency_ms,
        fee_rate="0.02",
        fixed_fee="0.10",
        txn_prefix=processor_id[:2],
        faults=faults,
    )


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


