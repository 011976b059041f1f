from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Circuit Breaker
    CB_FAILURE_THRESHOLD: int = 3               # consecutive failures before OPEN
    CB_RECOVERY_TIMEOUT_SECONDS: float = 30.0   # OPEN -> HALF_OPEN after this

    # Per-processor call timeout
    PROCESSOR_TIMEOUT_MS: int = 1000

    # Routing
    DEFAULT_PROCESSOR_ID: Optional[str] = "stripe_us"  # None disables the lookup default
    HIGH_SECURITY_PROCESSOR_ID: str = "sec_vault"
    FAILOVER_PROCESSOR_ID: str = "stripe_us"
    FAILOVER_ALTERNATE_ID: str = "adyen_eu"    # used when the primary is the failover processor

    # Simulated processors
    SIMULATED_FAILURE_RATE: float = 0.05

    # Cross-process aggregation
    AGGREGATOR_TIMEOUT_SECONDS: float = 1.0
    WORKER_COUNT: int = 4

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
