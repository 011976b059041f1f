from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"


class CardBrand(str, Enum):
    VISA = "visa"
    MASTERCARD = "mastercard"
    AMEX = "amex"


class PaymentMethod(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["card"] = "card"
    brand: CardBrand
    last4: str = Field(..., pattern=r"^\d{4}$")
    expiry_month: int = Field(..., ge=1, le=12)
    expiry_year: int
    country: str


class UserLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str
    country: str
    timezone: str


class TransactionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    user_location: UserLocation
    device_ip: str
    timestamp: datetime


class PaymentRequest(BaseModel):
    """
    A validated payment as handed to the orchestration core.
    Frozen: nothing downstream may rewrite the request it was given.
    """

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., gt=0)
    currency: Currency
    payment_method: PaymentMethod
    metadata: TransactionMetadata

    def local_time(self) -> datetime:
        """
        Wall-clock time of the transaction in the user's timezone.

        Naive timestamps are taken as already local. An unknown timezone
        name leaves an aware timestamp in its own offset.
        """
        ts = self.metadata.timestamp
        if ts.tzinfo is None:
            return ts
        try:
            return ts.astimezone(ZoneInfo(self.metadata.user_location.timezone))
        except (ZoneInfoNotFoundError, ValueError):
            return ts

    def local_hour(self) -> int:
        return self.local_time().hour
