"""
Heuristic risk scoring run before routing.

Each rule is a pure function returning the points it adds and the flag it
raises, or None when it does not fire. RULES is evaluated in order so the
flag list is reproducible; the score itself is a plain sum and does not
depend on that order.
"""

from decimal import Decimal
from typing import Callable, Optional

from relay.models.payment import Currency, PaymentRequest
from relay.models.risk import RiskAssessment, RiskLevel

HIGH_TICKET_THRESHOLD = Decimal("5000")
MODERATE_TICKET_THRESHOLD = Decimal("1000")

UNVERIFIED_USER_PREFIX = "0000"

# USD is the domestic currency; these countries may pay in it without a flag
DOMESTIC_CURRENCY = Currency.USD
DOMESTIC_CURRENCY_COUNTRIES = frozenset({"US", "UK", "GB", "CA"})

# Low-support window, local hours inclusive
OFF_HOURS = range(2, 5)

MAX_SCORE = 100
HIGH_RISK_SCORE = 60
MEDIUM_RISK_SCORE = 30

RuleHit = Optional[tuple[int, str]]


def ticket_size(request: PaymentRequest) -> RuleHit:
    if request.amount > HIGH_TICKET_THRESHOLD:
        return 65, "HIGH_TICKET_ITEM"
    if request.amount > MODERATE_TICKET_THRESHOLD:
        return 30, "MODERATE_TICKET_ITEM"
    return None


def unverified_user(request: PaymentRequest) -> RuleHit:
    # Stand-in for a velocity lookup: anonymous / new users carry a zero-block id
    if request.metadata.user_id.startswith(UNVERIFIED_USER_PREFIX):
        return 20, "NEW_USER_UNVERIFIED"
    return None


def currency_location_mismatch(request: PaymentRequest) -> RuleHit:
    country = request.metadata.user_location.country.upper()
    if request.currency == DOMESTIC_CURRENCY and country not in DOMESTIC_CURRENCY_COUNTRIES:
        return 25, "CURRENCY_LOCATION_MISMATCH"
    return None


def off_hours(request: PaymentRequest) -> RuleHit:
    if request.local_hour() in OFF_HOURS:
        return 10, "OFF_HOURS_TRANSACTION"
    return None


RULES: tuple[Callable[[PaymentRequest], RuleHit], ...] = (
    ticket_size,
    unverified_user,
    currency_location_mismatch,
    off_hours,
)


def level_for(score: int) -> RiskLevel:
    if score >= HIGH_RISK_SCORE:
        return RiskLevel.HIGH
    if score >= MEDIUM_RISK_SCORE:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def assess_risk(request: PaymentRequest) -> RiskAssessment:
    score = 0
    flags: list[str] = []
    for rule in RULES:
        hit = rule(request)
        if hit is not None:
            points, flag = hit
            score += points
            flags.append(flag)

    score = min(score, MAX_SCORE)
    return RiskAssessment(score=score, level=level_for(score), flags=flags)
