from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from relay.models.payment import CardBrand, PaymentRequest
from relay.models.processor import RouteDecision

EU_COUNTRIES = frozenset({"UK", "GB", "FR", "DE", "ES", "IT", "NL", "BE"})
UK_NIGHT_HOURS = range(0, 6)  # 00:00 - 05:59 local


@dataclass(frozen=True)
class RoutingRule:
    name: str
    processor_id: str
    reason: str
    matches: Callable[[PaymentRequest], bool]


def _london_visa_at_night(request: PaymentRequest) -> bool:
    return (
        request.metadata.user_location.city.strip().lower() == "london"
        and request.payment_method.brand == CardBrand.VISA
        and request.local_hour() in UK_NIGHT_HOURS
    )


def _european_user(request: PaymentRequest) -> bool:
    return request.metadata.user_location.country.upper() in EU_COUNTRIES


DEFAULT_RULES: tuple[RoutingRule, ...] = (
    RoutingRule(
        name="uk_local_night",
        processor_id="uk_local",
        reason="Localized processing for improved approval rates",
        matches=_london_visa_at_night,
    ),
    RoutingRule(
        name="eu_regional",
        processor_id="adyen_eu",
        reason="Regional routing for lower latency",
        matches=_european_user,
    ),
)


class Router:
    """
    Ordered routing rules, first match wins. Falls through to the default
    processor when nothing matches. Risk overrides are applied by the
    engine before the router is consulted.
    """

    def __init__(
        self,
        default_processor_id: str,
        rules: Optional[Sequence[RoutingRule]] = None,
    ):
        self._default = default_processor_id
        self._rules = tuple(rules) if rules is not None else DEFAULT_RULES

    @property
    def rules(self) -> tuple[RoutingRule, ...]:
        return self._rules

    def decide(self, request: PaymentRequest) -> RouteDecision:
        for rule in self._rules:
            if rule.matches(request):
                return RouteDecision(processor_id=rule.processor_id, reason=rule.reason)
        return RouteDecision(processor_id=self._default, reason="Standard global processing")
