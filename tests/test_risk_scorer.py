"""Unit tests for the risk scorer. Every rule is exercised on its own."""

import pytest

from relay.models.risk import RiskLevel
from relay.risk.scorer import assess_risk, level_for


@pytest.mark.parametrize("amount", ["5000.01", "7500", "250000"])
def test_high_ticket_item(make_request, amount):
    risk = assess_risk(make_request(amount=amount))

    assert risk.score >= 65
    assert "HIGH_TICKET_ITEM" in risk.flags
    assert "MODERATE_TICKET_ITEM" not in risk.flags


@pytest.mark.parametrize("amount", ["1000.01", "2500", "5000"])
def test_moderate_ticket_item(make_request, amount):
    risk = assess_risk(make_request(amount=amount))

    assert risk.score >= 30
    assert "MODERATE_TICKET_ITEM" in risk.flags
    assert "HIGH_TICKET_ITEM" not in risk.flags


def test_small_amount_raises_no_ticket_flag(make_request):
    risk = assess_risk(make_request(amount="1000"))

    assert risk.score == 0
    assert risk.flags == []
    assert risk.level == RiskLevel.LOW


def test_unverified_user(make_request):
    risk = assess_risk(make_request(user_id="0000-anon-42"))

    assert risk.flags == ["NEW_USER_UNVERIFIED"]
    assert risk.score == 20


def test_currency_location_mismatch(make_request):
    risk = assess_risk(
        make_request(currency="USD", city="Paris", country="FR", timezone="Europe/Paris",
                     timestamp="2026-01-15T14:00:00+01:00")
    )

    assert "CURRENCY_LOCATION_MISMATCH" in risk.flags
    assert risk.score >= 25


@pytest.mark.parametrize("country", ["US", "UK", "GB", "CA"])
def test_domestic_currency_countries_not_flagged(make_request, country):
    risk = assess_risk(make_request(currency="USD", country=country))

    assert "CURRENCY_LOCATION_MISMATCH" not in risk.flags


def test_non_domestic_currency_never_mismatches(make_request):
    risk = assess_risk(make_request(currency="EUR", country="JP"))

    assert "CURRENCY_LOCATION_MISMATCH" not in risk.flags


@pytest.mark.parametrize(
    "local_time, flagged",
    [
        ("01:59", False),
        ("02:00", True),
        ("03:00", True),
        ("04:59", True),
        ("05:00", False),
        ("14:00", False),
    ],
)
def test_off_hours_window(make_request, local_time, flagged):
    risk = assess_risk(make_request(timestamp=f"2026-01-15T{local_time}:00+00:00"))

    assert ("OFF_HOURS_TRANSACTION" in risk.flags) is flagged


def test_off_hours_uses_user_timezone(make_request):
    # 08:00 UTC is 03:00 in New York (EST)
    risk = assess_risk(
        make_request(city="New York", country="US", timezone="America/New_York",
                     timestamp="2026-01-15T08:00:00+00:00")
    )

    assert "OFF_HOURS_TRANSACTION" in risk.flags


def test_naive_timestamp_is_taken_as_local(make_request):
    risk = assess_risk(make_request(timestamp="2026-01-15T03:30:00"))

    assert "OFF_HOURS_TRANSACTION" in risk.flags


def test_unknown_timezone_keeps_timestamp_offset(make_request):
    risk = assess_risk(make_request(timezone="Mars/Olympus_Mons", timestamp="2026-01-15T03:00:00+00:00"))

    assert "OFF_HOURS_TRANSACTION" in risk.flags


def test_score_is_clamped_and_flags_ordered(make_request):
    # 65 + 20 + 25 + 10 = 120 before clamping
    risk = assess_risk(
        make_request(amount="9000", user_id="0000abc", currency="USD", country="FR",
                     timezone="Europe/Paris", timestamp="2026-01-15T03:00:00+01:00")
    )

    assert risk.score == 100
    assert risk.level == RiskLevel.HIGH
    assert risk.flags == [
        "HIGH_TICKET_ITEM",
        "NEW_USER_UNVERIFIED",
        "CURRENCY_LOCATION_MISMATCH",
        "OFF_HOURS_TRANSACTION",
    ]


def test_high_amount_at_night_is_high_risk(make_request):
    risk = assess_risk(make_request(amount="7500", timestamp="2026-01-15T04:00:00+00:00"))

    assert risk.level == RiskLevel.HIGH
    assert risk.score >= 75


def test_london_night_small_amount_is_low_risk(make_request):
    risk = assess_risk(make_request(timestamp="2026-01-15T03:00:00+00:00"))

    assert risk.level == RiskLevel.LOW
    assert risk.flags == ["OFF_HOURS_TRANSACTION"]


@pytest.mark.parametrize(
    "score, level",
    [
        (0, RiskLevel.LOW),
        (29, RiskLevel.LOW),
        (30, RiskLevel.MEDIUM),
        (59, RiskLevel.MEDIUM),
        (60, RiskLevel.HIGH),
        (100, RiskLevel.HIGH),
    ],
)
def test_level_boundaries(score, level):
    assert level_for(score) == level


def test_assessment_is_deterministic(make_request):
    request = make_request(amount="2500", user_id="0000x", timestamp="2026-01-15T02:15:00+00:00")

    assert assess_risk(request) == assess_risk(request)
