"""Tests for pricing endpoints.

Tests for:
- POST /pricing/quote: price a booking request
- GET /pricing/rooms/{room_id}: room pricing snapshot
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from fractions import Fraction
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from spacely.api.factory import create_app
from spacely.api.routes.pricing import _hours
from spacely.domain.modifiers import DurationDiscount, FixedAmount, GuestDiscount, Percentage
from spacely.domain.money import Money
from spacely.domain.overrides import DateRule, DayRule, PricingOverride, RateOverride
from spacely.domain.quote import RoomPricingConfig
from spacely.domain.rate_table import HourlyTier, RateTable


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture
def client():
    return TestClient(create_app())


class MockCursor:
    def __init__(self):
        self.executed = []

    def execute(self, query, params=None):
        self.executed.append((query, params))


class MockTxnContext:
    def __init__(self, cursor: MockCursor):
        self._cursor = cursor

    def __enter__(self):
        return self._cursor

    def __exit__(self, *args):
        pass


ROOM = RoomPricingConfig(
    room_id="room-1",
    default_rates=RateTable(
        tiers=(HourlyTier(1, Money(5000)), HourlyTier(4, Money(18000))),
        included_guests=4,
        extra_guest_charge_per_hour=Money(500),
    ),
    overrides=(
        PricingOverride(
            id="ovr-xmas",
            name="Christmas",
            rule=DateRule(date(2026, 12, 24), date(2026, 12, 26)),
            rates=RateOverride(hourly_tiers=(HourlyTier(1, Money(8000)),)),
        ),
        PricingOverride(
            id="ovr-night",
            name="Thursday night",
            rule=DayRule(4, "18:00", 5, "06:00"),
        ),
    ),
    modifiers=(
        DurationDiscount(id="long", name="Long stay", amount=Percentage(Decimal("12.5")), min_hours=4),
    ),
    max_guests=10,
)


def _post(client, body, config=ROOM):
    with (
        patch("spacely.api.routes.pricing.snapshot", return_value=MockTxnContext(MockCursor())),
        patch("spacely.api.routes.pricing.fetch_room_pricing_config", return_value=config) as fetch,
    ):
        response = client.post("/pricing/quote", json=body)
    return response, fetch


def _body(start="2026-06-05T10:00:00Z", end="2026-06-05T12:00:00Z", guests=6, room_id="room-1"):
    return {"roomId": room_id, "startAt": start, "endAt": end, "guests": guests}


# ── POST /pricing/quote ───────────────────────────────────


class TestPostQuote:
    def test_default_pricing(self, client):
        response, fetch = _post(client, _body())

        assert response.status_code == 200
        q = response.json()["quote"]
        assert q["roomId"] == "room-1"
        assert q["currency"] == "USD"
        assert q["basePrice"] == "50.00"
        assert q["finalPrice"] == "70.00"
        assert q["appliedOverride"] is None
        assert q["breakdown"] == {
            "basePrice": "50.00",
            "extraPersonCharge": "20.00",
            "totalDiscounts": "0.00",
            "totalSurcharges": "0.00",
        }
        assert q["appliedModifiers"] == []
        assert q["durationHours"] == "2"
        assert q["warnings"] == []
        assert q["calculatedAt"].endswith("+00:00")
        assert fetch.call_args.args[1] == "room-1"

    def test_override_and_modifier_reported(self, client):
        response, _ = _post(
            client,
            _body(start="2026-12-25T09:00:00Z", end="2026-12-25T13:30:00Z", guests=2),
        )

        assert response.status_code == 200
        q = response.json()["quote"]
        assert q["appliedOverride"] == {"id": "ovr-xmas", "name": "Christmas", "type": "date"}
        assert q["basePrice"] == "80.00"
        assert q["durationHours"] == "5"
        assert q["appliedModifiers"] == [
            {"id": "long", "name": "Long stay", "type": "duration_discount", "amount": "10.00"}
        ]
        assert q["finalPrice"] == "70.00"

    def test_spanning_window_conflict(self, client):
        response, _ = _post(
            client,
            _body(start="2026-12-17T20:00:00Z", end="2026-12-18T08:00:00Z", guests=2),
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["reason_code"] == "spanning_window"
        assert detail["meta"]["override_id"] == "ovr-night"

    def test_below_minimum_stay(self, client):
        response, _ = _post(client, _body(end="2026-06-05T10:30:00Z"))
        assert response.status_code == 400
        assert response.json()["detail"]["reason_code"] == "below_minimum_stay"

    def test_invalid_guests(self, client):
        response, _ = _post(client, _body(guests=0))
        assert response.status_code == 400
        assert response.json()["detail"]["reason_code"] == "invalid_request"

    def test_too_many_guests(self, client):
        response, _ = _post(client, _body(guests=11))
        assert response.status_code == 400
        assert response.json()["detail"]["meta"]["max_guests"] == 10

    def test_inverted_window(self, client):
        response, _ = _post(client, _body(start="2026-06-05T12:00:00Z", end="2026-06-05T10:00:00Z"))
        assert response.status_code == 400

    def test_naive_timestamps_rejected(self, client):
        response, _ = _post(client, _body(start="2026-06-05T10:00:00", end="2026-06-05T12:00:00"))
        assert response.status_code == 400

    def test_missing_field_is_422(self, client):
        response, _ = _post(client, {"roomId": "room-1", "startAt": "2026-06-05T10:00:00Z"})
        assert response.status_code == 422

    def test_unknown_room(self, client):
        response, _ = _post(client, _body(room_id="nope"), config=None)
        assert response.status_code == 404
        assert response.json()["detail"] == {
            "reason_code": "room_not_found",
            "message": "Room not found",
            "meta": {"room_id": "nope"},
        }

    def test_ambiguous_overrides_unavailable(self, client):
        twin = PricingOverride(
            id="ovr-xmas-2",
            name="Christmas (dup)",
            rule=DateRule(date(2026, 12, 24), date(2026, 12, 26)),
        )
        config = RoomPricingConfig(
            room_id="room-1",
            default_rates=ROOM.default_rates,
            overrides=(ROOM.overrides[0], twin),
        )
        response, _ = _post(
            client,
            _body(start="2026-12-25T10:00:00Z", end="2026-12-25T12:00:00Z"),
            config=config,
        )
        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["reason_code"] == "pricing_unavailable"
        assert detail["message"]
        assert detail["meta"] == {"room_id": "room-1"}
        assert "ovr-xmas" not in response.text

    def test_invalid_stored_config_unavailable(self, client):
        with (
            patch("spacely.api.routes.pricing.snapshot", return_value=MockTxnContext(MockCursor())),
            patch(
                "spacely.api.routes.pricing.fetch_room_pricing_config",
                side_effect=ValueError("rate table needs at least one tier"),
            ),
        ):
            response = client.post("/pricing/quote", json=_body())
        assert response.status_code == 503
        assert set(response.json()["detail"]) == {"reason_code", "message", "meta"}
        assert "tier" not in response.text

    def test_non_terminating_duration_is_fixed_point(self, client):
        config = RoomPricingConfig(
            room_id="room-1",
            default_rates=ROOM.default_rates,
            billing_increment_minutes=20,
        )
        response, _ = _post(client, _body(end="2026-06-05T11:20:00Z", guests=2), config=config)

        assert response.status_code == 200
        assert response.json()["quote"]["durationHours"] == "1.3333"

    def test_clamped_discount_warning(self, client):
        config = RoomPricingConfig(
            room_id="room-1",
            default_rates=RateTable(tiers=(HourlyTier(1, Money(3000)),), included_guests=10),
            modifiers=(
                GuestDiscount(id="a", amount=Percentage(50), min_guests=1),
                GuestDiscount(id="b", amount=Percentage(50), min_guests=1),
                GuestDiscount(id="c", amount=FixedAmount(Money(500)), min_guests=1),
            ),
        )
        response, _ = _post(client, _body(guests=2), config=config)

        assert response.status_code == 200
        q = response.json()["quote"]
        assert q["finalPrice"] == "0.00"
        assert q["breakdown"]["totalDiscounts"] == "30.00"
        assert q["warnings"] == ["discount_clamped"]


# ── GET /pricing/rooms/{room_id} ──────────────────────────


class TestGetRoomPricing:
    def test_returns_snapshot(self, client):
        with (
            patch("spacely.api.routes.pricing.snapshot", return_value=MockTxnContext(MockCursor())),
            patch("spacely.api.routes.pricing.fetch_room_pricing_config", return_value=ROOM),
        ):
            response = client.get("/pricing/rooms/room-1")

        assert response.status_code == 200
        data = response.json()
        assert data["roomId"] == "room-1"
        assert data["timezone"] == "UTC"
        assert data["billingIncrementMinutes"] == 60
        assert data["maxGuests"] == 10
        assert data["defaultPricing"] == {
            "includedGuests": 4,
            "hourlyTiers": [{"hours": "1", "price": "50.00"}, {"hours": "4", "price": "180.00"}],
            "extraPersonChargePerHour": "5.00",
        }

        xmas, night = data["overrides"]
        assert xmas["type"] == "date"
        assert xmas["startDate"] == "2026-12-24"
        assert xmas["hourlyTiers"] == [{"hours": "1", "price": "80.00"}]
        assert night["type"] == "day"
        assert (night["startDayOfWeek"], night["startTime"]) == (4, "18:00")
        assert night["hourlyTiers"] is None

        assert data["modifiers"] == [
            {
                "id": "long",
                "name": "Long stay",
                "type": "duration_discount",
                "isActive": True,
                "discountType": "percentage",
                "discountValue": "12.5",
                "minHours": "4",
                "maxHours": None,
            }
        ]

    def test_unknown_room(self, client):
        with (
            patch("spacely.api.routes.pricing.snapshot", return_value=MockTxnContext(MockCursor())),
            patch("spacely.api.routes.pricing.fetch_room_pricing_config", return_value=None),
        ):
            response = client.get("/pricing/rooms/nope")
        assert response.status_code == 404
        assert response.json()["detail"]["reason_code"] == "room_not_found"


# ── Serialization helpers ─────────────────────────────────


class TestHoursFormatting:
    def test_whole_hours(self):
        assert _hours(Fraction(2)) == "2"

    def test_terminating_fraction(self):
        assert _hours(Fraction(5, 4)) == "1.25"

    def test_non_terminating_fraction_is_quantized(self):
        assert _hours(Fraction(4, 3)) == "1.3333"
        assert _hours(Fraction(5, 3)) == "1.6667"
