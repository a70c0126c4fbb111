"""Quote engine error taxonomy.

Every fatal error aborts the quote; no partial or estimated price is returned.
The clamp warning is the only non-fatal condition.
"""

from __future__ import annotations


class QuoteError(Exception):
    """Base class for conditions that abort a quote."""

    reason_code = "quote_error"

    def __init__(self, message: str, meta: dict | None = None):
        self.meta = meta or {}
        super().__init__(message)


class InvalidRequestError(QuoteError):
    """Malformed window or guest count. User-correctable."""

    reason_code = "invalid_request"


class BelowMinimumStayError(QuoteError):
    """Requested duration is shorter than the cheapest tier."""

    reason_code = "below_minimum_stay"

    def __init__(self, duration_hours, minimum_hours):
        self.duration_hours = duration_hours
        self.minimum_hours = minimum_hours
        super().__init__(
            f"Requested {duration_hours}h is below the minimum stay of {minimum_hours}h",
            {"duration_hours": str(duration_hours), "minimum_hours": str(minimum_hours)},
        )


class SpanningWindowError(QuoteError):
    """Window straddles the boundary of a pricing override."""

    reason_code = "spanning_window"

    def __init__(self, override_id: str):
        self.override_id = override_id
        super().__init__(
            f"Requested window crosses the boundary of pricing override {override_id}",
            {"override_id": override_id},
        )


class AmbiguousOverrideError(QuoteError):
    """Two or more overrides match with identical precedence (authoring defect)."""

    reason_code = "ambiguous_override"

    def __init__(self, override_ids: list[str]):
        self.override_ids = list(override_ids)
        super().__init__(
            f"Pricing overrides {', '.join(self.override_ids)} match with equal precedence",
            {"override_ids": self.override_ids},
        )


class DiscountClampedWarning(UserWarning):
    """Discounts exceeded the chargeable amount and were clamped."""

    def __init__(self, requested_cents: int, applied_cents: int):
        self.requested_cents = requested_cents
        self.applied_cents = applied_cents
        super().__init__(
            f"Discounts of {requested_cents} cents clamped to {applied_cents} cents"
        )
