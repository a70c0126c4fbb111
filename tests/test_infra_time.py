"""Tests for time utilities."""

from datetime import datetime, timedelta, timezone

import pytest


class TestUtcNow:
    """Tests for utc_now()."""

    def test_returns_utc_datetime(self):
        from spacely.infra.time import utc_now

        now = utc_now()
        assert now.tzinfo == timezone.utc

    def test_returns_current_time(self):
        from spacely.infra.time import utc_now

        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestToUtcIso:
    def test_converts_offset_to_utc(self):
        from spacely.infra.time import to_utc_iso

        value = datetime(2026, 12, 25, 18, 0, tzinfo=timezone(timedelta(hours=8)))
        assert to_utc_iso(value) == "2026-12-25T10:00:00+00:00"

    def test_rejects_naive(self):
        from spacely.infra.time import to_utc_iso

        with pytest.raises(ValueError):
            to_utc_iso(datetime(2026, 12, 25, 10, 0))
