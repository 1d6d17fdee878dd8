"""Tests for the new-token market-cap scatter."""

from __future__ import annotations

import math

import pytest


def _row(address="0xabcdef1234567890", created=1_000.0, cap=10.0, **kwargs):
    from polydash.storage.models import MarketCapRow
    return MarketCapRow(address=address, create_date_ms=created, max_market_cap_wan=cap, **kwargs)


class TestBuildPoints:

    def test_converts_rows(self):
        from polydash.analytics.market_cap import build_points
        points = build_points([_row(short_name="PEPE", is_binance=True)])
        p = points[0]
        assert (p.x, p.y, p.short_name, p.is_binance) == (1_000.0, 10.0, "PEPE", True)

    def test_short_name_defaults_to_address_prefix(self):
        from polydash.analytics.market_cap import build_points
        assert build_points([_row()])[0].short_name == "0xabcdef"

    def test_is_binance_defaults_false(self):
        from polydash.analytics.market_cap import build_points
        assert build_points([_row(is_binance=None)])[0].is_binance is False

    def test_drops_bad_rows(self):
        from polydash.analytics.market_cap import build_points
        rows = [
            _row(address=""),
            _row(created=None),
            _row(cap=None),
            _row(cap=math.nan),
            _row(created=math.inf),
            _row(),
        ]
        assert len(build_points(rows)) == 1


class TestParseYCeiling:

    @pytest.mark.parametrize("text", [None, "", "   ", "abc", "0", "-5", "inf", "nan"])
    def test_no_ceiling(self, text):
        from polydash.analytics.market_cap import parse_y_ceiling
        assert parse_y_ceiling(text) is None

    def test_positive_number(self):
        from polydash.analytics.market_cap import parse_y_ceiling
        assert parse_y_ceiling(" 50 ") == 50.0
        assert parse_y_ceiling("2.5") == 2.5


class TestSummarize:

    def _points(self):
        from polydash.analytics.market_cap import build_points
        return build_points([
            _row(address="0x1", cap=10.0),
            _row(address="0x2", cap=30.0),
            _row(address="0x3", cap=200.0, is_binance=True),
            _row(address="0x4", cap=40.0, is_binance=True),
        ])

    def test_averages_split_by_binance(self):
        from polydash.analytics.market_cap import summarize
        s = summarize(self._points())
        assert s.launch_count == 4
        assert s.avg_normal == 20.0
        assert s.avg_binance == 120.0
        assert s.auto_y_max == 200.0

    def test_ceiling_filters_visible_points_only(self):
        from polydash.analytics.market_cap import summarize
        s = summarize(self._points(), ceiling=50.0)
        assert len(s.points) == 3
        assert s.auto_y_max == 40.0
        # Headline numbers still cover every launch
        assert s.launch_count == 4
        assert s.avg_binance == 120.0

    def test_empty(self):
        from polydash.analytics.market_cap import summarize
        s = summarize([])
        assert s.to_dict() == {
            "launch_count": 0,
            "avg_normal": None,
            "avg_binance": None,
            "auto_y_max": 0,
            "points": [],
        }

    def test_ceiling_hides_everything(self):
        from polydash.analytics.market_cap import summarize
        s = summarize(self._points(), ceiling=1.0)
        assert s.points == []
        assert s.auto_y_max == 0
