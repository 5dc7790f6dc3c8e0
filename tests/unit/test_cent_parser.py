"""Unit tests for CENT ledger parsing and rate helpers."""
from __future__ import annotations

from decimal import Decimal

import pytest

from src.protocols.cent.parser import (
    RATE_PRECISION,
    format_rate,
    parse_amount,
    parse_latest_trove_data,
    parse_rate,
)


class TestParseLatestTroveData:
    def test_maps_struct_fields(self) -> None:
        values = (100, 200, 3, 4, 5, 600, 7, 800, 9, 1000)
        data = parse_latest_trove_data(42, values)

        assert data.trove_id == 42
        assert data.entire_debt == 100
        assert data.entire_coll == 200
        assert data.recorded_debt == 600
        assert data.annual_interest_rate == 7
        assert data.weighted_recorded_debt == 800
        assert data.last_interest_rate_adj_time == 1000
        assert data.is_active

    def test_empty_trove_inactive(self) -> None:
        assert not parse_latest_trove_data(1, (0,) * 10).is_active

    def test_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="Expected 10"):
            parse_latest_trove_data(1, (0,) * 9)


class TestParseRate:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("0.05", 5 * 10**16),
            ("0.005", 5 * 10**15),
            (Decimal("1"), RATE_PRECISION),
            ("0", 0),
        ],
    )
    def test_scales_to_1e18(self, value: str, expected: int) -> None:
        assert parse_rate(value) == expected

    @pytest.mark.parametrize("value", ["abc", "-0.01", "NaN", "Infinity"])
    def test_rejects_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_rate(value)


class TestFormatRate:
    def test_percent(self) -> None:
        assert format_rate(5 * 10**16) == "5.00%"
        assert format_rate(125 * 10**14) == "1.25%"


class TestParseAmount:
    @pytest.mark.parametrize(
        "value,expected",
        [("0.1", 10**17), ("2000", 2000 * 10**18), ("0.000000000000000001", 1)],
    )
    def test_scales_to_18_decimals(self, value: str, expected: int) -> None:
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", ["1e", "-5", "NaN"])
    def test_rejects_invalid(self, value: str) -> None:
        with pytest.raises(ValueError, match="(?i)amount"):
            parse_amount(value)
