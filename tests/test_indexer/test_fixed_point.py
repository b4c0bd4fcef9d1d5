"""Tests for exact decimal scaling and UTC day buckets."""

from decimal import Decimal, localcontext

import pytest

from src.indexer.fixed_point import (
    EXACT_CONTEXT,
    ZERO,
    day_id,
    day_start,
    pow10,
    safe_div,
    to_decimal,
)

UINT256_MAX = 2**256 - 1


class TestToDecimal:
    def test_one_token(self) -> None:
        assert to_decimal(10**18, 18) == Decimal(1)

    def test_zero_decimals_returns_raw(self) -> None:
        assert to_decimal(123456, 0) == Decimal(123456)

    def test_smallest_unit(self) -> None:
        assert to_decimal(1, 18) == Decimal("0.000000000000000001")
        assert to_decimal(1, 6) == Decimal("0.000001")

    def test_usdc_amount(self) -> None:
        assert to_decimal(1_234_567, 6) == Decimal("1.234567")

    @pytest.mark.parametrize("raw", [1, 999, 10**18 + 1, 2**128 + 7, UINT256_MAX])
    @pytest.mark.parametrize("decimals", [0, 6, 8, 18])
    def test_scaling_back_recovers_raw(self, raw: int, decimals: int) -> None:
        """No precision is lost, even for full-width uint256 values."""
        with localcontext(EXACT_CONTEXT):
            assert to_decimal(raw, decimals) * pow10(decimals) == Decimal(raw)

    def test_negative_amount(self) -> None:
        assert to_decimal(-5 * 10**17, 18) == Decimal("-0.5")


class TestPow10:
    def test_small(self) -> None:
        assert pow10(0) == Decimal(1)
        assert pow10(6) == Decimal(1_000_000)

    def test_wide(self) -> None:
        assert pow10(77) == Decimal(10**77)

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            pow10(-1)


def test_safe_div_by_zero() -> None:
    assert safe_div(Decimal(5), ZERO) == ZERO
    assert safe_div(Decimal(5), Decimal(2)) == Decimal("2.5")


class TestDayBuckets:
    def test_day_id(self) -> None:
        assert day_id(1_700_000_000) == "2023-11-14"

    def test_day_start(self) -> None:
        assert day_start(1_700_000_000) == 1_699_920_000
        assert day_start(1_699_920_000) == 1_699_920_000

    def test_boundary(self) -> None:
        assert day_id(1_699_919_999) == "2023-11-13"
        assert day_id(1_699_920_000) == "2023-11-14"

    def test_epoch(self) -> None:
        assert day_id(0) == "1970-01-01"

    def test_whole_day_shares_one_bucket(self) -> None:
        midnight = 1_699_920_000
        for offset in (0, 1, 3600, 43_200, 86_399):
            assert day_id(midnight + offset) == "2023-11-14"
            assert day_start(midnight + offset) == midnight
