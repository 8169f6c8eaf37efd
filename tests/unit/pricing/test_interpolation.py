"""Tests for linear price interpolation — pure functions."""

from decimal import Decimal

import pytest

from tokenoracle.domain.models.price import PriceSample
from tokenoracle.pricing.interpolation import InterpolationRangeError, interpolate


def _sample(ts: int, price: str) -> PriceSample:
    return PriceSample(token="0xtoken", network="ethereum", timestamp=ts, price=Decimal(price))


class TestInterpolate:
    def test_midpoint(self):
        assert interpolate(1500, _sample(1000, "1.0"), _sample(2000, "2.0")) == Decimal("1.5")

    def test_quarter_weighting(self):
        assert interpolate(1250, _sample(1000, "1.0"), _sample(2000, "2.0")) == Decimal("1.25")

    def test_decreasing_prices(self):
        assert interpolate(1500, _sample(1000, "2.0"), _sample(2000, "1.0")) == Decimal("1.5")

    def test_start_boundary_is_exact(self):
        before, after = _sample(1000, "1.0"), _sample(2000, "2.0")
        assert interpolate(1000, before, after) == before.price

    def test_end_boundary_is_exact(self):
        before, after = _sample(1000, "1.0"), _sample(2000, "2.0")
        assert interpolate(2000, before, after) == after.price

    def test_zero_duration_returns_before_price(self):
        assert interpolate(1000, _sample(1000, "3.5"), _sample(1000, "9.0")) == Decimal("3.5")

    def test_zero_duration_ignores_target(self):
        assert interpolate(5000, _sample(1000, "3.5"), _sample(1000, "9.0")) == Decimal("3.5")

    def test_result_is_decimal(self):
        result = interpolate(1333, _sample(1000, "1"), _sample(2000, "2"))
        assert isinstance(result, Decimal)
        assert result == Decimal("1.333")


class TestMonotonicity:
    def test_non_decreasing_when_price_rises(self):
        before, after = _sample(1000, "10"), _sample(2000, "20")
        prices = [interpolate(t, before, after) for t in range(1000, 2001, 50)]
        assert prices == sorted(prices)

    def test_non_increasing_when_price_falls(self):
        before, after = _sample(1000, "20"), _sample(2000, "10")
        prices = [interpolate(t, before, after) for t in range(1000, 2001, 50)]
        assert prices == sorted(prices, reverse=True)


class TestOutOfRange:
    def test_target_before_bracket_rejected(self):
        with pytest.raises(InterpolationRangeError):
            interpolate(999, _sample(1000, "1.0"), _sample(2000, "2.0"))

    def test_target_after_bracket_rejected(self):
        with pytest.raises(InterpolationRangeError):
            interpolate(2001, _sample(1000, "1.0"), _sample(2000, "2.0"))

    def test_range_error_is_value_error(self):
        with pytest.raises(ValueError):
            interpolate(0, _sample(1000, "1.0"), _sample(2000, "2.0"))
