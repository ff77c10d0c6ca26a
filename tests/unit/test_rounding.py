"""Tests for half-up rounding helpers."""
import pytest

from ftplab.analysis.rounding import round_half_up, round_to, to_fixed


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [
        (236.5, 237),
        (237.5, 238),
        (0.5, 1),
        (2.4999, 2),
        (-0.5, 0),
        (-1.5, -1),
        (250.0, 250),
        (0.49999999999999994, 0),
        (-2.5, -2),
    ])
    def test_ties_round_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_differs_from_builtin_round_on_even_ties(self):
        assert round(236.5) == 236
        assert round_half_up(236.5) == 237


class TestToFixed:
    def test_pads_trailing_zeros(self):
        assert to_fixed(1.0, 3) == "1.000"

    def test_rounds_to_requested_digits(self):
        assert to_fixed(12.345678, 1) == "12.3"

    def test_zero_digits(self):
        assert to_fixed(7.5, 0) == "8"

    def test_round_to_returns_float(self):
        value = round_to(5.769230769, 1)
        assert isinstance(value, float)
        assert value == 5.8
