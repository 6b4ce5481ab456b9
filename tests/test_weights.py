"""
Tests for pegslam.weights.
"""

import math

from pegslam.weights import (
    convert_from_ounces,
    convert_to_ounces,
    format_total,
    format_weight,
    parse_weight,
    sum_weights,
    weight_value,
)


class TestConversion:
    """Pounds/ounces to total ounces and back."""

    def test_convert_to_ounces(self):
        assert convert_to_ounces(12, 4) == 196
        assert convert_to_ounces(0, 15) == 15

    def test_convert_from_ounces(self):
        display = convert_from_ounces(196)
        assert (display.pounds, display.ounces, display.total_ounces) == (12, 4, 196)
        assert display.to_dict() == {"pounds": 12, "ounces": 4, "totalOunces": 196}


class TestFormatWeight:
    def test_formats_ounce_count(self):
        assert format_weight(196) == "12 lb 4 oz"

    def test_rounds_to_whole_ounces(self):
        assert format_weight(16.5) == "1 lb 1 oz"
        assert format_weight("33.4") == "2 lb 1 oz"

    def test_existing_lb_string_is_unchanged(self):
        assert format_weight("3 lb 2 oz") == "3 lb 2 oz"

    def test_zero_nan_and_garbage(self):
        """Nothing sensible to show renders as zero."""
        assert format_weight(0) == "0 lb 0 oz"
        assert format_weight(math.nan) == "0 lb 0 oz"
        assert format_weight("heavy") == "0 lb 0 oz"
        assert format_weight(None) == "0 lb 0 oz"


class TestParseWeight:
    def test_parses_lb_oz_any_case_and_spacing(self):
        assert parse_weight("12 lb 4 oz") == 196
        assert parse_weight("12LB4OZ") == 196
        assert parse_weight(" 1 Lb  0 Oz ") == 16

    def test_numeric_string_is_rounded(self):
        assert parse_weight("20") == 20
        assert parse_weight("20.6") == 21

    def test_unparsable_is_zero(self):
        assert parse_weight("") == 0
        assert parse_weight(None) == 0
        assert parse_weight("a big one") == 0

    def test_sum_weights_mixes_ints_and_strings(self):
        assert sum_weights([16, "1 lb 0 oz", "4"]) == 36


class TestWeightValue:
    """Numeric value used when adding up leaderboard weigh-ins."""

    def test_strips_units(self):
        assert weight_value("12.5 lbs") == 12.5
        assert weight_value("196") == 196.0
        assert weight_value(7) == 7.0

    def test_unparsable_is_zero(self):
        assert weight_value("n/a") == 0.0
        assert weight_value(None) == 0.0

    def test_format_total(self):
        assert format_total(42.0) == "42"
        assert format_total(12.25) == "12.25"
