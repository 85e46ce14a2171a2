"""Tests for numeric values, relative adjustments and batch updates."""

from decimal import Decimal

import pytest

from profile_bundler import (
    ProfileType,
    UnitMismatchError,
    Unit,
    ValueParseError,
    adjust_value,
    apply_updates,
    load_directory,
    load_profiles,
    parse_adjustment,
    parse_measurement,
    parse_update_expression,
)
from profile_bundler.values import normalize_for_comparison


# =============================================================================
# Measurements
# =============================================================================

class TestMeasurement:
    def test_integer(self):
        m = parse_measurement("20")
        assert m.magnitude == Decimal("20")
        assert m.unit is Unit.NONE
        assert m.integral

    def test_fraction_with_unit(self):
        m = parse_measurement("0.4mm")
        assert m.magnitude == Decimal("0.4")
        assert m.unit is Unit.MILLIMETER
        assert not m.integral

    def test_percent(self):
        assert parse_measurement("15%").unit is Unit.PERCENT

    def test_invalid(self):
        with pytest.raises(ValueParseError):
            parse_measurement("abc")

    def test_adjustment_accepts_leading_equals(self):
        adj = parse_adjustment("=+5%")
        assert adj.sign == "+"
        assert adj.amount == Decimal("5")
        assert adj.unit is Unit.PERCENT


class TestAdjustValue:
    def test_fraction(self):
        assert adjust_value("0.2", "+0.05") == "0.25"

    def test_integer_stays_integer(self):
        assert adjust_value("20%", "+5%") == "25%"

    def test_unitless_delta_on_percent_value(self):
        with pytest.raises(UnitMismatchError):
            adjust_value("20%", "+5")

    def test_unit_delta_on_unitless_value(self):
        with pytest.raises(UnitMismatchError):
            adjust_value("20", "+5%")

    def test_integer_plus_fraction(self):
        assert adjust_value("3", "+0.5") == "3.5"

    def test_fractional_result_keeps_one_decimal(self):
        assert adjust_value("1", "+1.0") == "2.0"

    def test_unitless_clamped_at_zero(self):
        assert adjust_value("2", "-5") == "0"

    def test_unit_mismatch(self):
        with pytest.raises(UnitMismatchError):
            adjust_value("20%", "+5mm")

    def test_rounds_to_six_places(self):
        assert adjust_value("0.1", "+0.0000004") == "0.1"


class TestNormalizeForComparison:
    def test_bare_number_gets_default_unit(self):
        assert normalize_for_comparison("0.2") == "0.2mm"

    def test_case_insensitive(self):
        assert normalize_for_comparison("0.2MM") == "0.2mm"

    def test_blank(self):
        assert normalize_for_comparison("  ") is None


# =============================================================================
# Update expressions
# =============================================================================

class TestUpdateExpression:
    def test_relative(self):
        expr = parse_update_expression("layer_height==+0.05")
        assert expr.key == "layer_height"
        assert expr.is_relative
        assert expr.apply("0.2") == "0.25"

    def test_absolute(self):
        expr = parse_update_expression("fill_density=20%")
        assert expr.key == "fill_density"
        assert not expr.is_relative
        assert expr.apply(None) == "20%"

    def test_relative_without_unit_on_millimetres(self):
        expr = parse_update_expression("first_layer_height==+0.1")
        with pytest.raises(UnitMismatchError):
            expr.apply("0.2mm")

    def test_invalid(self):
        with pytest.raises(ValueParseError):
            parse_update_expression("no equals sign")


class TestApplyUpdates:
    def test_updates_selected_profiles_only(self, print_dir):
        path = print_dir / "profiles.ini"
        path.write_text(
            "[print: Fast]\nlayer_height = 0.3\n\n[print: Slow]\nlayer_height = 0.1\n",
            encoding="utf-8",
        )
        selection = [p for p in load_directory(print_dir, ProfileType.PRINT) if p.name == "Fast"]

        report = apply_updates(selection, ["layer_height==-0.05", "perimeters=3"])

        profiles = {p.name: p for p in load_profiles(path, ProfileType.PRINT)}
        assert profiles["Fast"].properties == {"layer_height": "0.25", "perimeters": "3"}
        assert profiles["Slow"].properties == {"layer_height": "0.1"}
        assert report.changes["print: Fast"]["layer_height"] == ("0.3", "0.25")
        assert report.changes["print: Fast"]["perimeters"] == (None, "3")
        assert report.files_updated == [path]

    def test_relative_update_on_missing_property_is_skipped(self, print_dir, make_profile):
        make_profile(print_dir, "a.ini", "A", {"layer_height": "0.2"})
        selection = load_directory(print_dir, ProfileType.PRINT)

        report = apply_updates(selection, ["perimeters==+1"])

        assert report.skipped == ["print: A: perimeters"]
        assert report.files_updated == []

    def test_unit_mismatch_skips_only_that_property(self, print_dir, make_profile):
        path = make_profile(print_dir, "a.ini", "A", {"fill_density": "20%", "perimeters": "2"})
        selection = load_directory(print_dir, ProfileType.PRINT)

        report = apply_updates(selection, ["fill_density==+5mm", "perimeters==+1"])

        profile = load_profiles(path, ProfileType.PRINT)[0]
        assert profile.properties == {"fill_density": "20%", "perimeters": "3"}
        assert report.skipped == ["print: A: fill_density"]
