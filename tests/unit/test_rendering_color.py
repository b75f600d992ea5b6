"""Unit tests for x11parity.rendering.color.

normalize_color() brings X11 pixels and canvas style strings to one form;
parse_color() and format_color() convert between that form and pixels.
"""

from __future__ import annotations

import re

import pytest

from x11parity.rendering.color import (
    NAMED_COLORS,
    format_color,
    normalize_color,
    parse_color,
)

# ======================================================================
# Pixel integers
# ======================================================================


class TestPixels:
    """normalize_color() handles 0xRRGGBB pixel values."""

    def test_red(self) -> None:
        assert normalize_color(0xFF0000) == "#ff0000"

    def test_black(self) -> None:
        assert normalize_color(0) == "#000000"

    def test_small_value_zero_padded(self) -> None:
        assert normalize_color(0xFF) == "#0000ff"

    def test_upper_byte_ignored(self) -> None:
        assert normalize_color(0xFF00FF00) == "#00ff00"

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError, match="32-bit"):
            normalize_color(-1)

    def test_too_large_raises(self) -> None:
        with pytest.raises(ValueError, match="32-bit"):
            normalize_color(0x1_0000_0000)


# ======================================================================
# RGB tuples
# ======================================================================


class TestRGBTuples:
    def test_saddle_brown(self) -> None:
        assert normalize_color((139, 69, 19)) == "#8b4513"

    def test_mid_gray(self) -> None:
        assert normalize_color((0x80, 0x80, 0x80)) == "#808080"

    @pytest.mark.parametrize("component", [256, -1])
    def test_component_out_of_range(self, component: int) -> None:
        with pytest.raises(ValueError, match="0-255"):
            normalize_color((component, 0, 0))

    def test_four_components_rejected(self) -> None:
        with pytest.raises(ValueError, match="3 elements"):
            normalize_color((0, 0, 255, 255))

    def test_float_component_rejected(self) -> None:
        with pytest.raises(ValueError, match="ints"):
            normalize_color((0.5, 0, 0))


# ======================================================================
# Canvas style strings
# ======================================================================


class TestStyleStrings:
    """normalize_color() handles what a canvas reports as fillStyle."""

    def test_uppercase_hex_lowered(self) -> None:
        assert normalize_color("#8B4513") == "#8b4513"

    def test_three_digit_hex_expanded(self) -> None:
        assert normalize_color("#0f8") == "#00ff88"

    def test_rgb_function(self) -> None:
        assert normalize_color("rgb(139, 69, 19)") == "#8b4513"

    def test_rgba_alpha_ignored(self) -> None:
        assert normalize_color("rgba(0, 0, 255, 0.5)") == "#0000ff"

    def test_rgb_function_without_spaces(self) -> None:
        assert normalize_color("rgb(0,128,0)") == "#008000"

    def test_rgb_component_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="0-255"):
            normalize_color("rgb(300, 0, 0)")

    @pytest.mark.parametrize("style", ["#12", "00ff00", "", "transparent", "#ggg"])
    def test_unrecognized_styles(self, style: str) -> None:
        with pytest.raises(ValueError, match="Unrecognized"):
            normalize_color(style)


# ======================================================================
# Named colors
# ======================================================================


class TestNamedColors:
    @pytest.mark.parametrize("name", sorted(NAMED_COLORS))
    def test_name_resolves_to_table_entry(self, name: str) -> None:
        assert normalize_color(name.upper()) == NAMED_COLORS[name]

    def test_padding_around_name(self) -> None:
        assert normalize_color("  navy\t") == "#000080"

    def test_grey_and_gray_agree(self) -> None:
        assert normalize_color("grey") == normalize_color("gray")

    def test_table_holds_only_six_digit_hex(self) -> None:
        six_digit = re.compile(r"#[0-9a-f]{6}")
        assert all(six_digit.fullmatch(value) for value in NAMED_COLORS.values())


# ======================================================================
# Type errors
# ======================================================================


class TestTypeErrors:
    def test_bool_raises(self) -> None:
        with pytest.raises(TypeError, match="bool"):
            normalize_color(True)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [[255, 0, 0], None, 1.5])
    def test_unsupported_types(self, value) -> None:
        with pytest.raises(TypeError, match="tuple, int or str"):
            normalize_color(value)  # type: ignore[arg-type]


# ======================================================================
# parse_color / format_color
# ======================================================================


class TestParseAndFormat:
    def test_parse_hex(self) -> None:
        assert parse_color("#8B4513") == 0x8B4513

    def test_parse_named(self) -> None:
        assert parse_color("cyan") == 0x00FFFF

    def test_parse_pixel_masks_upper_byte(self) -> None:
        assert parse_color(0xFF0000FF) == 0x0000FF

    def test_format(self) -> None:
        assert format_color(0x00FFFF) == "#00ffff"

    @pytest.mark.parametrize("style", ["#ff0000", "red", "rgb(255, 0, 0)", "#f00"])
    def test_equivalent_styles_parse_equal(self, style) -> None:
        assert parse_color(style) == 0xFF0000
