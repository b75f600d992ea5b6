"""Color normalization between X11 pixel values and canvas style strings.

The simulator records foreground colors as 24-bit RGB integers
(``0xRRGGBB``); the rendering client reports ``fillStyle``/``strokeStyle``
strings.  Both sides are brought to a common form here:

  - RGB tuples: ``(255, 0, 0)``
  - Integers: ``0xFF0000`` (the upper byte of a 32-bit pixel is ignored)
  - Hex strings: ``'#FF0000'`` or shorthand ``'#F00'``
  - Functional strings: ``'rgb(255, 0, 0)'`` or ``'rgba(255, 0, 0, 1)'``
  - Named strings: ``'red'``

``normalize_color`` converts any of these to a canonical lowercase
``#rrggbb`` hex string; ``parse_color`` goes one step further to the
integer the X11 side uses.
"""

from __future__ import annotations

import re

# CSS names a rendering client may report instead of hex.
NAMED_COLORS: dict[str, str] = {
    "red": "#ff0000",
    "green": "#008000",
    "blue": "#0000ff",
    "white": "#ffffff",
    "black": "#000000",
    "yellow": "#ffff00",
    "cyan": "#00ffff",
    "magenta": "#ff00ff",
    "orange": "#ffa500",
    "purple": "#800080",
    "pink": "#ffc0cb",
    "brown": "#a52a2a",
    "saddlebrown": "#8b4513",
    "gray": "#808080",
    "grey": "#808080",
    "lime": "#00ff00",
    "navy": "#000080",
    "teal": "#008080",
    "maroon": "#800000",
    "olive": "#808000",
    "aqua": "#00ffff",
}

_HEX6_RE = re.compile(r"^#[0-9a-f]{6}$")
_HEX3_RE = re.compile(r"^#[0-9a-f]{3}$")
_RGB_FUNC_RE = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*[0-9.]+\s*)?\)$"
)


def _rgb_to_hex(r: int, g: int, b: int) -> str:
    if not all(0 <= c <= 255 for c in (r, g, b)):
        raise ValueError(f"RGB values must be 0-255, got ({r}, {g}, {b})")
    return f"#{r:02x}{g:02x}{b:02x}"


def normalize_color(color: tuple[int, int, int] | int | str) -> str:
    """Normalize a color value to a lowercase ``#rrggbb`` hex string.

    :param color: An RGB tuple ``(r, g, b)`` with ints 0-255, a pixel
        integer ``0xRRGGBB``, a hex string ``'#rrggbb'`` or ``'#rgb'``, an
        ``rgb()``/``rgba()`` string, or a CSS named color string.
    :returns: Lowercase ``#rrggbb`` hex string.
    :raises TypeError: If *color* is not a tuple, int or str.
    :raises ValueError: If the value cannot be interpreted as a valid color.
    """
    if isinstance(color, bool):
        raise TypeError("color must be a tuple, int or str, got bool")

    if isinstance(color, int):
        if not 0 <= color <= 0xFFFFFFFF:
            raise ValueError(f"Pixel value must be an unsigned 32-bit int, got {color}")
        return f"#{color & 0xFFFFFF:06x}"

    if isinstance(color, tuple):
        if len(color) != 3:
            raise ValueError(
                f"RGB tuple must have exactly 3 elements, got {len(color)}"
            )
        r, g, b = color
        if not all(isinstance(c, int) for c in (r, g, b)):
            raise ValueError(
                f"RGB tuple elements must be ints, got {tuple(type(c).__name__ for c in color)}"
            )
        return _rgb_to_hex(r, g, b)

    if isinstance(color, str):
        lower = color.lower().strip()

        # Names take priority over hex forms.
        if lower in NAMED_COLORS:
            return NAMED_COLORS[lower]

        if _HEX6_RE.match(lower):
            return lower

        # #rgb doubles each digit.
        if _HEX3_RE.match(lower):
            return "#" + "".join(digit * 2 for digit in lower[1:])

        # rgb(r, g, b) / rgba(r, g, b, a); alpha is ignored.
        match = _RGB_FUNC_RE.match(lower)
        if match:
            return _rgb_to_hex(*(int(c) for c in match.groups()))

        raise ValueError(f"Unrecognized color string: {color!r}")

    raise TypeError(
        f"color must be a tuple, int or str, got {type(color).__name__}"
    )


def parse_color(color: tuple[int, int, int] | int | str) -> int:
    """Convert any accepted color form to a ``0xRRGGBB`` integer."""
    return int(normalize_color(color)[1:], 16)


def format_color(pixel: int) -> str:
    """Render a pixel value the way a canvas reports it, e.g. ``#ff0000``."""
    return normalize_color(pixel)
