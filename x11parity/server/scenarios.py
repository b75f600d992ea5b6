"""Scripted X11 client sessions.

Each scenario is a plain function issuing a fixed sequence of requests on
an established session.  ``run_simulation`` drives the whole lifecycle:

    handshake -> reply reader -> scenarios -> done -> idle period -> close
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from x11parity.configurations import configuration_constants as cc
from x11parity.protocol.errors import X11ParityError
from x11parity.server import colormaps, requests
from x11parity.server.requests import PolyTextItem
from x11parity.server.session import Session

logger = logging.getLogger(__name__)

HOUSE_WINDOW = 1
HOUSE_TITLE = "x11parity - House and Sun"
HOUSE_FONT = 200
HOUSE_FONT_NAME = "-*-helvetica-medium-r-normal-*-12-*-*-*-p-*-iso8859-1"

# GC ids 100.. are assigned in this order.
SCENE_COLORS: dict[str, int] = {
    "red": 0xFF0000,
    "green": 0x008000,
    "blue": 0x0000FF,
    "yellow": 0xFFFF00,
    "brown": 0x8B4513,
    "cyan": 0x00FFFF,
}

FULL_CIRCLE = 360 * 64

Scenario = Callable[[Session], None]


def house_scene(session: Session) -> None:
    """Window with a house, ground, sun, star, text runs and a font round-trip."""
    width = session.config.window_width
    height = session.config.window_height

    requests.create_window(session, HOUSE_WINDOW, 0, 10, 20, width, height)
    requests.map_window(session, HOUSE_WINDOW)

    requests.create_gc_with_background(session, 99, HOUSE_WINDOW, 0xFFFFFF, 0)
    requests.poly_fill_rectangle(session, HOUSE_WINDOW, 99, [0, 0, width, height])

    gcs = {}
    for gc, (name, color) in enumerate(SCENE_COLORS.items(), start=100):
        gcs[name] = gc
        requests.create_gc_with_background(session, gc, HOUSE_WINDOW, color, 0)

    requests.poly_fill_rectangle(session, HOUSE_WINDOW, gcs["green"], [0, 300, 600, 100])
    requests.poly_fill_rectangle(session, HOUSE_WINDOW, gcs["brown"], [200, 200, 200, 150])
    requests.fill_poly(session, HOUSE_WINDOW, gcs["red"], [180, 200, 300, 100, 420, 200])
    requests.poly_fill_arc(session, HOUSE_WINDOW, gcs["yellow"], [500, 50, 40, 40, 0, FULL_CIRCLE])

    star = [
        100, 50, 110, 75, 135, 75, 115, 95, 125, 120,
        100, 105, 75, 120, 85, 95, 65, 75, 90, 75, 100, 50,
    ]
    requests.poly_line(session, HOUSE_WINDOW, gcs["cyan"], star)

    requests.set_window_title(session, HOUSE_WINDOW, HOUSE_TITLE)

    requests.image_text8(session, HOUSE_WINDOW, gcs["blue"], 50, 50, "Hello X11!")
    requests.image_text16(session, HOUSE_WINDOW, gcs["red"], 50, 70, "Hello World!")
    requests.poly_text8(
        session, HOUSE_WINDOW, gcs["yellow"], 50, 90,
        [PolyTextItem("PolyText8 "), PolyTextItem("Example", delta=10)],
    )
    requests.poly_text16(
        session, HOUSE_WINDOW, gcs["cyan"], 50, 110,
        [PolyTextItem("PolyText16 "), PolyTextItem("Example", delta=10)],
    )

    requests.open_font(session, HOUSE_FONT, HOUSE_FONT_NAME)
    requests.query_font(session, HOUSE_FONT)
    requests.list_fonts(session, 10, "*")

    font_gc = 106
    requests.create_gc_with_font(
        session, font_gc, HOUSE_WINDOW, SCENE_COLORS["blue"], 0, HOUSE_FONT
    )
    requests.image_text8(session, HOUSE_WINDOW, font_gc, 50, 130, "Text with font!")
    requests.close_font(session, HOUSE_FONT)


def xeyes_scene(session: Session) -> None:
    """Two nested windows with the classic pair of eyes."""
    outer, inner = 10, 11
    requests.create_window(session, outer, 64, 0, 0, 150, 100)
    requests.create_window(session, inner, outer, 0, 0, 150, 100)

    white_gc, black_gc = 13, 14
    requests.create_gc_with_background(session, white_gc, inner, 0xFFFFFF, 0)
    requests.create_gc_with_background(session, black_gc, inner, 0x000000, 0)

    requests.map_window(session, inner)
    requests.map_window(session, outer)

    quarter, full = 90 * 64, FULL_CIRCLE
    for gc, arc in (
        (black_gc, [17, 25, 13, 18]),  # left outline
        (black_gc, [92, 34, 13, 18]),  # right outline
        (white_gc, [18, 26, 11, 16]),  # left eye
        (white_gc, [93, 35, 11, 16]),  # right eye
        (black_gc, [23, 31, 5, 8]),    # left pupil
        (black_gc, [98, 40, 5, 8]),    # right pupil
    ):
        requests.poly_fill_arc(session, inner, gc, arc + [quarter, full])


def _check_allocated(session: Session, what: str, allocated: colormaps.AllocatedColor) -> None:
    if (allocated.pixel, allocated.red, allocated.green, allocated.blue) != (0x0000FF, 0, 0, 0xFFFF):
        session.reporter.report(
            "color_check",
            f"{what} = {allocated.pixel:06x}, "
            f"({allocated.red:04x}, {allocated.green:04x}, {allocated.blue:04x})",
        )


def color_operations(session: Session) -> None:
    """Colormap lifecycle with a window drawn through the new colormap."""
    cmap = 2
    colormaps.create_colormap(session, cmap, HOUSE_WINDOW)

    _check_allocated(
        session, f"allocNamedColor({cmap}, 'blue')",
        colormaps.alloc_named_color(session, cmap, "blue"),
    )
    _check_allocated(
        session, f"allocColor({cmap}, 0, 0, 65535)",
        colormaps.alloc_color(session, cmap, 0, 0, 65535),
    )

    window = 20
    requests.create_window(session, window, HOUSE_WINDOW, 10, 20, 200, 200, colormap=cmap)
    requests.map_window(session, window)

    blue_gc = 200
    requests.create_gc_with_background(session, blue_gc, window, 0x0000FF, 0)
    requests.poly_fill_rectangle(session, window, blue_gc, [10, 10, 180, 180])

    colormaps.query_colors(session, cmap, [0x0000FF])
    colormaps.install_colormap(session, cmap)
    colormaps.list_installed_colormaps(session, HOUSE_WINDOW)
    colormaps.free_colors(session, cmap, 0, [0x0000FF])
    colormaps.free_colormap(session, cmap)


def gc_operations(session: Session) -> None:
    """Line widths, dashes, fill rules, tiles, stipples, XOR and arc mode."""
    window = 30
    requests.create_window(session, window, HOUSE_WINDOW, 220, 220, 300, 300)
    requests.map_window(session, window)

    thick_red = 300
    requests.create_gc_with_attributes(
        session, thick_red, window, {cc.GC_FOREGROUND: 0xFF0000, cc.GC_LINE_WIDTH: 5}
    )
    requests.poly_line(session, window, thick_red, [10, 10, 100, 10])

    dashed_blue = 301
    requests.create_gc_with_attributes(
        session,
        dashed_blue,
        window,
        {
            cc.GC_FOREGROUND: 0x0000FF,
            cc.GC_CAP_STYLE: 2,  # Round
            cc.GC_JOIN_STYLE: 1,  # Round
            cc.GC_DASH_LIST: 4,
        },
    )
    requests.set_dashes(session, dashed_blue, 0, bytes([4, 4]))
    requests.poly_line(session, window, dashed_blue, [10, 30, 100, 30, 100, 50])

    winding = 302
    requests.create_gc_with_attributes(
        session, winding, window, {cc.GC_FOREGROUND: 0x00FF00, cc.GC_FILL_RULE: 1}
    )
    requests.fill_poly(session, window, winding, [150, 10, 180, 60, 120, 60, 150, 10])

    tile = 400
    requests.create_pixmap(session, tile, window, 8, 8, 24)
    tile_gc = 303
    requests.create_gc_with_attributes(session, tile_gc, tile, {cc.GC_FOREGROUND: 0xFF00FF})
    requests.poly_fill_rectangle(session, tile, tile_gc, [0, 0, 4, 4])
    requests.poly_fill_rectangle(session, tile, tile_gc, [4, 4, 4, 4])
    tiled_fill = 304
    requests.create_gc_with_attributes(
        session, tiled_fill, window, {cc.GC_FILL_STYLE: 1, cc.GC_TILE: tile}
    )
    requests.poly_fill_rectangle(session, window, tiled_fill, [10, 70, 100, 50])

    stipple = 401
    requests.create_pixmap(session, stipple, window, 8, 8, 1)
    stipple_gc = 305
    requests.create_gc_with_attributes(session, stipple_gc, stipple, {cc.GC_FOREGROUND: 0x000000})
    requests.poly_point(session, stipple, stipple_gc, [i // 2 for i in range(16)])
    stippled_fill = 306
    requests.create_gc_with_attributes(
        session,
        stippled_fill,
        window,
        {cc.GC_FOREGROUND: 0x800080, cc.GC_FILL_STYLE: 2, cc.GC_STIPPLE: stipple},
    )
    requests.poly_fill_rectangle(session, window, stippled_fill, [120, 70, 100, 50])

    xor = 307
    requests.create_gc_with_attributes(
        session, xor, window, {cc.GC_FUNCTION: 6, cc.GC_FOREGROUND: 0xFF00FF}
    )
    requests.poly_fill_rectangle(session, window, xor, [10, 130, 50, 50])
    requests.poly_fill_rectangle(session, window, xor, [40, 160, 50, 50])

    font = 402
    requests.open_font(session, font, "-*-helvetica-bold-r-normal--25-*-*-*-*-*-iso8859-1")
    arc_font = 308
    requests.create_gc_with_attributes(
        session,
        arc_font,
        window,
        {cc.GC_FOREGROUND: 0x000000, cc.GC_ARC_MODE: 1, cc.GC_FONT: font},
    )
    requests.poly_fill_arc(session, window, arc_font, [120, 130, 100, 100, 0, 90 * 64])
    requests.image_text8(session, window, arc_font, 120, 250, "Arc")
    requests.close_font(session, font)


def grab_operations(session: Session, hold_s: float = 0.1) -> None:
    """Grab the pointer on the house window, hold briefly, release."""
    requests.grab_pointer(
        session,
        HOUSE_WINDOW,
        cc.BUTTON_PRESS_MASK | cc.BUTTON_RELEASE_MASK,
        owner_events=False,
        pointer_mode=cc.GrabModes.Async,
        keyboard_mode=cc.GrabModes.Async,
    )
    time.sleep(hold_s)
    requests.ungrab_pointer(session)


DEFAULT_SCENARIOS: tuple[tuple[str, Scenario], ...] = (
    ("house", house_scene),
    ("xeyes", xeyes_scene),
    ("colors", color_operations),
    ("gc", gc_operations),
    ("grab", grab_operations),
)


def run_scenarios(
    session: Session, scenarios: Sequence[tuple[str, Scenario]] = DEFAULT_SCENARIOS
) -> bool:
    """Run scenarios in order on an established session.

    The first scenario that raises stops the run.

    :returns: True if every scenario completed.
    """
    for name, scenario in scenarios:
        logger.info(f"[Scenario] Starting {name}")
        try:
            scenario(session)
        except X11ParityError as e:
            logger.error(f"[Scenario] {name} stopped: {e}")
            return False
        logger.info(f"[Scenario] {name} complete, {len(session.operations)} operations so far")
    return True


def run_simulation(
    session: Session,
    scenarios: Sequence[tuple[str, Scenario]] = DEFAULT_SCENARIOS,
    idle_period_s: float | None = None,
) -> bool:
    """Handshake, run the scenarios, signal done, idle, then close.

    The session is closed on every path.

    :returns: True if the handshake and all scenarios succeeded.
    """
    if idle_period_s is None:
        idle_period_s = session.config.idle_period_s

    session.clear()
    try:
        session.establish()
    except X11ParityError as e:
        logger.error(f"[Scenario] Handshake failed: {e}")
        session.close()
        return False

    completed = False
    try:
        completed = run_scenarios(session, scenarios)
    finally:
        logger.info(
            f"[Scenario] Done: {len(session.operations)} operations, "
            f"{len(session.reporter)} findings"
        )
        session.done.set()
        try:
            # Give the rendering client time to draw before the channel goes away.
            time.sleep(idle_period_s)
        finally:
            session.close()
    return completed
