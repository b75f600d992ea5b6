from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True)
class Opcodes:
    CreateWindow = 1
    MapWindow = 8
    ChangeProperty = 18
    GrabPointer = 26
    UngrabPointer = 27
    OpenFont = 45
    CloseFont = 46
    QueryFont = 47
    ListFonts = 49
    CreatePixmap = 53
    CreateGC = 55
    ChangeGC = 56
    SetDashes = 58
    PolyPoint = 64
    PolyLine = 65
    PolySegment = 66
    PolyRectangle = 67
    PolyArc = 68
    FillPoly = 69
    # Written on the wire by the fill-rectangle operation.
    PolyFillRectangle = 70
    PolyFillArc = 71
    PutImage = 72
    PolyText8 = 74
    PolyText16 = 75
    ImageText8 = 76
    ImageText16 = 77
    CreateColormap = 78
    FreeColormap = 79
    InstallColormap = 81
    ListInstalledColormaps = 83
    AllocColor = 84
    AllocNamedColor = 85
    FreeColors = 88
    QueryColors = 91


@dataclasses.dataclass(frozen=True)
class OperationTypes:
    """Operation tags shared with the rendering client's canvas trace."""

    CreateWindow = "createWindow"
    MapWindow = "mapWindow"
    ChangeProperty = "changeProperty"
    GrabPointer = "grabPointer"
    UngrabPointer = "ungrabPointer"
    OpenFont = "openFont"
    CloseFont = "closeFont"
    QueryFont = "queryFont"
    ListFonts = "listFonts"
    CreatePixmap = "createPixmap"
    CreateGC = "createGC"
    ChangeGC = "changeGC"
    SetDashes = "setDashes"
    PolyPoint = "polyPoint"
    PolyLine = "polyLine"
    PolySegment = "polySegment"
    PolyRectangle = "polyRectangle"
    PolyArc = "polyArc"
    FillPoly = "fillPoly"
    PolyFillRectangle = "polyFillRectangle"
    PolyFillArc = "polyFillArc"
    PutImage = "putImage"
    PolyText8 = "polyText8"
    PolyText16 = "polyText16"
    ImageText8 = "imageText8"
    ImageText16 = "imageText16"


@dataclasses.dataclass(frozen=True)
class MessageTypes:
    Error = 0
    Reply = 1
    # Events occupy 2..127; 128+ is an event sent with SendEvent, which
    # this simulation never asks for.
    FirstEvent = 2
    LastEvent = 127


@dataclasses.dataclass(frozen=True)
class SetupStatus:
    Failed = 0
    Success = 1
    Authenticate = 2


# Graphics-context value-mask bits, in value-list order.
GC_FUNCTION = 1 << 0
GC_PLANE_MASK = 1 << 1
GC_FOREGROUND = 1 << 2
GC_BACKGROUND = 1 << 3
GC_LINE_WIDTH = 1 << 4
GC_LINE_STYLE = 1 << 5
GC_CAP_STYLE = 1 << 6
GC_JOIN_STYLE = 1 << 7
GC_FILL_STYLE = 1 << 8
GC_FILL_RULE = 1 << 9
GC_TILE = 1 << 10
GC_STIPPLE = 1 << 11
GC_TILE_STIP_X_ORIGIN = 1 << 12
GC_TILE_STIP_Y_ORIGIN = 1 << 13
GC_FONT = 1 << 14
GC_SUBWINDOW_MODE = 1 << 15
GC_GRAPHICS_EXPOSURES = 1 << 16
GC_CLIP_X_ORIGIN = 1 << 17
GC_CLIP_Y_ORIGIN = 1 << 18
GC_CLIP_MASK = 1 << 19
GC_DASH_OFFSET = 1 << 20
GC_DASH_LIST = 1 << 21
GC_ARC_MODE = 1 << 22

# Attribute names the rendering client reports for each GC mask bit.
GC_ATTRIBUTE_NAMES: dict[int, str] = {
    GC_FUNCTION: "Function",
    GC_PLANE_MASK: "PlaneMask",
    GC_FOREGROUND: "Foreground",
    GC_BACKGROUND: "Background",
    GC_LINE_WIDTH: "LineWidth",
    GC_LINE_STYLE: "LineStyle",
    GC_CAP_STYLE: "CapStyle",
    GC_JOIN_STYLE: "JoinStyle",
    GC_FILL_STYLE: "FillStyle",
    GC_FILL_RULE: "FillRule",
    GC_TILE: "Tile",
    GC_STIPPLE: "Stipple",
    GC_TILE_STIP_X_ORIGIN: "TileStipXOrigin",
    GC_TILE_STIP_Y_ORIGIN: "TileStipYOrigin",
    GC_FONT: "Font",
    GC_SUBWINDOW_MODE: "SubwindowMode",
    GC_GRAPHICS_EXPOSURES: "GraphicsExposures",
    GC_CLIP_X_ORIGIN: "ClipXOrigin",
    GC_CLIP_Y_ORIGIN: "ClipYOrigin",
    GC_CLIP_MASK: "ClipMask",
    GC_DASH_OFFSET: "DashOffset",
    GC_DASH_LIST: "Dashes",
    GC_ARC_MODE: "ArcMode",
}

# Window attribute mask bits used by CreateWindow.
CW_BACK_PIXEL = 1 << 1
CW_EVENT_MASK = 1 << 11
CW_COLORMAP = 1 << 13

# Pointer event mask bits.
BUTTON_PRESS_MASK = 1 << 2
BUTTON_RELEASE_MASK = 1 << 3
POINTER_MOTION_MASK = 1 << 6


@dataclasses.dataclass(frozen=True)
class GrabModes:
    Sync = 0
    Async = 1


@dataclasses.dataclass(frozen=True)
class GrabStatus:
    Success = 0
    AlreadyGrabbed = 1
    InvalidTime = 2
    NotViewable = 3
    Frozen = 4


@dataclasses.dataclass(frozen=True)
class CoordinateModes:
    Origin = 0
    Previous = 1


@dataclasses.dataclass(frozen=True)
class PolyShapes:
    Complex = 0
    Nonconvex = 1
    Convex = 2


@dataclasses.dataclass(frozen=True)
class PropertyModes:
    Replace = 0
    Prepend = 1
    Append = 2


@dataclasses.dataclass(frozen=True)
class ImageFormats:
    Bitmap = 0
    XYPixmap = 1
    ZPixmap = 2


# Predefined atoms used by the scenarios.
ATOM_STRING = 31
ATOM_WM_NAME = 39

WINDOW_CLASS_INPUT_OUTPUT = 1
COPY_FROM_PARENT = 0
DEFAULT_WINDOW_DEPTH = 24

# X11 displays listen on 6000 + display number.
X11_TCP_PORT_BASE = 6000
