"""
Visual themes for rendered documents.

A Theme is plain data: colours, fonts, corner style, decoration shapes and
the offsets of each element inside the fixed section bands laid out by
``layout.LayoutEngine``. Themes never change which sections render or the
vertical extent of a section, so every theme paginates a document the same
way.

Offsets are millimetres from the top-left corner. A negative x is measured
from the right page edge and a negative y from the bottom page edge.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from config import config
from drawing import RGB, GridStyle

logger = logging.getLogger(__name__)

Box = Tuple[float, float, float, float]

WHITE: RGB = (255, 255, 255)
BLACK: RGB = (0, 0, 0)


@dataclass(frozen=True)
class Shape:
    """
    One decoration primitive.

    kind "rect": box at (x, y) sized w x h; w == 0 runs to the right page edge.
    kind "circle": centre (x, y), radius w.
    kind "line": from x to w along y.
    kind "frame": page border inset by x on every side.
    """

    kind: str
    x: float = 0
    y: float = 0
    w: float = 0
    h: float = 0
    color: RGB = BLACK
    opacity: float = 1.0
    line_width: float = 0.5
    # x and w are fractions of the page width
    relative: bool = False


@dataclass(frozen=True)
class Palette:
    primary: RGB
    accent: RGB
    text: RGB = BLACK
    muted: RGB = (107, 114, 128)
    panel: RGB = (249, 250, 251)
    rule: RGB = (229, 231, 235)
    success: RGB = (34, 197, 94)
    failure: RGB = (239, 68, 68)
    pending: RGB = (250, 204, 21)
    alert: RGB = (220, 38, 38)
    positive: RGB = (22, 163, 74)
    negative: RGB = (220, 38, 38)


@dataclass(frozen=True)
class HeaderLayout:
    logo: Box
    name_with_logo: Tuple[float, float]
    name_only: Tuple[float, float]
    name_size: float
    name_color: RGB
    title_at: Tuple[float, float]
    title_size: float
    title_color: RGB
    meta_at: Tuple[float, float]
    meta_size: float
    meta_label_color: RGB
    meta_value_color: RGB
    badge: Box
    title_align: str = "left"
    title_style: str = "bold"
    name_style: str = "bold"
    name_uppercase: bool = False
    logo_backing: Optional[Tuple[Box, RGB]] = None
    name_backing: Optional[Tuple[Box, RGB]] = None
    title_backing: Optional[Tuple[Box, RGB]] = None
    meta_backing: Optional[Tuple[Box, RGB]] = None
    meta_align: str = "left"
    # None renders "Label: value" as one string
    meta_value_x: Optional[float] = None
    meta_step: float = 5
    badge_radius: float = 2
    badge_size: float = 8


@dataclass(frozen=True)
class PanelLayout:
    # "banner", "outlined", "tinted" or "plain"
    style: str
    left_x: float = 15
    left_w: float = 90
    right_x: float = 110
    right_w: float = 85
    height: float = 32
    payment_x: float = 110
    payment_w: float = 85
    payment_h: float = 22
    title_size: float = 8
    body_size: float = 8
    bill_to_first: bool = True
    title_color: Optional[RGB] = None


@dataclass(frozen=True)
class TotalsLayout:
    x: float = -80
    width: float = 65
    framed: bool = False
    show_title: bool = False
    rules: bool = True
    label_size: float = 8
    grand_label: str = "GRAND TOTAL:"
    grand_fill: Optional[RGB] = None
    grand_text: RGB = WHITE
    grand_size: float = 12
    grand_overlay: Optional[Tuple[RGB, float]] = None


@dataclass(frozen=True)
class NotesLayout:
    # Beside puts notes in the left column next to the totals panel
    beside_totals: bool = False
    boxed: bool = True
    notes_lines: int = 3
    terms_lines: int = 2
    width: float = 0
    title_size: float = 8
    body_size: float = 7


@dataclass(frozen=True)
class FooterLayout:
    shapes: Tuple[Shape, ...] = ()
    text_y: float = -10
    text_size: float = 8
    text_color: RGB = (100, 100, 100)
    text_style: str = "normal"


@dataclass(frozen=True)
class Theme:
    name: str
    palette: Palette
    header: HeaderLayout
    panels: PanelLayout
    grid: GridStyle
    totals: TotalsLayout
    notes: NotesLayout = field(default_factory=NotesLayout)
    footer: FooterLayout = field(default_factory=FooterLayout)
    header_shapes: Tuple[Shape, ...] = ()
    font_family: str = "helvetica"
    radius: float = 2
    uppercase_headers: bool = False


NAVY: RGB = (30, 58, 95)
SKY: RGB = (38, 169, 224)
CORPORATE_BLUE: RGB = (30, 64, 175)
GOLD: RGB = (234, 179, 8)
CLASSIC_BLUE: RGB = (59, 130, 246)
MODERN_BLUE: RGB = (37, 99, 235)
PURPLE: RGB = (147, 51, 234)
DARK_GRAY: RGB = (75, 85, 99)


def _thirds(y: float, h: float, outer: RGB, middle: RGB) -> Tuple[Shape, ...]:
    return (
        Shape("rect", 0, y, 1 / 3, h, color=outer, relative=True),
        Shape("rect", 1 / 3, y, 1 / 3, h, color=middle, relative=True),
        Shape("rect", 2 / 3, y, 1 / 3, h, color=outer, relative=True),
    )


LICERIA = Theme(
    name="liceria",
    palette=Palette(primary=NAVY, accent=SKY),
    header_shapes=_thirds(0, 12, SKY, NAVY),
    header=HeaderLayout(
        logo=(-58, 20, 14, 14),
        name_backing=((-60, 18, 45, 18), NAVY),
        name_with_logo=(-42, 28),
        name_only=(-56, 28),
        name_size=9,
        name_color=WHITE,
        title_at=(15, 30),
        title_size=32,
        title_color=NAVY,
        badge=(15, 35, 25, 6),
        badge_radius=3,
        badge_size=7,
        meta_at=(15, 52),
        meta_size=7,
        meta_label_color=(128, 128, 128),
        meta_value_color=NAVY,
        meta_value_x=48,
    ),
    panels=PanelLayout(
        style="banner",
        left_x=15, left_w=90, right_x=-80, right_w=65,
        payment_x=-85, payment_w=70,
        title_size=7, body_size=7,
        bill_to_first=False,
    ),
    grid=GridStyle(head_fill=NAVY, body_text=NAVY),
    totals=TotalsLayout(x=-80, width=65, framed=True, show_title=True, grand_fill=NAVY, grand_size=13),
    notes=NotesLayout(beside_totals=True, boxed=True, notes_lines=3, terms_lines=3, width=95),
    footer=FooterLayout(shapes=_thirds(-16, 16, SKY, NAVY), text_y=-7, text_color=WHITE, text_style="bold"),
    uppercase_headers=True,
)

CORPORATE = Theme(
    name="corporate",
    palette=Palette(primary=CORPORATE_BLUE, accent=GOLD),
    header_shapes=(
        Shape("rect", 0, 0, 0, 50, color=CORPORATE_BLUE),
        Shape("rect", 0, 48, 0, 2, color=GOLD),
    ),
    header=HeaderLayout(
        logo=(15, 10, 20, 20),
        name_with_logo=(40, 20),
        name_only=(15, 25),
        name_size=14,
        name_color=WHITE,
        title_at=(-15, 25),
        title_align="right",
        title_size=24,
        title_color=GOLD,
        badge=(15, 60, 30, 8),
        meta_at=(-15, 34),
        meta_align="right",
        meta_size=9,
        meta_label_color=WHITE,
        meta_value_color=WHITE,
    ),
    panels=PanelLayout(style="banner", height=34, payment_h=20, title_size=9, title_color=WHITE),
    grid=GridStyle(head_fill=CORPORATE_BLUE, head_align="CENTER", full_grid=False),
    totals=TotalsLayout(x=-75, width=60, grand_fill=CORPORATE_BLUE, grand_size=13),
    notes=NotesLayout(boxed=False, notes_lines=3, terms_lines=2),
    footer=FooterLayout(
        shapes=(Shape("rect", 0, -10, 0, 10, color=GOLD),),
        text_y=-4,
        text_size=7,
        text_color=WHITE,
    ),
    radius=0,
)

CLASSIC = Theme(
    name="classic",
    palette=Palette(primary=CLASSIC_BLUE, accent=(156, 163, 175), panel=(239, 246, 255)),
    font_family="times",
    header_shapes=(Shape("line", 15, 72, -15, color=(200, 200, 200), line_width=0.5),),
    header=HeaderLayout(
        logo=(15, 20, 25, 25),
        name_with_logo=(45, 28),
        name_only=(15, 30),
        name_size=18,
        name_color=CLASSIC_BLUE,
        title_at=(-15, 30),
        title_align="right",
        title_size=28,
        title_color=CLASSIC_BLUE,
        badge=(-45, 58, 30, 8),
        meta_at=(-15, 38),
        meta_align="right",
        meta_size=9,
        meta_label_color=BLACK,
        meta_value_color=BLACK,
        meta_step=5,
    ),
    panels=PanelLayout(style="outlined", height=34, title_size=10, body_size=8),
    grid=GridStyle(head_fill=CLASSIC_BLUE, alternate_fill=(239, 246, 255), line_color=(200, 200, 200)),
    totals=TotalsLayout(x=-80, width=65, framed=True, grand_fill=CLASSIC_BLUE),
    notes=NotesLayout(boxed=False, notes_lines=3, terms_lines=2),
    footer=FooterLayout(
        shapes=(Shape("line", 15, -18, -15, color=(200, 200, 200), line_width=0.3),),
        text_y=-10,
        text_style="italic",
    ),
)

MODERN = Theme(
    name="modern",
    palette=Palette(primary=MODERN_BLUE, accent=PURPLE, panel=(239, 246, 255)),
    header_shapes=(
        Shape("rect", 0, 0, 0, 60, color=MODERN_BLUE),
        Shape("rect", 0.5, 0, 0.5, 60, color=PURPLE, opacity=0.3, relative=True),
        Shape("circle", -30, 20, 25, color=WHITE, opacity=0.1),
        Shape("circle", 20, 50, 15, color=WHITE, opacity=0.1),
    ),
    header=HeaderLayout(
        logo=(15, 15, 24, 24),
        logo_backing=((12, 12, 30, 30), WHITE),
        name_with_logo=(48, 25),
        name_only=(15, 28),
        name_size=18,
        name_color=WHITE,
        title_at=(-15, 30),
        title_align="right",
        title_size=28,
        title_color=WHITE,
        badge=(15, 66, 35, 10),
        badge_radius=3,
        meta_at=(-15, 40),
        meta_align="right",
        meta_size=9,
        meta_label_color=WHITE,
        meta_value_color=WHITE,
    ),
    panels=PanelLayout(style="tinted", height=34, title_size=9),
    grid=GridStyle(head_fill=MODERN_BLUE, head_align="CENTER", alternate_fill=(245, 243, 255)),
    totals=TotalsLayout(x=-80, width=65, grand_fill=MODERN_BLUE, grand_overlay=(PURPLE, 0.5)),
    notes=NotesLayout(boxed=True, notes_lines=2, terms_lines=2),
    footer=FooterLayout(
        shapes=(
            Shape("rect", 0, -6, 0, 6, color=MODERN_BLUE),
            Shape("rect", 0.5, -6, 0.5, 6, color=PURPLE, opacity=0.3, relative=True),
        ),
        text_y=-10,
        text_style="italic",
        text_color=(107, 114, 128),
    ),
    radius=3,
)

MINIMAL = Theme(
    name="minimal",
    palette=Palette(primary=BLACK, accent=DARK_GRAY, panel=(250, 250, 250), muted=(100, 100, 100)),
    header_shapes=(Shape("line", 15, 50, -15, line_width=2),),
    header=HeaderLayout(
        logo=(-35, 8, 20, 20),
        name_with_logo=(15, 25),
        name_only=(15, 25),
        name_size=24,
        name_style="normal",
        name_uppercase=True,
        name_color=BLACK,
        title_at=(-15, 42),
        title_align="right",
        title_size=28,
        title_style="normal",
        title_color=BLACK,
        badge=(-45, 58, 30, 7),
        badge_radius=0,
        badge_size=7,
        meta_at=(15, 60),
        meta_size=8,
        meta_label_color=BLACK,
        meta_value_color=BLACK,
        meta_value_x=50,
        meta_step=6,
    ),
    panels=PanelLayout(style="plain", title_size=7, body_size=8),
    grid=GridStyle(head_fill=BLACK, alternate_fill=None, line_color=(200, 200, 200), full_grid=False),
    totals=TotalsLayout(x=-75, width=60, grand_label="TOTAL:", grand_fill=BLACK),
    notes=NotesLayout(boxed=False, notes_lines=3, terms_lines=2, title_size=7, body_size=7),
    footer=FooterLayout(
        shapes=(Shape("line", 15, -16, -15, line_width=0.5),),
        text_y=-10,
        text_size=7,
    ),
    radius=0,
    uppercase_headers=True,
)

PROFESSIONAL = Theme(
    name="professional",
    palette=Palette(primary=MODERN_BLUE, accent=DARK_GRAY, panel=(247, 250, 252), muted=DARK_GRAY),
    header_shapes=(
        Shape("frame", 10, color=MODERN_BLUE, line_width=2),
        Shape("frame", 12, color=MODERN_BLUE, line_width=0.5),
    ),
    header=HeaderLayout(
        logo=(19, 24, 28, 28),
        logo_backing=((17, 22, 32, 32), MODERN_BLUE),
        name_with_logo=(55, 33),
        name_only=(20, 35),
        name_size=16,
        name_color=MODERN_BLUE,
        title_backing=((-75, 22, 58, 18), MODERN_BLUE),
        title_at=(-46, 34),
        title_align="center",
        title_size=20,
        title_color=WHITE,
        meta_backing=((-75, 44, 58, 24), (243, 244, 246)),
        meta_at=(-72, 50),
        meta_size=8,
        meta_label_color=DARK_GRAY,
        meta_value_color=DARK_GRAY,
        badge=(20, 64, 32, 9),
    ),
    panels=PanelLayout(style="banner", left_x=20, left_w=85, right_x=110, right_w=80, payment_x=110, payment_w=80),
    grid=GridStyle(head_fill=MODERN_BLUE, body_text=DARK_GRAY, alternate_fill=(247, 250, 252)),
    totals=TotalsLayout(x=-85, width=65, framed=True, show_title=True, grand_fill=MODERN_BLUE),
    notes=NotesLayout(boxed=True, notes_lines=3, terms_lines=3),
    footer=FooterLayout(
        shapes=(Shape("line", 20, -22, -20, color=MODERN_BLUE, line_width=0.5),),
        text_y=-16,
        text_color=MODERN_BLUE,
        text_style="bold",
    ),
)

THEMES: Dict[str, Theme] = {
    theme.name: theme
    for theme in (LICERIA, CORPORATE, CLASSIC, MODERN, MINIMAL, PROFESSIONAL)
}


def get_theme(name: Optional[str]) -> Theme:
    """Theme by id, falling back to the configured default (then classic) for unknown ids."""
    theme = THEMES.get(name or "")
    if theme is None:
        logger.debug(f"Unknown template '{name}', using '{config.DEFAULT_TEMPLATE}'")
        theme = THEMES.get(config.DEFAULT_TEMPLATE, CLASSIC)
    return theme
