"""
Drawing surface used by the layout engine.

Coordinates are millimetres from the top-left corner of the page, the way
the document layouts are specified. Font sizes are points. Everything is
translated onto a reportlab canvas; pen state (colours, font, line width,
opacity) is held here and re-applied on every primitive because reportlab
resets its graphics state on each new page.
"""
import base64
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

FONT_NAMES = {
    ("helvetica", "normal"): "Helvetica",
    ("helvetica", "bold"): "Helvetica-Bold",
    ("helvetica", "italic"): "Helvetica-Oblique",
    ("helvetica", "bolditalic"): "Helvetica-BoldOblique",
    ("times", "normal"): "Times-Roman",
    ("times", "bold"): "Times-Bold",
    ("times", "italic"): "Times-Italic",
    ("times", "bolditalic"): "Times-BoldItalic",
    ("courier", "normal"): "Courier",
    ("courier", "bold"): "Courier-Bold",
    ("courier", "italic"): "Courier-Oblique",
    ("courier", "bolditalic"): "Courier-BoldOblique",
}

LINE_HEIGHT_FACTOR = 1.15
DATA_URL_PREFIX = "data:image"


def font_name(family: str, style: str = "normal") -> str:
    return FONT_NAMES.get((family, style)) or FONT_NAMES[("helvetica", style)]


def safe_text(text) -> str:
    """Standard PDF fonts only cover Latin-1; replace anything outside it."""
    if text is None:
        return ""
    return str(text).encode("latin-1", "replace").decode("latin-1")


def to_color(rgb: RGB) -> colors.Color:
    r, g, b = rgb
    return colors.Color(r / 255.0, g / 255.0, b / 255.0)


def decode_data_url(data: str) -> bytes:
    """Return the payload of a base64 ``data:image/...`` URL."""
    header, _, payload = data.partition(",")
    if not header.startswith(DATA_URL_PREFIX) or not payload:
        raise ValueError("Not an image data URL")
    if ";base64" in header:
        return base64.b64decode(payload, validate=True)
    return payload.encode("latin-1")


@dataclass(frozen=True)
class GridStyle:
    """Look of an item grid: header band, body text, row striping and rules."""

    head_fill: RGB
    head_text: RGB = (255, 255, 255)
    body_text: RGB = (0, 0, 0)
    alternate_fill: Optional[RGB] = (249, 250, 251)
    line_color: RGB = (229, 231, 235)
    line_width: float = 0.1
    # False draws horizontal rules only
    full_grid: bool = True
    font_family: str = "helvetica"
    head_font_size: float = 7
    body_font_size: float = 7
    head_align: str = "LEFT"
    min_row_height: float = 8
    cell_padding: float = 2.5


class PdfCanvas:
    """A4 portrait page surface in millimetres, rendering to PDF bytes."""

    def __init__(self, pagesize=A4, title: Optional[str] = None,
                 top_margin: float = 20, bottom_margin: float = 20):
        self._buffer = BytesIO()
        # invariant=1 pins creation date and document id so output is reproducible
        self._canvas = canvas.Canvas(self._buffer, pagesize=pagesize, invariant=1)
        if title:
            self._canvas.setTitle(safe_text(title))
        self._page_height_pt = pagesize[1]
        self.page_width = pagesize[0] / mm
        self.page_height = pagesize[1] / mm
        self.top_margin = top_margin
        self.bottom_margin = bottom_margin
        self.page_count = 1
        self._output: Optional[bytes] = None

        self._fill: RGB = (0, 0, 0)
        self._stroke: RGB = (0, 0, 0)
        self._text: RGB = (0, 0, 0)
        self._line_width = 0.2
        self._family = "helvetica"
        self._style = "normal"
        self._font_size = 10.0
        self._alpha = 1.0

    # ---- pen state

    def set_fill_color(self, rgb: RGB) -> None:
        self._fill = tuple(rgb)

    def set_draw_color(self, rgb: RGB) -> None:
        self._stroke = tuple(rgb)

    def set_text_color(self, rgb: RGB) -> None:
        self._text = tuple(rgb)

    def set_line_width(self, width: float) -> None:
        self._line_width = width

    def set_font(self, family: Optional[str] = None, style: Optional[str] = None,
                 size: Optional[float] = None) -> None:
        if family is not None:
            self._family = family
        if style is not None:
            self._style = style
        if size is not None:
            self._font_size = float(size)

    @property
    def font_name(self) -> str:
        return font_name(self._family, self._style)

    @property
    def font_size(self) -> float:
        return self._font_size

    @contextmanager
    def opacity(self, alpha: float) -> Iterator[None]:
        previous = self._alpha
        self._alpha = alpha
        try:
            yield
        finally:
            self._alpha = previous

    def _apply_shape_state(self) -> None:
        c = self._canvas
        c.setFillColor(to_color(self._fill))
        c.setStrokeColor(to_color(self._stroke))
        c.setLineWidth(self._line_width * mm)
        c.setFillAlpha(self._alpha)
        c.setStrokeAlpha(self._alpha)

    def _y(self, y: float) -> float:
        return self._page_height_pt - y * mm

    @staticmethod
    def _paint_flags(style: str) -> Tuple[int, int]:
        style = style.upper()
        return int("D" in style or "S" in style), int("F" in style)

    # ---- text

    def line_height(self, size: Optional[float] = None) -> float:
        return (size or self._font_size) * LINE_HEIGHT_FACTOR / mm

    def string_width(self, text: str) -> float:
        return stringWidth(safe_text(text), self.font_name, self._font_size) / mm

    def split_text(self, text: str, width: float) -> List[str]:
        return simpleSplit(safe_text(text), self.font_name, self._font_size, width * mm)

    def text(self, text: Union[str, Sequence[str]], x: float, y: float, align: str = "left") -> None:
        """Draw text with its baseline at ``y``; a list draws one line per entry."""
        lines = [text] if isinstance(text, str) else list(text)
        c = self._canvas
        c.setFont(self.font_name, self._font_size)
        c.setFillColor(to_color(self._text))
        c.setFillAlpha(self._alpha)
        step = self.line_height()
        for index, line in enumerate(lines):
            line = safe_text(line)
            baseline = self._y(y + index * step)
            if align == "right":
                c.drawRightString(x * mm, baseline, line)
            elif align == "center":
                c.drawCentredString(x * mm, baseline, line)
            else:
                c.drawString(x * mm, baseline, line)

    # ---- shapes

    def rect(self, x: float, y: float, w: float, h: float, style: str = "S") -> None:
        self._apply_shape_state()
        stroke, fill = self._paint_flags(style)
        self._canvas.rect(x * mm, self._y(y + h), w * mm, h * mm, stroke=stroke, fill=fill)

    def rounded_rect(self, x: float, y: float, w: float, h: float, radius: float, style: str = "S") -> None:
        self._apply_shape_state()
        stroke, fill = self._paint_flags(style)
        self._canvas.roundRect(x * mm, self._y(y + h), w * mm, h * mm, radius * mm, stroke=stroke, fill=fill)

    def circle(self, x: float, y: float, radius: float, style: str = "S") -> None:
        self._apply_shape_state()
        stroke, fill = self._paint_flags(style)
        self._canvas.circle(x * mm, self._y(y), radius * mm, stroke=stroke, fill=fill)

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self._apply_shape_state()
        self._canvas.line(x1 * mm, self._y(y1), x2 * mm, self._y(y2))

    def image(self, data: str, x: float, y: float, w: float, h: float) -> None:
        """Draw a base64 image data URL into the box; raises if the image cannot be read."""
        reader = ImageReader(BytesIO(decode_data_url(data)))
        self._canvas.drawImage(reader, x * mm, self._y(y + h), w * mm, h * mm, mask="auto")

    # ---- pages

    def add_page(self) -> None:
        self._canvas.showPage()
        self.page_count += 1

    def table(self, head: Sequence[str], body: Sequence[Sequence[str]], x: float, y: float,
              col_widths: Sequence[float], alignments: Sequence[str], style: GridStyle,
              bold_columns: Sequence[int] = ()) -> float:
        """
        Draw an item grid starting at ``y`` and return the y just below it.

        Rows that do not fit above the bottom margin continue on new pages,
        with the header row repeated.
        """
        data = [[safe_text(cell) for cell in head]]
        data.extend([safe_text(cell) for cell in row] for row in body)
        grid = Table(data, colWidths=[w * mm for w in col_widths], repeatRows=1)
        grid.setStyle(self._grid_style(style, alignments, bold_columns))
        width_pt = sum(col_widths) * mm

        while True:
            avail_pt = (self.page_height - self.bottom_margin - y) * mm
            _, height_pt = grid.wrapOn(self._canvas, width_pt, avail_pt)
            if height_pt <= avail_pt:
                grid.drawOn(self._canvas, x * mm, self._y(y) - height_pt)
                return y + height_pt / mm

            parts = grid.split(width_pt, avail_pt)
            if len(parts) < 2:
                if y <= self.top_margin:
                    # A single row taller than a page; draw it and let it clip
                    grid.drawOn(self._canvas, x * mm, self._y(y) - height_pt)
                    return y + height_pt / mm
                self.add_page()
                y = self.top_margin
                continue

            head_part, grid = parts[0], parts[1]
            _, part_pt = head_part.wrapOn(self._canvas, width_pt, avail_pt)
            head_part.drawOn(self._canvas, x * mm, self._y(y) - part_pt)
            logger.debug(f"Item grid continues on page {self.page_count + 1}")
            self.add_page()
            y = self.top_margin

    @staticmethod
    def _grid_style(style: GridStyle, alignments: Sequence[str], bold_columns: Sequence[int]) -> TableStyle:
        regular = font_name(style.font_family, "normal")
        bold = font_name(style.font_family, "bold")
        leading = style.body_font_size * 1.2
        padding = max(style.cell_padding * mm, (style.min_row_height * mm - leading) / 2)

        commands = [
            ("BACKGROUND", (0, 0), (-1, 0), to_color(style.head_fill)),
            ("TEXTCOLOR", (0, 0), (-1, 0), to_color(style.head_text)),
            ("FONTNAME", (0, 0), (-1, 0), bold),
            ("FONTSIZE", (0, 0), (-1, 0), style.head_font_size),
            ("ALIGN", (0, 0), (-1, 0), style.head_align),
            ("FONTNAME", (0, 1), (-1, -1), regular),
            ("FONTSIZE", (0, 1), (-1, -1), style.body_font_size),
            ("LEADING", (0, 1), (-1, -1), leading),
            ("TEXTCOLOR", (0, 1), (-1, -1), to_color(style.body_text)),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("TOPPADDING", (0, 0), (-1, 0), style.cell_padding * mm),
            ("BOTTOMPADDING", (0, 0), (-1, 0), style.cell_padding * mm),
            ("TOPPADDING", (0, 1), (-1, -1), padding),
            ("BOTTOMPADDING", (0, 1), (-1, -1), padding),
            ("LEFTPADDING", (0, 0), (-1, -1), style.cell_padding * mm),
            ("RIGHTPADDING", (0, 0), (-1, -1), style.cell_padding * mm),
        ]
        for index, align in enumerate(alignments):
            commands.append(("ALIGN", (index, 1), (index, -1), align))
        for index in bold_columns:
            commands.append(("FONTNAME", (index, 1), (index, -1), bold))
        if style.alternate_fill:
            commands.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, to_color(style.alternate_fill)]))

        rule = style.line_width * mm
        if style.full_grid:
            commands.append(("GRID", (0, 0), (-1, -1), rule, to_color(style.line_color)))
        else:
            commands.append(("LINEBELOW", (0, 0), (-1, -1), rule, to_color(style.line_color)))
        return TableStyle(commands)

    # ---- output

    def output(self) -> bytes:
        """Finish the document and return its bytes. Further drawing is not possible."""
        if self._output is None:
            self._canvas.save()
            self._output = self._buffer.getvalue()
        return self._output
