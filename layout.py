"""
Theme-parameterised page layout.

Every theme runs the same section pipeline:

    header -> status badge -> payment box (invoices) -> bill-to / company
    contact boxes -> item table -> totals -> notes and terms -> signature
    -> footer

Sections occupy fixed vertical bands; a Theme only chooses how each band
looks. The cursor is threaded through the sections as an immutable
LayoutContext, and the only page-break decision outside the item table is
made once, right after the table, against an estimate of everything that
still has to fit on the page.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from assets import embed_image, embed_signature
from config import config
from document_types import KindConfig, get_kind_config
from drawing import DATA_URL_PREFIX, RGB
from models import DocumentBase, Invoice, Receipt
from table_schema import build_rows, compute_schema
from themes import Box, Shape, Theme
from totals import TotalsSummary, present_totals

logger = logging.getLogger(__name__)

TOP_MARGIN = 20
BOTTOM_MARGIN = 25
CONTENT_LEFT = 15
CONTENT_WIDTH = 180

HEADER_BAND = 80
PAYMENT_BAND = 28
PARTY_BAND = 40
TABLE_GAP = 10
SECTION_GAP = 6

TOTALS_TITLE_HEIGHT = 8
TOTALS_LINE_STEP = 7
GRAND_TOTAL_HEIGHT = 14
NOTE_PANEL_HEIGHT = 25
MAX_NOTE_LINES = 3
SIGNATURE_HEIGHT = 30

PANEL_LINE_STEP = 5

# header, body and row height per font-size tier
FONT_SIZES = {
    "small": (6, 6, 7),
    "medium": (7, 7, 8),
    "large": (8, 8, 9),
}

SUCCESS_STATUSES = ("paid", "accepted")
FAILURE_STATUSES = ("cancelled", "rejected")
DARK_TEXT_STATUSES = ("pending", "draft")

TextLine = Tuple[str, str, Optional[RGB]]


def format_date(value: Optional[str], pattern: str = "%d/%m/%Y", missing: str = "N/A") -> str:
    if not value:
        return missing
    text = str(value).strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = datetime.strptime(text[:10], "%Y-%m-%d")
        except ValueError:
            return missing
    return parsed.strftime(pattern)


def format_money(value: float) -> str:
    return f"{config.CURRENCY_LABEL} {value:.2f}"


def format_percent(value: float) -> str:
    return f"{value:g}%"


def status_colors(status: str, theme: Theme, known: Optional[Sequence[str]] = None) -> Tuple[RGB, RGB]:
    """
    Badge fill and text colour for a status.

    ``known`` is the status vocabulary of the document kind; a status outside
    it gets the pending fill whatever its name.
    """
    palette = theme.palette
    if known is not None and status not in known:
        fill = palette.pending
    elif status in SUCCESS_STATUSES:
        fill = palette.success
    elif status in FAILURE_STATUSES:
        fill = palette.failure
    else:
        fill = palette.pending
    text = (0, 0, 0) if status in DARK_TEXT_STATUSES else (255, 255, 255)
    return fill, text


@dataclass(frozen=True)
class LayoutContext:
    """Vertical cursor (mm from the page top) and the page it is on."""

    y: float
    page: int = 1
    page_height: float = 297
    top_margin: float = TOP_MARGIN
    bottom_margin: float = BOTTOM_MARGIN

    def at(self, y: float) -> "LayoutContext":
        return replace(self, y=y)

    def advance(self, dy: float) -> "LayoutContext":
        return replace(self, y=self.y + dy)

    def next_page(self) -> "LayoutContext":
        return replace(self, y=self.top_margin, page=self.page + 1)

    def fits(self, height: float) -> bool:
        return self.y + height <= self.page_height - self.bottom_margin


def estimate_trailing_height(document: DocumentBase, totals: TotalsSummary) -> float:
    """
    Height needed below the item table: totals, notes and terms, signature.

    Uses the largest values any theme may draw, so the page-break decision
    does not depend on the theme.
    """
    height = totals_panel_height(document, totals)
    panels = sum(1 for text in (document.notes, document.terms) if text.strip())
    if panels:
        height += SECTION_GAP + panels * NOTE_PANEL_HEIGHT
    signature = document.company.signature
    if isinstance(document, Receipt) or (signature is not None and signature.type != "none"):
        height += SECTION_GAP + SIGNATURE_HEIGHT
    return height


def totals_lines(document: DocumentBase, totals: TotalsSummary, theme: Theme) -> List[Tuple[str, str, RGB]]:
    """Label, value and colour of each totals line above the grand total."""
    palette = theme.palette
    lines = [("Subtotal:", format_money(totals.subtotal), palette.text)]
    if document.item_tax_enabled and totals.item_tax_total:
        lines.append(("Item GST:", format_money(totals.item_tax_total), palette.positive))
    if document.tax_enabled and totals.document_tax_amount:
        label = f"Tax ({format_percent(document.tax_percentage)}):"
        lines.append((label, format_money(totals.document_tax_amount), palette.positive))
    if totals.discount_amount:
        if document.discount.type == "percentage":
            label = f"Discount ({format_percent(document.discount.value)}):"
        else:
            label = "Discount:"
        lines.append((label, f"- {format_money(totals.discount_amount)}", palette.negative))
    return lines


def totals_panel_height(document: DocumentBase, totals: TotalsSummary) -> float:
    count = 1
    if document.item_tax_enabled and totals.item_tax_total:
        count += 1
    if document.tax_enabled and totals.document_tax_amount:
        count += 1
    if totals.discount_amount:
        count += 1
    return TOTALS_TITLE_HEIGHT + count * TOTALS_LINE_STEP + GRAND_TOTAL_HEIGHT


class LayoutEngine:
    """Draws one Document onto a PdfCanvas in the look of one Theme."""

    def __init__(self, canvas, theme: Theme):
        self.canvas = canvas
        self.theme = theme

    # ---- geometry helpers

    def _x(self, value: float) -> float:
        return self.canvas.page_width + value if value < 0 else value

    def _y(self, value: float) -> float:
        return self.canvas.page_height + value if value < 0 else value

    def _font(self, style: str = "normal", size: Optional[float] = None) -> None:
        self.canvas.set_font(family=self.theme.font_family, style=style, size=size)

    def _box(self, x: float, y: float, w: float, h: float, style: str = "F", radius: Optional[float] = None) -> None:
        radius = self.theme.radius if radius is None else radius
        if radius > 0:
            self.canvas.rounded_rect(x, y, w, h, radius, style)
        else:
            self.canvas.rect(x, y, w, h, style)

    def _backing(self, backing: Optional[Tuple[Box, RGB]]) -> None:
        if backing is None:
            return
        (x, y, w, h), color = backing
        self.canvas.set_fill_color(color)
        self._box(self._x(x), y, w, h, "F")

    def draw_shape(self, shape: Shape) -> None:
        canvas = self.canvas
        pw = canvas.page_width
        canvas.set_fill_color(shape.color)
        canvas.set_draw_color(shape.color)
        canvas.set_line_width(shape.line_width)
        with canvas.opacity(shape.opacity):
            if shape.kind == "rect":
                if shape.relative:
                    x, w = shape.x * pw, shape.w * pw
                else:
                    x = self._x(shape.x)
                    w = shape.w or pw - x
                canvas.rect(x, self._y(shape.y), w, shape.h, "F")
            elif shape.kind == "circle":
                canvas.circle(self._x(shape.x), self._y(shape.y), shape.w, "F")
            elif shape.kind == "line":
                y = self._y(shape.y)
                canvas.line(self._x(shape.x), y, self._x(shape.w), y)
            elif shape.kind == "frame":
                inset = shape.x
                canvas.rect(inset, inset, pw - 2 * inset, canvas.page_height - 2 * inset, "S")
            else:
                raise ValueError(f"Unknown shape kind '{shape.kind}'")

    # ---- pipeline

    def render(self, document: DocumentBase) -> LayoutContext:
        kind_config = get_kind_config(document.kind)
        totals = present_totals(document)
        ctx = LayoutContext(y=0, page_height=self.canvas.page_height)

        ctx = self.draw_header(ctx, document, kind_config)
        ctx = self.draw_status_badge(ctx, document, kind_config)
        ctx = self.draw_payment_box(ctx, document, kind_config)
        ctx = self.draw_party_boxes(ctx, document, kind_config)
        ctx = self.draw_item_table(ctx, document)
        ctx = self.ensure_space(ctx.advance(TABLE_GAP), estimate_trailing_height(document, totals))
        ctx = self.draw_closing(ctx, document, totals)
        self.draw_footer(document, kind_config)
        return ctx

    def ensure_space(self, ctx: LayoutContext, height: float) -> LayoutContext:
        if ctx.fits(height):
            return ctx
        logger.debug(f"Moving totals to page {ctx.page + 1}, {height:.1f}mm needed at y={ctx.y:.1f}")
        self.canvas.add_page()
        return ctx.next_page()

    # ---- header

    def draw_header(self, ctx: LayoutContext, document: DocumentBase, kind_config: KindConfig) -> LayoutContext:
        canvas = self.canvas
        header = self.theme.header
        company = document.company

        for shape in self.theme.header_shapes:
            self.draw_shape(shape)
        self._backing(header.name_backing)

        has_logo = False
        if isinstance(company.logo, str) and company.logo.startswith(DATA_URL_PREFIX):
            self._backing(header.logo_backing)
            x, y, w, h = header.logo
            has_logo = embed_image(canvas, company.logo, self._x(x), y, w, h, role="logo")

        name_x, name_y = header.name_with_logo if has_logo else header.name_only
        name = company.name.upper() if header.name_uppercase else company.name
        self._font(header.name_style, header.name_size)
        canvas.set_text_color(header.name_color)
        canvas.text(name, self._x(name_x), name_y)
        if company.gst_id:
            self._font("normal", max(header.name_size / 2.5, 6))
            canvas.text(f"GST: {company.gst_id}", self._x(name_x), name_y + 5)

        self._backing(header.title_backing)
        title_x, title_y = header.title_at
        self._font(header.title_style, header.title_size)
        canvas.set_text_color(header.title_color)
        canvas.text(kind_config.title, self._x(title_x), title_y, align=header.title_align)

        self._backing(header.meta_backing)
        meta_x, meta_y = header.meta_at
        for index, (label, value) in enumerate(self.meta_lines(document, kind_config)):
            y = meta_y + index * header.meta_step
            if header.meta_value_x is None:
                self._font("normal", header.meta_size)
                canvas.set_text_color(header.meta_value_color)
                canvas.text(f"{label}: {value}", self._x(meta_x), y, align=header.meta_align)
            else:
                self._font("normal", header.meta_size)
                canvas.set_text_color(header.meta_label_color)
                canvas.text(f"{label}:", self._x(meta_x), y)
                self._font("bold", header.meta_size)
                canvas.set_text_color(header.meta_value_color)
                canvas.text(value, self._x(header.meta_value_x), y)
        return ctx

    @staticmethod
    def meta_lines(document: DocumentBase, kind_config: KindConfig) -> List[Tuple[str, str]]:
        lines = [
            (kind_config.number_label, document.number),
            (kind_config.date_label, format_date(document.date)),
        ]
        if kind_config.shows_validity_date:
            lines.append((kind_config.secondary_date_label, format_date(document.secondary_date)))
        if isinstance(document, Receipt):
            lines.append(("Payment Type", document.payment_type.capitalize()))
            lines.append(("Payment Method", document.payment_method))
        return lines

    def draw_status_badge(self, ctx: LayoutContext, document: DocumentBase, kind_config: KindConfig) -> LayoutContext:
        header = self.theme.header
        x, y, w, h = header.badge
        x = self._x(x)
        fill, text = status_colors(document.status, self.theme, kind_config.status_options)

        self.canvas.set_fill_color(fill)
        self._box(x, y, w, h, "F", radius=header.badge_radius)
        self._font("bold", header.badge_size)
        self.canvas.set_text_color(text)
        baseline = y + h / 2 + self.canvas.line_height() * 0.3
        self.canvas.text(document.status.upper(), x + w / 2, baseline, align="center")
        return ctx.at(HEADER_BAND)

    # ---- information boxes

    def draw_panel(self, x: float, y: float, w: float, h: float, title: str, lines: Sequence[TextLine]) -> None:
        canvas = self.canvas
        panels = self.theme.panels
        palette = self.theme.palette
        style = panels.style
        title_color = panels.title_color or palette.primary
        text_x = x + 3

        if style == "banner":
            canvas.set_draw_color(palette.primary)
            canvas.set_line_width(0.5)
            self._box(x, y, w, h, "S")
            canvas.set_fill_color(palette.primary)
            canvas.rect(x, y, w, 7, "F")
            title_color = panels.title_color or (255, 255, 255)
            title_y = y + 5
        elif style == "outlined":
            canvas.set_fill_color(palette.panel)
            canvas.set_draw_color(palette.primary)
            canvas.set_line_width(0.3)
            self._box(x, y, w, h, "FD")
            title_y = y + 6
        elif style == "tinted":
            canvas.set_fill_color(palette.panel)
            self._box(x, y, w, h, "F")
            canvas.set_fill_color(palette.accent)
            canvas.rect(x, y, 2, h, "F")
            text_x = x + 6
            title_y = y + 6
        else:
            text_x = x
            title_y = y + 4

        self._font("bold", panels.title_size)
        canvas.set_text_color(title_color)
        canvas.text(title, text_x, title_y)

        line_y = title_y + 7
        limit = y + h - 1
        for text, weight, color in lines:
            if line_y > limit:
                break
            self._font(weight, panels.body_size)
            canvas.set_text_color(color or palette.text)
            clipped = canvas.split_text(text, w - (text_x - x) - 3)
            canvas.text(clipped[0] if clipped else "", text_x, line_y)
            line_y += PANEL_LINE_STEP

    def draw_payment_box(self, ctx: LayoutContext, document: DocumentBase, kind_config: KindConfig) -> LayoutContext:
        if not kind_config.show_payment_method or not isinstance(document, Invoice):
            return ctx
        panels = self.theme.panels
        lines: List[TextLine] = [(f"Method: {document.payment_method}", "normal", None)]
        if kind_config.shows_due_date:
            due_color = self.theme.palette.alert if document.status == "pending" else None
            due_date = format_date(document.secondary_date)
            lines.append((f"{kind_config.secondary_date_label}: {due_date}", "bold", due_color))
        self.draw_panel(self._x(panels.payment_x), ctx.y, panels.payment_w, panels.payment_h, "PAYMENT INFO", lines)
        return ctx.advance(PAYMENT_BAND)

    def draw_party_boxes(self, ctx: LayoutContext, document: DocumentBase, kind_config: KindConfig) -> LayoutContext:
        panels = self.theme.panels
        boxes = [
            (kind_config.client_label, self.client_lines(document)),
            ("COMPANY CONTACT", self.company_lines(document)),
        ]
        if not panels.bill_to_first:
            boxes.reverse()
        slots = [(panels.left_x, panels.left_w), (panels.right_x, panels.right_w)]
        for (title, lines), (x, w) in zip(boxes, slots):
            self.draw_panel(self._x(x), ctx.y, w, panels.height, title, lines)
        return ctx.advance(PARTY_BAND)

    @staticmethod
    def client_lines(document: DocumentBase) -> List[TextLine]:
        client = document.client
        lines: List[TextLine] = [(client.name, "bold", None)]
        if isinstance(document, Receipt):
            if document.project_name:
                lines.append((f"Project: {document.project_name}", "normal", None))
            if document.project_location:
                lines.append((f"Location: {document.project_location}", "normal", None))
            if document.milestone_name:
                lines.append((f"Milestone: {document.milestone_name} ({document.milestone_stage})", "normal", None))
            return lines
        if client.address:
            lines.append((client.address.splitlines()[0], "normal", None))
        if client.phone:
            lines.append((f"Phone: {client.phone}", "normal", None))
        if client.email:
            lines.append((f"Email: {client.email}", "normal", None))
        return lines

    @staticmethod
    def company_lines(document: DocumentBase) -> List[TextLine]:
        company = document.company
        lines: List[TextLine] = []
        if company.phone:
            lines.append((f"Phone: {company.phone}", "normal", None))
        if company.email:
            lines.append((f"Email: {company.email}", "normal", None))
        if company.address:
            lines.append((company.address.splitlines()[0], "normal", None))
        if company.gst_id:
            lines.append((f"GST: {company.gst_id}", "normal", None))
        return lines or [("N/A", "normal", None)]

    # ---- items

    def draw_item_table(self, ctx: LayoutContext, document: DocumentBase) -> LayoutContext:
        canvas = self.canvas
        schema = compute_schema(document)
        head_size, body_size, row_height = FONT_SIZES[document.font_size]
        style = replace(
            self.theme.grid,
            head_font_size=head_size,
            body_font_size=body_size,
            min_row_height=row_height,
        )

        rows = build_rows(document, schema)
        # Descriptions wrap inside their column; the grid itself never wraps text
        canvas.set_font(family=style.font_family, style="normal", size=body_size)
        description_width = schema.columns[0].width - 2 * style.cell_padding
        for row in rows:
            row[0] = "\n".join(canvas.split_text(row[0], description_width)) or "-"

        head = schema.headers
        if self.theme.uppercase_headers:
            head = [label.upper() for label in head]
        bold_columns = [index for index, column in enumerate(schema.columns) if column.bold]

        final_y = canvas.table(
            head, rows, CONTENT_LEFT, ctx.y, schema.widths, schema.alignments, style, bold_columns
        )
        return replace(ctx, y=final_y, page=canvas.page_count)

    # ---- totals, notes, signature

    def draw_closing(self, ctx: LayoutContext, document: DocumentBase, totals: TotalsSummary) -> LayoutContext:
        notes = self.theme.notes
        totals_bottom = self.draw_totals(ctx.y, document, totals)

        if notes.beside_totals:
            notes_bottom = self.draw_notes(CONTENT_LEFT, ctx.y, notes.width or CONTENT_WIDTH, document)
            signature_top = totals_bottom + SECTION_GAP
        else:
            notes_bottom = self.draw_notes(CONTENT_LEFT, totals_bottom + SECTION_GAP, notes.width or CONTENT_WIDTH, document)
            signature_top = max(notes_bottom, totals_bottom) + SECTION_GAP

        bottom = max(totals_bottom, notes_bottom)
        if isinstance(document, Receipt):
            # Left column, below any notes drawn beside the totals
            signature_top = bottom + SECTION_GAP
            self.draw_received_by(signature_top)
            bottom = signature_top + SIGNATURE_HEIGHT

        signature = document.company.signature
        if signature is not None and signature.type != "none":
            self._font("normal")
            embed_signature(self.canvas, signature, self.canvas.page_width, signature_top)
            bottom = max(bottom, signature_top + SIGNATURE_HEIGHT)
        return ctx.at(bottom)

    def draw_received_by(self, top: float) -> None:
        canvas = self.canvas
        palette = self.theme.palette
        self._font("normal", 9)
        canvas.set_text_color(palette.text)
        canvas.text("Received By:", CONTENT_LEFT, top)
        canvas.set_draw_color(palette.muted)
        canvas.set_line_width(0.3)
        canvas.line(CONTENT_LEFT, top + 20, CONTENT_LEFT + 65, top + 20)
        self._font("normal", 7)
        canvas.set_text_color(palette.muted)
        canvas.text("Signature", CONTENT_LEFT, top + 25)

    def draw_totals(self, top: float, document: DocumentBase, totals: TotalsSummary) -> float:
        canvas = self.canvas
        layout = self.theme.totals
        palette = self.theme.palette
        x, w = self._x(layout.x), layout.width
        lines = totals_lines(document, totals, self.theme)
        height = totals_panel_height(document, totals)

        if layout.framed:
            canvas.set_fill_color(palette.panel)
            canvas.set_draw_color(palette.rule)
            canvas.set_line_width(0.3)
            self._box(x, top, w, height, "FD")
        if layout.show_title:
            title = get_kind_config(document.kind).title
            self._font("bold", layout.label_size)
            canvas.set_text_color(palette.primary)
            canvas.text(f"{title} SUMMARY", x + 4, top + 6)

        line_y = top + TOTALS_TITLE_HEIGHT + 4
        for label, value, color in lines:
            self._font("normal", layout.label_size)
            canvas.set_text_color(palette.muted)
            canvas.text(label, x + 4, line_y)
            self._font("bold", layout.label_size)
            canvas.set_text_color(color)
            canvas.text(value, x + w - 4, line_y, align="right")
            if layout.rules:
                canvas.set_draw_color(palette.rule)
                canvas.set_line_width(0.2)
                canvas.line(x + 4, line_y + 2.5, x + w - 4, line_y + 2.5)
            line_y += TOTALS_LINE_STEP

        box_y = line_y - 2
        box_h = GRAND_TOTAL_HEIGHT - 4
        canvas.set_fill_color(layout.grand_fill or palette.primary)
        self._box(x + 2, box_y, w - 4, box_h, "F")
        if layout.grand_overlay is not None:
            color, alpha = layout.grand_overlay
            canvas.set_fill_color(color)
            with canvas.opacity(alpha):
                canvas.rect(x + w / 2, box_y, w / 2 - 2, box_h, "F")

        baseline = box_y + box_h / 2 + 1.5
        self._font("bold", layout.label_size + 1)
        canvas.set_text_color(layout.grand_text)
        canvas.text(layout.grand_label, x + 5, baseline)
        self._font("bold", layout.grand_size)
        canvas.text(format_money(totals.grand_total), x + w - 5, baseline, align="right")
        return top + height

    def draw_notes(self, x: float, top: float, width: float, document: DocumentBase) -> float:
        canvas = self.canvas
        layout = self.theme.notes
        palette = self.theme.palette
        panels = [
            ("NOTES", document.notes, min(layout.notes_lines, MAX_NOTE_LINES)),
            ("TERMS AND CONDITIONS", document.terms, min(layout.terms_lines, MAX_NOTE_LINES)),
        ]

        y = top
        for title, text, cap in panels:
            if not text.strip():
                continue
            if layout.boxed:
                canvas.set_fill_color(palette.panel)
                self._box(x, y, width, NOTE_PANEL_HEIGHT - 3, "F")
                canvas.set_fill_color(palette.accent)
                canvas.rect(x, y, 1.5, NOTE_PANEL_HEIGHT - 3, "F")

            self._font("bold", layout.title_size)
            canvas.set_text_color(palette.primary)
            canvas.text(title, x + 4, y + 6)

            self._font("normal", layout.body_size)
            canvas.set_text_color(palette.muted)
            wrapped: List[str] = []
            for paragraph in text.splitlines():
                wrapped.extend(canvas.split_text(paragraph, width - 8) or [""])
            canvas.text(wrapped[:cap], x + 4, y + 11)
            y += NOTE_PANEL_HEIGHT
        return y

    # ---- footer

    def draw_footer(self, document: DocumentBase, kind_config: KindConfig) -> None:
        canvas = self.canvas
        footer = self.theme.footer
        for shape in footer.shapes:
            self.draw_shape(shape)

        center = canvas.page_width / 2
        text_y = self._y(footer.text_y)
        self._font(footer.text_style, footer.text_size)
        canvas.set_text_color(footer.text_color)
        canvas.text(kind_config.footer_message, center, text_y, align="center")

        if isinstance(document, Receipt) and document.generated_on:
            self._font("normal", footer.text_size - 1)
            canvas.text(f"Generated on {format_date(document.generated_on)}", center, text_y - 4, align="center")
